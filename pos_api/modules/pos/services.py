"""
Servicio de caja: apertura, corte y consultas.

El corte calcula la venta bruta del turno:

    efectivo_total = efectivo + tigo + claro
    venta_bruta = (efectivo_total - fondo_base) + transferencias + tarjeta

El fondo base es fijo (CASH_DRAWER_BASE_FLOAT), no el fondo declarado al abrir.
"""
from typing import Callable, Optional
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging

from pos_api.core.config import settings
from pos_api.common.clock import local_now
from pos_api.common.exceptions import POSError, ConflictError, NoOpenDrawerError, StorageError
from pos_api.modules.pos.models import CashDrawer, DrawerStatus
from pos_api.modules.pos.schemas import CashDrawerClose
from pos_api.modules.pos.shifts import get_shift

logger = logging.getLogger(__name__)


def compute_gross_sales(total_cash: Decimal, total_card: Decimal, total_transfer: Decimal,
                        tigo_balance: Decimal, claro_balance: Decimal,
                        base_float: Optional[Decimal] = None) -> Decimal:
    if base_float is None:
        base_float = settings.CASH_DRAWER_BASE_FLOAT
    cash_equivalent = Decimal(total_cash) + Decimal(tigo_balance) + Decimal(claro_balance)
    return (cash_equivalent - Decimal(base_float)) + Decimal(total_transfer) + Decimal(total_card)


class CashDrawerService:
    """Servicio para la caja única del negocio"""

    def __init__(self, db: Session, clock: Callable[[], datetime] = local_now):
        self.db = db
        self.clock = clock

    def open_drawer(self, user_id: Optional[int], opening_float: Decimal = Decimal("0")) -> CashDrawer:
        """Abrir caja; cualquier caja que siga abierta se cierra primero"""
        try:
            forced = self.db.query(CashDrawer).filter(
                CashDrawer.status == DrawerStatus.ABIERTA
            ).update({CashDrawer.status: DrawerStatus.CERRADA}, synchronize_session="fetch")

            drawer = CashDrawer(
                opened_by=user_id,
                opened_at=self.clock(),
                opening_float=opening_float,
                status=DrawerStatus.ABIERTA
            )
            self.db.add(drawer)
            self.db.commit()
            self.db.refresh(drawer)

        except IntegrityError:
            # Otra apertura ganó la carrera contra el índice de caja única
            self.db.rollback()
            raise ConflictError("Ya existe una caja abierta")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Rollback al abrir caja: {e}")
            raise StorageError(f"Error al abrir caja: {str(e)}", cause=e)

        if forced:
            logger.warning(f"Apertura de caja {drawer.id} cerró {forced} caja(s) que seguían abiertas")
        logger.info(f"Caja {drawer.id} abierta por usuario {user_id} con fondo {opening_float}")
        return drawer

    def get_open(self) -> Optional[CashDrawer]:
        return self.db.query(CashDrawer).filter(
            CashDrawer.status == DrawerStatus.ABIERTA
        ).order_by(CashDrawer.opened_at.desc()).first()

    def close_drawer(self, data: CashDrawerClose) -> CashDrawer:
        """
        Corte de caja.

        La actualización se condiciona a que la caja siga abierta; si un
        cierre concurrente la tomó primero, no se modifica nada.
        """
        try:
            drawer = self.get_open()
            if not drawer:
                raise NoOpenDrawerError()

            now = self.clock()
            gross_sales = compute_gross_sales(
                data.total_cash, data.total_card, data.total_transfer,
                data.tigo_balance, data.claro_balance
            )
            shift = int(get_shift(now))

            updated = self.db.query(CashDrawer).filter(
                CashDrawer.id == drawer.id,
                CashDrawer.status == DrawerStatus.ABIERTA
            ).update({
                CashDrawer.total_cash: data.total_cash,
                CashDrawer.total_card: data.total_card,
                CashDrawer.total_transfer: data.total_transfer,
                CashDrawer.tigo_balance: data.tigo_balance,
                CashDrawer.claro_balance: data.claro_balance,
                CashDrawer.shortage: data.shortage,
                CashDrawer.gross_sales: gross_sales,
                CashDrawer.shift: shift,
                CashDrawer.closed_at: now,
                CashDrawer.status: DrawerStatus.CERRADA
            }, synchronize_session=False)

            if updated == 0:
                raise NoOpenDrawerError()

            self.db.commit()
            self.db.refresh(drawer)

        except POSError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Rollback al cerrar caja: {e}")
            raise StorageError(f"Error al cerrar caja: {str(e)}", cause=e)

        logger.info(f"Caja {drawer.id} cerrada: turno {shift}, venta bruta {gross_sales}")
        return drawer

    def get_last_closing(self) -> Optional[CashDrawer]:
        """Último corte registrado (las cajas cerradas por una nueva apertura no cuentan)"""
        return self.db.query(CashDrawer).filter(
            CashDrawer.closed_at.isnot(None)
        ).order_by(CashDrawer.closed_at.desc(), CashDrawer.id.desc()).first()
