"""
Libro de existencias (stock ledger).

Cada cambio de stock agrega un InventoryMovement, su copia en InventoryLog y
actualiza la existencia del producto bajo bloqueo de fila. Las alertas se
evalúan con la existencia resultante antes de confirmar.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from pos_api.core.config import settings
from pos_api.common.clock import local_now
from pos_api.common.exceptions import POSError, ValidationError, ConflictError, StorageError
from pos_api.modules.products.models import Product, InventoryMovement, InventoryLog, MovementType
from pos_api.modules.inventory.alerts import AlertManager

logger = logging.getLogger(__name__)


@dataclass
class MovementResult:
    product_id: int
    movement_type: MovementType
    quantity: int
    stock: int
    stock_minimum: int
    alert_raised: bool
    alerts_cleared: int


class StockLedger:
    """Aplica movimientos de inventario de forma atómica"""

    def __init__(self, db: Session, alerts: Optional[AlertManager] = None,
                 allow_negative: Optional[bool] = None):
        self.db = db
        self.alerts = alerts or AlertManager(db)
        self.allow_negative = settings.ALLOW_NEGATIVE_STOCK if allow_negative is None else allow_negative

    def apply_movement(self, product_id: int, movement_type: MovementType, quantity: int,
                       user_id: Optional[int], reason: Optional[str]) -> MovementResult:
        """Registrar un movimiento en su propia transacción (commit o rollback completo)"""
        try:
            result = self.record_movement(product_id, movement_type, quantity, user_id, reason)
            self.db.commit()
        except POSError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Rollback de movimiento {movement_type.value} producto {product_id}: {e}")
            raise StorageError(f"Error al registrar movimiento: {str(e)}", cause=e)

        logger.info(
            f"{movement_type.value} de {quantity} en producto {product_id}; stock actual {result.stock}"
        )
        return result

    def lock_products(self, product_ids: Iterable[int]) -> List[int]:
        """
        Bloquear las filas de varios productos en orden ascendente de ID.

        Dos transacciones que tocan los mismos productos esperan su turno en
        lugar de bloquearse mutuamente. Devuelve los IDs bloqueados.
        """
        ids = sorted({product_id for product_id in product_ids if product_id is not None})
        if not ids:
            return []
        rows = self.db.query(Product.id).filter(
            Product.id.in_(ids)
        ).order_by(Product.id.asc()).with_for_update(of=Product).all()
        return [row.id for row in rows]

    def record_movement(self, product_id: int, movement_type: MovementType, quantity: int,
                        user_id: Optional[int], reason: Optional[str],
                        detail: Optional[str] = None) -> MovementResult:
        """
        Registrar un movimiento dentro de la transacción del llamador (sin commit).

        Si algo falla, quien llama debe hacer rollback.
        """
        if not isinstance(movement_type, MovementType):
            raise ValidationError("Tipo de movimiento inválido")
        if quantity is None or isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("La cantidad debe ser mayor a cero")
        if product_id is None:
            raise ValidationError("Debe enviar producto_id")

        product = self.db.query(Product).filter(
            Product.id == product_id
        ).with_for_update(of=Product).first()

        if not product:
            raise ValidationError(f"Producto no encontrado: {product_id}")

        if (movement_type == MovementType.SALIDA and not self.allow_negative
                and product.stock - quantity < 0):
            raise ConflictError(
                f"Stock insuficiente para '{product.name}'. "
                f"Disponible: {product.stock}, Solicitado: {quantity}"
            )

        now = local_now()
        self.db.add(InventoryMovement(
            product_id=product_id,
            movement_type=movement_type,
            quantity=quantity,
            user_id=user_id,
            reason=reason,
            date=now
        ))
        self.db.add(InventoryLog(
            product_id=product_id,
            user_id=user_id,
            movement_type=movement_type,
            quantity=quantity,
            detail=detail if detail is not None else reason,
            date=now
        ))

        delta = quantity if movement_type == MovementType.ENTRADA else -quantity
        product.stock = product.stock + delta
        self.db.flush()

        stock = product.stock
        stock_minimum = product.stock_minimum
        alert_raised = False
        alerts_cleared = 0

        if stock <= stock_minimum:
            alert_raised = self.alerts.raise_if_low(product, stock, stock_minimum) is not None
        elif movement_type == MovementType.ENTRADA:
            alerts_cleared = self.alerts.clear_outstanding(product_id)

        return MovementResult(
            product_id=product_id,
            movement_type=movement_type,
            quantity=quantity,
            stock=stock,
            stock_minimum=stock_minimum,
            alert_raised=alert_raised,
            alerts_cleared=alerts_cleared
        )

    def movement_history(self, product_id: int) -> List[InventoryMovement]:
        if not product_id:
            raise ValidationError("Debe enviar producto_id")
        return self.db.query(InventoryMovement).filter(
            InventoryMovement.product_id == product_id
        ).order_by(InventoryMovement.date.desc(), InventoryMovement.id.desc()).all()
