"""
Pipeline de ventas.

La venta, sus detalles y las salidas de inventario se confirman en una sola
transacción. El PDF de la factura se genera después del commit; si el
almacén falla, la venta queda con factura "pendiente" y puede regenerarse.
"""
from typing import Callable, Dict, List, Tuple
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from pos_api.common.clock import local_now
from pos_api.common.exceptions import POSError, NotFoundError, ConflictError, StorageError
from pos_api.modules.auth.models import User
from pos_api.modules.products.models import MovementType
from pos_api.modules.inventory.service import StockLedger
from pos_api.modules.sales.models import Sale, SaleDetail, SaleStatus, InvoiceStatus
from pos_api.modules.sales.schemas import SaleCreate
from pos_api.modules.sales.invoice_pdf import invoice_from_sale, render_invoice
from pos_api.modules.sales.storage import InvoiceStorage

logger = logging.getLogger(__name__)

SALE_REASON = "Venta"
SALE_LOG_DETAIL = "Venta POS"


class SaleService:
    """Service for registering sales and producing their invoices."""

    def __init__(self, db: Session, storage: InvoiceStorage,
                 clock: Callable[[], datetime] = local_now):
        self.db = db
        self.storage = storage
        self.clock = clock

    def register_sale(self, data: SaleCreate, seller: User) -> Sale:
        """
        Registrar una venta completa.

        1. Venta + detalles + salidas de inventario (una transacción)
        2. Factura PDF escrita y confirmada en el almacén
        """
        sale = self._record_sale(data, seller)

        try:
            self.write_invoice(sale)
        except StorageError as e:
            logger.error(f"Venta {sale.invoice_number} registrada con factura pendiente: {e.message}")
            raise StorageError(
                f"Venta registrada (factura {sale.invoice_number}) pero no se pudo generar el PDF: {e.message}",
                cause=e
            )

        return sale

    def _record_sale(self, data: SaleCreate, seller: User) -> Sale:
        try:
            sale = Sale(
                user_id=seller.id,
                date=self.clock(),
                payment_method=data.payment_method,
                total=data.total,
                final_total=data.total,
                status=SaleStatus.COMPLETADA,
                customer_name=data.customer_name,
                customer_rtn=data.customer_rtn,
                seller_name=seller.name,
                invoice_status=InvoiceStatus.PENDIENTE
            )
            self.db.add(sale)
            self.db.flush()

            # Número de factura = ID de la venta (único y creciente)
            sale.invoice_number = sale.id

            ledger = StockLedger(self.db)
            ledger.lock_products(item.product_id for item in data.items if not item.is_service)
            for item in data.items:
                if not item.is_service:
                    ledger.record_movement(
                        item.product_id, MovementType.SALIDA, item.quantity,
                        seller.id, SALE_REASON, detail=SALE_LOG_DETAIL
                    )

                self.db.add(SaleDetail(
                    sale_id=sale.id,
                    product_id=None if item.is_service else item.product_id,
                    item_code=str(item.product_id),
                    is_service=item.is_service,
                    description=item.name,
                    quantity=item.quantity,
                    unit_price=item.price,
                    line_total=item.line_total
                ))

            self.db.commit()
            self.db.refresh(sale)

        except POSError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Rollback de venta: {e}")
            raise StorageError(f"Error al registrar venta: {str(e)}", cause=e)

        logger.info(
            f"Venta {sale.invoice_number} registrada por usuario {seller.id}: "
            f"{len(data.items)} líneas, total {sale.total}"
        )
        return sale

    def write_invoice(self, sale: Sale) -> Sale:
        """Generar y guardar el PDF; marca la factura como generada solo si el almacén lo confirma"""
        document = invoice_from_sale(sale)
        try:
            content = render_invoice(document)
        except Exception as e:
            raise StorageError(f"Error al generar PDF de factura {sale.invoice_number}: {str(e)}", cause=e)

        file_ref = self.storage.save(document.file_name, content)

        try:
            sale.invoice_status = InvoiceStatus.GENERADA
            sale.invoice_file = file_ref
            self.db.commit()
            self.db.refresh(sale)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al actualizar estado de factura: {str(e)}", cause=e)

        logger.info(f"Factura {sale.invoice_number} generada ({file_ref})")
        return sale

    def get_sale(self, invoice_number: int) -> Sale:
        sale = self.db.query(Sale).filter(Sale.invoice_number == invoice_number).first()
        if not sale:
            raise NotFoundError("Venta no encontrada")
        return sale

    def regenerate_invoice(self, invoice_number: int) -> Sale:
        """Volver a generar la factura de una venta; sobrescribir el mismo archivo es seguro"""
        return self.write_invoice(self.get_sale(invoice_number))

    def pending_invoices(self, limit: int = 50) -> List[Sale]:
        return self.db.query(Sale).filter(
            Sale.invoice_status == InvoiceStatus.PENDIENTE
        ).order_by(Sale.id.asc()).limit(limit).all()

    def regenerate_pending(self, limit: int = 50) -> Dict[str, int]:
        """Reintentar las facturas pendientes; un fallo no detiene a las demás"""
        regenerated = 0
        failed = 0
        for sale in self.pending_invoices(limit):
            try:
                self.write_invoice(sale)
                regenerated += 1
            except StorageError as e:
                failed += 1
                logger.error(f"No se pudo regenerar la factura {sale.invoice_number}: {e.message}")
        return {"regenerated": regenerated, "failed": failed}

    def load_invoice(self, invoice_number: int) -> Tuple[str, bytes]:
        sale = self.get_sale(invoice_number)
        if sale.invoice_status != InvoiceStatus.GENERADA or not sale.invoice_file:
            raise ConflictError("La factura aún no ha sido generada")
        return f"{sale.invoice_number}.pdf", self.storage.load(sale.invoice_file)
