"""
Alertas de stock bajo y agotado.

Las alertas no tienen restricción de unicidad en la base: la regla de una
alerta pendiente por producto depende de cómo se llame a este servicio.
"""
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from pos_api.core.config import settings
from pos_api.common.clock import local_now
from pos_api.common.exceptions import NotFoundError
from pos_api.modules.products.models import InventoryAlert, Product

logger = logging.getLogger(__name__)


def alert_message(product_name: str, stock: int, stock_minimum: int) -> Optional[str]:
    """Texto de la alerta para el stock dado, o None si no corresponde alerta"""
    if stock == 0:
        return f"Producto agotado: {product_name}"
    if stock <= stock_minimum:
        return f"Stock bajo en {product_name}. Stock actual: {stock}"
    return None


class AlertManager:
    """Crea, limpia y atiende alertas de inventario. No hace commit."""

    def __init__(self, db: Session, deduplicate: Optional[bool] = None):
        self.db = db
        self.deduplicate = settings.ALERT_DEDUPLICATE if deduplicate is None else deduplicate

    def raise_if_low(self, product: Product, stock: int, stock_minimum: int) -> Optional[InventoryAlert]:
        message = alert_message(product.name, stock, stock_minimum)
        if message is None:
            return None

        if self.deduplicate:
            pending = self.db.query(InventoryAlert).filter(
                InventoryAlert.product_id == product.id,
                InventoryAlert.attended == False
            ).order_by(InventoryAlert.id.desc()).first()
            if pending:
                pending.stock_at_creation = stock
                pending.message = message
                pending.date = local_now()
                self.db.flush()
                return pending

        alert = InventoryAlert(
            product_id=product.id,
            stock_at_creation=stock,
            message=message,
            date=local_now(),
            attended=False
        )
        self.db.add(alert)
        self.db.flush()
        logger.warning(message)
        return alert

    def clear_outstanding(self, product_id: int) -> int:
        """Marca como atendidas todas las alertas pendientes del producto"""
        cleared = self.db.query(InventoryAlert).filter(
            InventoryAlert.product_id == product_id,
            InventoryAlert.attended == False
        ).update({InventoryAlert.attended: True}, synchronize_session="fetch")
        if cleared:
            logger.info(f"{cleared} alerta(s) atendidas para producto {product_id}")
        return cleared

    def mark_attended(self, alert_id: int) -> InventoryAlert:
        alert = self.db.query(InventoryAlert).filter(InventoryAlert.id == alert_id).first()
        if not alert:
            raise NotFoundError("Alerta no encontrada")
        if not alert.attended:
            alert.attended = True
            self.db.flush()
        return alert

    def list_unattended(self) -> List[InventoryAlert]:
        return self.db.query(InventoryAlert).join(Product).filter(
            InventoryAlert.attended == False
        ).order_by(InventoryAlert.date.desc(), InventoryAlert.id.desc()).all()
