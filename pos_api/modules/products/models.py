"""
Modelos del catálogo de productos y de la bitácora de inventario.

- Product: producto con existencia y mínimo de reorden
- InventoryMovement: movimiento ENTRADA/SALIDA (solo se agrega, nunca se edita)
- InventoryLog: copia paralela del movimiento para auditoría
- InventoryAlert: alerta de stock bajo/agotado pendiente de atención
"""
from pos_api.database.database import Base
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Numeric, Text, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from pos_api.common.mixins import TimestampMixin
from pos_api.common.clock import local_now
import enum


class MovementType(str, enum.Enum):
    """Tipos de movimiento de inventario"""
    ENTRADA = "ENTRADA"   # Ingreso de mercadería
    SALIDA = "SALIDA"     # Venta o baja


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)


class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    barcode = Column(String(60), nullable=False, unique=True, index=True)
    name = Column(String(150), nullable=False)
    description = Column(String(255), nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    stock = Column(Integer, nullable=False, default=0)  # Puede quedar negativo por ventas sin existencia
    stock_minimum = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    wholesale_price = Column(Numeric(12, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    category = relationship("Category", lazy="joined")
    movements = relationship("InventoryMovement", back_populates="product")

    @property
    def alert_level(self) -> str:
        if self.stock == 0:
            return "agotado"
        if self.stock <= self.stock_minimum:
            return "bajo"
        return "normal"


class InventoryMovement(Base):
    __tablename__ = "inventory_movements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    movement_type = Column(Enum(MovementType, name="movement_type"), nullable=False)
    quantity = Column(Integer, nullable=False)  # Siempre positivo; el signo lo da el tipo
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    reason = Column(String(255), nullable=True)
    date = Column(DateTime, nullable=False, default=local_now)

    # Relationships
    product = relationship("Product", back_populates="movements")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_inventory_movement_quantity_positive"),
    )


class InventoryLog(Base):
    __tablename__ = "inventory_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    movement_type = Column(Enum(MovementType, name="movement_type"), nullable=False)
    quantity = Column(Integer, nullable=False)
    detail = Column(Text, nullable=True)
    date = Column(DateTime, nullable=False, default=local_now)


class InventoryAlert(Base):
    __tablename__ = "inventory_alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    stock_at_creation = Column(Integer, nullable=False)
    message = Column(String(255), nullable=False)
    date = Column(DateTime, nullable=False, default=local_now)
    attended = Column(Boolean, nullable=False, default=False, index=True)

    # Relationships
    product = relationship("Product")
