"""
Modelos de ventas.

Sale es inmutable una vez creada; solo cambia el estado de su factura
(pendiente -> generada) cuando el PDF queda escrito en el almacén.
"""
from pos_api.database.database import Base
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Numeric, Enum
from sqlalchemy.orm import relationship
from pos_api.common.clock import local_now
import enum


class SaleStatus(str, enum.Enum):
    COMPLETADA = "completada"


class InvoiceStatus(str, enum.Enum):
    PENDIENTE = "pendiente"   # Venta confirmada, PDF aún no escrito
    GENERADA = "generada"     # PDF escrito y confirmado en el almacén


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_number = Column(Integer, unique=True, nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    date = Column(DateTime, nullable=False, default=local_now)
    payment_method = Column(String(30), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    final_total = Column(Numeric(12, 2), nullable=False)
    status = Column(
        Enum(SaleStatus, name="sale_status", values_callable=_enum_values),
        nullable=False, default=SaleStatus.COMPLETADA
    )

    # Datos impresos en la factura
    customer_name = Column(String(150), nullable=True)
    customer_rtn = Column(String(30), nullable=True)
    seller_name = Column(String(120), nullable=True)

    invoice_status = Column(
        Enum(InvoiceStatus, name="invoice_status", values_callable=_enum_values),
        nullable=False, default=InvoiceStatus.PENDIENTE, index=True
    )
    invoice_file = Column(String(255), nullable=True)

    # Relationships
    details = relationship("SaleDetail", back_populates="sale", cascade="all, delete-orphan",
                           order_by="SaleDetail.id")


class SaleDetail(Base):
    __tablename__ = "sale_details"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True, index=True)  # NULL en servicios
    item_code = Column(String(30), nullable=False)  # ID tal como lo envió la caja ("12", "S3")
    is_service = Column(Boolean, nullable=False, default=False)
    description = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)

    # Relationships
    sale = relationship("Sale", back_populates="details")
