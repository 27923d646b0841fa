"""
Modelo de caja.

Solo puede existir una caja abierta a la vez: la apertura cierra las que
queden abiertas y un índice único parcial lo garantiza en el almacén.
"""
from pos_api.database.database import Base
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Numeric, Enum, Index, text
from sqlalchemy.orm import relationship
from pos_api.common.mixins import TimestampMixin
from pos_api.common.clock import local_now
import enum


class DrawerStatus(str, enum.Enum):
    ABIERTA = "abierta"
    CERRADA = "cerrada"


class CashDrawer(Base, TimestampMixin):
    __tablename__ = "cash_drawer"

    id = Column(Integer, primary_key=True, autoincrement=True)
    opened_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    opened_at = Column(DateTime, nullable=False, default=local_now)
    opening_float = Column(Numeric(12, 2), nullable=False, default=0)

    # Arqueo (se llena al cerrar)
    closed_at = Column(DateTime, nullable=True, index=True)
    total_cash = Column(Numeric(12, 2), nullable=True)
    total_card = Column(Numeric(12, 2), nullable=True)
    total_transfer = Column(Numeric(12, 2), nullable=True)
    tigo_balance = Column(Numeric(12, 2), nullable=True)
    claro_balance = Column(Numeric(12, 2), nullable=True)
    shortage = Column(Numeric(12, 2), nullable=True)
    gross_sales = Column(Numeric(12, 2), nullable=True)
    shift = Column(Integer, nullable=True)

    status = Column(
        Enum(DrawerStatus, name="drawer_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False, default=DrawerStatus.ABIERTA
    )

    # Relationships
    opened_by_user = relationship("User", foreign_keys=[opened_by])

    __table_args__ = (
        Index(
            "uq_cash_drawer_single_open",
            "status",
            unique=True,
            postgresql_where=text("status = 'abierta'"),
            sqlite_where=text("status = 'abierta'"),
        ),
    )
