from pos_api.database.database import Base
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric
from pos_api.common.mixins import TimestampMixin


class Customer(Base, TimestampMixin):
    """Clientes con crédito en la tienda"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False, index=True)
    phone = Column(String(30), nullable=True)
    has_credit = Column(Boolean, nullable=False, default=False, index=True)
    debt_amount = Column(Numeric(12, 2), nullable=False, default=0)
    credit_date = Column(DateTime, nullable=True)
