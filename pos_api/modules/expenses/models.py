from pos_api.database.database import Base
from sqlalchemy import Column, Integer, String, Date, Numeric
from pos_api.common.mixins import TimestampMixin
from pos_api.common.clock import local_today


class Expense(Base, TimestampMixin):
    """Gastos diarios del negocio"""
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False, default=local_today, index=True)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
