from pos_api.database.database import Base
from sqlalchemy import Column, Integer, String, Boolean, Numeric
from pos_api.common.mixins import TimestampMixin


class Service(Base, TimestampMixin):
    """
    Servicios que se venden sin existencia (reparaciones, instalaciones).

    En las líneas de venta se identifican con el prefijo S, ej. "S12".
    """
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False, index=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    fixed_price = Column(Boolean, nullable=False, default=True)  # False: el cajero define el precio
    is_active = Column(Boolean, nullable=False, default=True)

    @property
    def line_id(self) -> str:
        return f"S{self.id}"
