from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from datetime import datetime
from typing import List, Optional, Union

from pos_api.modules.sales.models import InvoiceStatus
from pos_api.modules.sales.utils import is_service_line


class SaleItem(BaseModel):
    """
    Línea de venta enviada por la caja.

    - **product_id**: ID numérico de producto, o "S{id}" para servicios
    """
    product_id: Union[int, str]
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., gt=0)

    @field_validator('product_id')
    @classmethod
    def validate_item_id(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if is_service_line(v):
                return v
            if v.isdigit():
                return int(v)
            raise ValueError('ID de línea inválido; use el ID del producto o S{id} para servicios')
        if v <= 0:
            raise ValueError('ID de producto inválido')
        return v

    @property
    def is_service(self) -> bool:
        return is_service_line(self.product_id)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class SaleCreate(BaseModel):
    items: List[SaleItem] = Field(..., min_length=1)
    total: Decimal = Field(..., ge=0)
    payment_method: str = Field(..., min_length=1, max_length=30)
    customer_name: Optional[str] = Field(None, max_length=150)
    customer_rtn: Optional[str] = Field(None, max_length=30)


class SaleRegistered(BaseModel):
    ok: bool = True
    message: str
    invoice_number: int
    file_name: str


class SaleDetailOut(BaseModel):
    item_code: str
    description: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    model_config = {"from_attributes": True}


class SaleOut(BaseModel):
    id: int
    invoice_number: int
    date: datetime
    payment_method: str
    total: Decimal
    customer_name: Optional[str] = None
    customer_rtn: Optional[str] = None
    seller_name: Optional[str] = None
    invoice_status: InvoiceStatus
    invoice_file: Optional[str] = None
    details: List[SaleDetailOut] = []

    model_config = {"from_attributes": True}


class SaleResponse(BaseModel):
    ok: bool = True
    sale: SaleOut
