from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import List, Optional


class ProductLookupOut(BaseModel):
    id: int
    name: str
    price: Decimal
    barcode: str
    stock: int

    model_config = {"from_attributes": True}


class ProductLookupResult(BaseModel):
    ok: bool = True
    found: bool
    product: Optional[ProductLookupOut] = None


class InventoryProductOut(BaseModel):
    id: int
    barcode: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    stock: int
    stock_minimum: int
    price: Decimal
    wholesale_price: Decimal
    is_active: bool
    alert_level: str


class InventoryList(BaseModel):
    ok: bool = True
    products: List[InventoryProductOut]


class ProductCreate(BaseModel):
    barcode: str = Field(..., min_length=1, max_length=60)
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = Field(None, max_length=255)
    category_id: Optional[int] = None
    stock: int = Field(default=0, ge=0)
    stock_minimum: int = Field(default=0, ge=0)
    price: Decimal = Field(..., ge=0)
    wholesale_price: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator('barcode', 'name')
    @classmethod
    def strip_required(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError('El campo no puede estar vacío')
        return cleaned


class PriceUpdate(BaseModel):
    price: Decimal = Field(..., ge=0)
    wholesale_price: Decimal = Field(default=Decimal("0"), ge=0)


class ProductIdentityUpdate(BaseModel):
    barcode: str = Field(..., min_length=1, max_length=60)
    name: str = Field(..., min_length=1, max_length=150)

    @field_validator('barcode', 'name')
    @classmethod
    def strip_required(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError('Código de barras y nombre son obligatorios')
        return cleaned


class ProductCreated(BaseModel):
    ok: bool = True
    message: str
    product_id: int
