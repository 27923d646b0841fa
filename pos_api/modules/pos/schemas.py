from pydantic import BaseModel, Field
from decimal import Decimal
from datetime import datetime
from typing import Optional

from pos_api.modules.pos.models import DrawerStatus


class CashDrawerOpen(BaseModel):
    """Esquema para abrir caja"""
    opening_float: Decimal = Field(default=Decimal("0"), ge=0, description="Fondo inicial")


class CashDrawerClose(BaseModel):
    """Esquema para el corte de caja"""
    total_cash: Decimal = Field(default=Decimal("0"), ge=0, description="Efectivo contado")
    total_card: Decimal = Field(default=Decimal("0"), ge=0, description="Ventas con tarjeta")
    total_transfer: Decimal = Field(default=Decimal("0"), ge=0, description="Transferencias")
    tigo_balance: Decimal = Field(default=Decimal("0"), ge=0, description="Saldo Tigo Money")
    claro_balance: Decimal = Field(default=Decimal("0"), ge=0, description="Saldo Claro")
    shortage: Decimal = Field(default=Decimal("0"), ge=0, description="Faltante declarado")


class CashDrawerOut(BaseModel):
    id: int
    opened_by: Optional[int] = None
    opened_at: datetime
    opening_float: Decimal
    closed_at: Optional[datetime] = None
    total_cash: Optional[Decimal] = None
    total_card: Optional[Decimal] = None
    total_transfer: Optional[Decimal] = None
    tigo_balance: Optional[Decimal] = None
    claro_balance: Optional[Decimal] = None
    shortage: Optional[Decimal] = None
    gross_sales: Optional[Decimal] = None
    shift: Optional[int] = None
    status: DrawerStatus

    model_config = {"from_attributes": True}


class LastClosingOut(BaseModel):
    closed_at: datetime
    total_cash: Decimal
    total_card: Decimal
    total_transfer: Decimal
    tigo_balance: Decimal
    claro_balance: Decimal
    shortage: Decimal
    gross_sales: Decimal
    shift: int

    model_config = {"from_attributes": True}


class CashDrawerOpened(BaseModel):
    ok: bool = True
    message: str
    drawer_id: int


class CashDrawerClosed(BaseModel):
    ok: bool = True
    message: str
    drawer_id: int
    gross_sales: Decimal
    shift: int


class OpenDrawerResponse(BaseModel):
    ok: bool = True
    drawer: Optional[CashDrawerOut] = None


class LastClosingResponse(BaseModel):
    ok: bool = True
    closing: Optional[LastClosingOut] = None
