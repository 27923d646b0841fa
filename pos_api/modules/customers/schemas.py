from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from datetime import datetime
from typing import List, Optional


class CreditCustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    phone: Optional[str] = Field(None, max_length=30)
    amount: Decimal = Field(default=Decimal("0"), ge=0, description="Deuda inicial")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError('El nombre no puede estar vacío')
        return cleaned


class CreditAssign(BaseModel):
    amount: Decimal = Field(..., ge=0)


class DebtAdjust(BaseModel):
    """Ajuste de deuda: positivo aumenta, negativo abona"""
    amount: Decimal


class CreditCustomerOut(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    debt_amount: Decimal
    credit_date: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CreditCustomerList(BaseModel):
    ok: bool = True
    customers: List[CreditCustomerOut]


class CreditCustomerResponse(BaseModel):
    ok: bool = True
    customer: CreditCustomerOut
