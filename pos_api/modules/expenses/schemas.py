from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from datetime import date, datetime
from typing import List, Optional


class ExpenseCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., ge=0)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError('La descripción no puede estar vacía')
        return cleaned


class ExpenseUpdate(ExpenseCreate):
    pass


class ExpenseOut(BaseModel):
    id: int
    date: date
    description: str
    amount: Decimal
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ExpenseList(BaseModel):
    ok: bool = True
    expenses: List[ExpenseOut]


class ExpenseResponse(BaseModel):
    ok: bool = True
    expense: ExpenseOut
