from pydantic import BaseModel
from decimal import Decimal
from datetime import date
from typing import List


class ShiftSalesOut(BaseModel):
    date: date
    shift: int
    gross_sales: Decimal

    model_config = {"from_attributes": True}


class ShiftReport(BaseModel):
    ok: bool = True
    reports: List[ShiftSalesOut]


class DailySummaryOut(BaseModel):
    date: date
    day_shift: Decimal
    night_shift: Decimal
    total: Decimal
    target: Decimal
    met: bool

    model_config = {"from_attributes": True}


class GeneralReport(BaseModel):
    ok: bool = True
    days: int
    summary: List[DailySummaryOut]
    total_day: Decimal
    total_night: Decimal
    total: Decimal
