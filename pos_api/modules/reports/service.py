"""
Reportes de ventas por turno.

Se alimentan de los cortes de caja: cada caja cerrada aporta su venta bruta
al par (fecha de cierre, turno).
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, List, Optional
from sqlalchemy.orm import Session

from pos_api.core.config import settings
from pos_api.common.clock import local_now
from pos_api.common.exceptions import ValidationError
from pos_api.modules.pos.models import CashDrawer, DrawerStatus
from pos_api.modules.pos.shifts import Shift

SHIFT_REPORT_DAYS = 7
GENERAL_REPORT_DAYS = 30


@dataclass
class ShiftSales:
    date: date
    shift: int
    gross_sales: Decimal


@dataclass
class DailySummary:
    date: date
    day_shift: Decimal = Decimal("0")
    night_shift: Decimal = Decimal("0")
    target: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.day_shift + self.night_shift

    @property
    def met(self) -> bool:
        return self.total >= self.target


@dataclass
class GeneralSummary:
    days: int
    rows: List[DailySummary] = field(default_factory=list)

    @property
    def total_day(self) -> Decimal:
        return sum((r.day_shift for r in self.rows), Decimal("0"))

    @property
    def total_night(self) -> Decimal:
        return sum((r.night_shift for r in self.rows), Decimal("0"))

    @property
    def total(self) -> Decimal:
        return self.total_day + self.total_night


class ReportService:
    """Service for shift and daily sales reports."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = local_now):
        self.db = db
        self.clock = clock

    def _closed_since(self, days: int, newest_first: bool) -> List[CashDrawer]:
        if days is None or days <= 0:
            raise ValidationError("La cantidad de días debe ser mayor a cero")
        cutoff = self.clock() - timedelta(days=days)

        query = self.db.query(CashDrawer).filter(
            CashDrawer.status == DrawerStatus.CERRADA,
            CashDrawer.closed_at.isnot(None),
            CashDrawer.closed_at >= cutoff
        )
        if newest_first:
            return query.order_by(CashDrawer.closed_at.desc(), CashDrawer.shift.asc()).all()
        return query.order_by(CashDrawer.closed_at.asc(), CashDrawer.shift.asc()).all()

    def shift_report(self, days: int = SHIFT_REPORT_DAYS) -> List[ShiftSales]:
        """Venta bruta de cada corte en los últimos `days` días, del más reciente al más antiguo"""
        return [
            ShiftSales(date=d.closed_at.date(), shift=d.shift, gross_sales=Decimal(d.gross_sales or 0))
            for d in self._closed_since(days, newest_first=True)
        ]

    def general_summary(self, days: int = GENERAL_REPORT_DAYS,
                        target: Optional[Decimal] = None) -> GeneralSummary:
        """Totales por día (turno día / turno noche) contra la meta diaria"""
        target = settings.SALES_TARGET if target is None else target
        by_date: Dict[date, DailySummary] = {}

        for drawer in self._closed_since(days, newest_first=False):
            day = drawer.closed_at.date()
            summary = by_date.setdefault(day, DailySummary(date=day, target=target))
            amount = Decimal(drawer.gross_sales or 0)
            if drawer.shift == Shift.DIA:
                summary.day_shift += amount
            elif drawer.shift == Shift.NOCHE:
                summary.night_shift += amount

        return GeneralSummary(days=days, rows=list(by_date.values()))
