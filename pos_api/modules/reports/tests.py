"""
Tests para reportes de ventas por turno

Los cortes se insertan directamente con fecha de cierre conocida y el
servicio usa un reloj fijo (2024-01-10 12:00).
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from pos_api.common.exceptions import ValidationError
from pos_api.modules.pos.models import CashDrawer, DrawerStatus
from pos_api.modules.reports.pdf import render_general_report
from pos_api.modules.reports.service import ReportService, GeneralSummary, DailySummary

NOW = datetime(2024, 1, 10, 12, 0)


def closed_drawer(closed_at, shift, gross_sales):
    return CashDrawer(
        opening_float=Decimal("5000"),
        status=DrawerStatus.CERRADA,
        closed_at=closed_at,
        shift=shift,
        gross_sales=gross_sales
    )


@pytest.fixture
def closings(db_session):
    db_session.add_all([
        closed_drawer(datetime(2023, 12, 1, 15, 0), 1, Decimal("9999")),
        closed_drawer(datetime(2024, 1, 8, 20, 0), 2, Decimal("300")),
        closed_drawer(datetime(2024, 1, 9, 15, 0), 1, Decimal("1000")),
        closed_drawer(datetime(2024, 1, 9, 20, 30), 2, Decimal("700")),
        # Cerrada a la fuerza al abrir otra: sin corte
        CashDrawer(opening_float=Decimal("5000"), status=DrawerStatus.CERRADA),
    ])
    db_session.commit()


class TestReportService:
    """Tests para ReportService"""

    def test_shift_report_newest_first(self, db_session, closings):
        rows = ReportService(db_session, clock=lambda: NOW).shift_report(7)

        assert [(r.date, r.shift, r.gross_sales) for r in rows] == [
            (date(2024, 1, 9), 2, Decimal("700")),
            (date(2024, 1, 9), 1, Decimal("1000")),
            (date(2024, 1, 8), 2, Decimal("300")),
        ]

    def test_general_summary(self, db_session, closings):
        summary = ReportService(db_session, clock=lambda: NOW).general_summary(30, target=Decimal("1500"))

        assert [r.date for r in summary.rows] == [date(2024, 1, 8), date(2024, 1, 9)]
        first, second = summary.rows
        assert (first.day_shift, first.night_shift, first.met) == (Decimal("0"), Decimal("300"), False)
        assert (second.day_shift, second.night_shift, second.total) == (Decimal("1000"), Decimal("700"), Decimal("1700"))
        assert second.met is True

        assert summary.total_day == Decimal("1000")
        assert summary.total_night == Decimal("1000")
        assert summary.total == Decimal("2000")

    def test_wide_window_includes_old_closings(self, db_session, closings):
        summary = ReportService(db_session, clock=lambda: NOW).general_summary(60)
        assert summary.total == Decimal("11999")

    def test_empty(self, db_session):
        summary = ReportService(db_session, clock=lambda: NOW).general_summary()
        assert summary.rows == []
        assert summary.total == Decimal("0")

    def test_invalid_window(self, db_session):
        with pytest.raises(ValidationError):
            ReportService(db_session).shift_report(0)

    def test_target_met_on_equal(self):
        row = DailySummary(date=date(2024, 1, 9), day_shift=Decimal("1000"),
                           night_shift=Decimal("500"), target=Decimal("1500"))
        assert row.met is True


class TestReportPdf:
    """Tests para render_general_report"""

    def test_renders_pdf(self):
        summary = GeneralSummary(days=30, rows=[
            DailySummary(date=date(2024, 1, 9), day_shift=Decimal("1000"),
                         night_shift=Decimal("700"), target=Decimal("1500"))
        ])
        content = render_general_report(summary, date(2024, 1, 10))
        assert content.startswith(b"%PDF")

    def test_renders_empty_report(self):
        content = render_general_report(GeneralSummary(days=30), date(2024, 1, 10))
        assert content.startswith(b"%PDF")


class TestReportEndpoints:
    """Tests para /api/reportes/*"""

    def test_shift_report_from_closing(self, client, auth_headers):
        client.post("/api/caja/abrir", json={"opening_float": 5000}, headers=auth_headers)
        client.post("/api/caja/cerrar", json={"total_cash": 6500}, headers=auth_headers)

        response = client.get("/api/reportes/turnos", headers=auth_headers)
        reports = response.json()["reports"]
        assert len(reports) == 1
        assert Decimal(str(reports[0]["gross_sales"])) == Decimal("1500")

    def test_general_report(self, client, auth_headers):
        client.post("/api/caja/abrir", json={"opening_float": 5000}, headers=auth_headers)
        client.post("/api/caja/cerrar", json={"total_cash": 5200, "total_card": 300}, headers=auth_headers)

        body = client.get("/api/reportes/general", headers=auth_headers).json()
        assert body["days"] == 30
        assert len(body["summary"]) == 1
        assert Decimal(str(body["total"])) == Decimal("500")
        assert body["summary"][0]["met"] is False

    def test_general_report_pdf(self, client, auth_headers):
        response = client.get("/api/reportes/general/pdf", headers=auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_invalid_days(self, client, auth_headers):
        response = client.get("/api/reportes/turnos?dias=-3", headers=auth_headers)
        assert response.status_code == 400
