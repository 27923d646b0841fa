"""
Tests para el módulo de caja

Cubren:
- Clasificación de turnos en los bordes de cada horario
- Cálculo de venta bruta del corte
- Máquina de estados abierta/cerrada (una sola caja abierta)
- Endpoints /api/caja/*
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from sqlalchemy.exc import IntegrityError

from pos_api.common.exceptions import NoOpenDrawerError, ConflictError
from pos_api.modules.pos.models import CashDrawer, DrawerStatus
from pos_api.modules.pos.schemas import CashDrawerClose
from pos_api.modules.pos.services import CashDrawerService, compute_gross_sales
from pos_api.modules.pos.shifts import get_shift, Shift


# 2024-01-01 fue lunes
MONDAY = datetime(2024, 1, 1)
WEEKDAY_OFFSETS = {"lunes": 0, "martes": 1, "miercoles": 2, "jueves": 3,
                   "viernes": 4, "sabado": 5, "domingo": 6}


def at(day: str, minutes: int) -> datetime:
    return MONDAY + timedelta(days=WEEKDAY_OFFSETS[day], minutes=minutes)


def fixed_clock(moment: datetime):
    return lambda: moment


# ===== TESTS DE TURNOS =====

class TestShiftClassifier:
    """Tests para get_shift"""

    @pytest.mark.parametrize("day", ["lunes", "martes", "miercoles", "jueves"])
    @pytest.mark.parametrize("minutes,expected", [
        (0, 1),
        (479, 1),
        (480, 1),
        (899, 1),
        (900, 1),
        (959, 1),
        (960, 2),
        (1199, 2),
        (1200, 2),
        (1259, 2),
        (1260, 2),
        (1261, 1),
        (1439, 1),
    ])
    def test_monday_to_thursday(self, day, minutes, expected):
        """Lunes a jueves: día hasta las 16:00, noche hasta las 21:00"""
        assert get_shift(at(day, minutes)) == expected

    @pytest.mark.parametrize("day", ["viernes", "sabado"])
    @pytest.mark.parametrize("minutes", [0, 479, 480, 899, 900, 959, 960, 1199, 1200, 1201, 1260, 1261, 1439])
    def test_friday_and_saturday_always_day(self, day, minutes):
        """Viernes y sábado todo es turno 1"""
        assert get_shift(at(day, minutes)) == Shift.DIA

    @pytest.mark.parametrize("minutes,expected", [
        (0, 1),
        (479, 1),
        (480, 2),
        (899, 2),
        (900, 1),
        (959, 1),
        (960, 1),
        (1199, 1),
        (1200, 1),
        (1259, 1),
        (1260, 1),
        (1261, 1),
    ])
    def test_sunday(self, minutes, expected):
        """Domingo: noche por la mañana, día por la tarde"""
        assert get_shift(at("domingo", minutes)) == expected

    def test_deterministic(self):
        moment = at("jueves", 1000)
        assert get_shift(moment) == get_shift(moment) == Shift.NOCHE

    def test_ignores_seconds(self):
        assert get_shift(at("lunes", 959) + timedelta(seconds=59)) == Shift.DIA


# ===== TESTS DE CÁLCULO DE CORTE =====

class TestGrossSales:
    """Tests para compute_gross_sales"""

    def test_wallets_count_as_cash(self):
        """6000 efectivo + 500 tigo + 300 claro - 5000 de fondo = 1800"""
        result = compute_gross_sales(
            Decimal("6000"), Decimal("0"), Decimal("0"), Decimal("500"), Decimal("300")
        )
        assert result == Decimal("1800")

    def test_card_and_transfer_settlement(self):
        """6000 efectivo + 500 transferencia + 300 tarjeta - 5000 de fondo = 1800"""
        result = compute_gross_sales(
            Decimal("6000"), Decimal("300"), Decimal("500"), Decimal("0"), Decimal("0")
        )
        assert result == Decimal("1800")

    def test_card_and_transfer_added(self):
        result = compute_gross_sales(
            Decimal("5000"), Decimal("250.50"), Decimal("100"), Decimal("0"), Decimal("0")
        )
        assert result == Decimal("350.50")

    def test_below_base_float_is_negative(self):
        result = compute_gross_sales(
            Decimal("4000"), Decimal("0"), Decimal("0"), Decimal("0"), Decimal("0")
        )
        assert result == Decimal("-1000")

    def test_custom_base_float(self):
        result = compute_gross_sales(
            Decimal("1500"), Decimal("0"), Decimal("0"), Decimal("0"), Decimal("0"),
            base_float=Decimal("1000")
        )
        assert result == Decimal("500")


# ===== TESTS DEL SERVICIO =====

class TestCashDrawerService:
    """Tests para CashDrawerService"""

    def test_open_drawer(self, db_session, admin_user):
        service = CashDrawerService(db_session, clock=fixed_clock(at("lunes", 8 * 60)))
        drawer = service.open_drawer(admin_user.id, Decimal("5000"))

        assert drawer.id is not None
        assert drawer.status == DrawerStatus.ABIERTA
        assert drawer.opening_float == Decimal("5000")
        assert service.get_open().id == drawer.id

    def test_open_force_closes_previous(self, db_session, admin_user):
        """Abrir otra caja cierra la anterior sin registrar corte"""
        service = CashDrawerService(db_session)
        first = service.open_drawer(admin_user.id)
        second = service.open_drawer(admin_user.id)

        db_session.expire_all()
        open_rows = db_session.query(CashDrawer).filter(CashDrawer.status == DrawerStatus.ABIERTA).all()
        assert [d.id for d in open_rows] == [second.id]

        previous = db_session.get(CashDrawer, first.id)
        assert previous.status == DrawerStatus.CERRADA
        assert previous.closed_at is None
        assert previous.gross_sales is None

    def test_single_open_enforced_by_index(self, db_session):
        """El índice parcial rechaza una segunda caja abierta insertada directamente"""
        db_session.add(CashDrawer(status=DrawerStatus.ABIERTA, opening_float=0))
        db_session.commit()

        db_session.add(CashDrawer(status=DrawerStatus.ABIERTA, opening_float=0))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_close_without_open_drawer(self, db_session):
        service = CashDrawerService(db_session)
        with pytest.raises(NoOpenDrawerError):
            service.close_drawer(CashDrawerClose(total_cash=Decimal("6000")))

        assert db_session.query(CashDrawer).count() == 0

    def test_no_open_drawer_is_conflict(self):
        error = NoOpenDrawerError()
        assert isinstance(error, ConflictError)
        assert error.status_code == 409
        assert error.message == "No hay caja abierta."

    def test_close_drawer_settlement(self, db_session, admin_user):
        """El corte guarda arqueo, venta bruta y turno del momento del cierre"""
        CashDrawerService(db_session, clock=fixed_clock(at("lunes", 16 * 60))).open_drawer(admin_user.id)

        service = CashDrawerService(db_session, clock=fixed_clock(at("lunes", 20 * 60 + 45)))
        drawer = service.close_drawer(CashDrawerClose(
            total_cash=Decimal("6000"),
            total_card=Decimal("0"),
            total_transfer=Decimal("0"),
            tigo_balance=Decimal("500"),
            claro_balance=Decimal("300"),
            shortage=Decimal("20")
        ))

        assert drawer.status == DrawerStatus.CERRADA
        assert drawer.gross_sales == Decimal("1800")
        assert drawer.shift == Shift.NOCHE
        assert drawer.shortage == Decimal("20")
        assert drawer.closed_at == at("lunes", 20 * 60 + 45)
        assert service.get_open() is None

    def test_close_drawer_card_and_transfer(self, db_session, admin_user):
        CashDrawerService(db_session, clock=fixed_clock(at("martes", 8 * 60))).open_drawer(admin_user.id)

        drawer = CashDrawerService(db_session, clock=fixed_clock(at("martes", 15 * 60))).close_drawer(
            CashDrawerClose(
                total_cash=Decimal("6000"),
                total_card=Decimal("300"),
                total_transfer=Decimal("500"),
                tigo_balance=Decimal("0"),
                claro_balance=Decimal("0")
            )
        )

        assert drawer.gross_sales == Decimal("1800")
        assert drawer.total_card == Decimal("300")
        assert drawer.total_transfer == Decimal("500")

    def test_second_close_fails(self, db_session, admin_user):
        service = CashDrawerService(db_session)
        service.open_drawer(admin_user.id)
        service.close_drawer(CashDrawerClose(total_cash=Decimal("5000")))

        with pytest.raises(NoOpenDrawerError):
            service.close_drawer(CashDrawerClose(total_cash=Decimal("9000")))

    def test_close_loses_race(self, db_session, admin_user, monkeypatch):
        """Si otra petición cerró la caja entre la lectura y la actualización, no se toca nada"""
        service = CashDrawerService(db_session)
        drawer = service.open_drawer(admin_user.id)

        stale = db_session.get(CashDrawer, drawer.id)
        db_session.query(CashDrawer).filter(CashDrawer.id == drawer.id).update(
            {CashDrawer.status: DrawerStatus.CERRADA}, synchronize_session=False
        )
        db_session.commit()
        monkeypatch.setattr(service, "get_open", lambda: stale)

        with pytest.raises(NoOpenDrawerError):
            service.close_drawer(CashDrawerClose(total_cash=Decimal("6000")))

        db_session.expire_all()
        assert db_session.get(CashDrawer, drawer.id).gross_sales is None

    def test_last_closing(self, db_session, admin_user):
        service = CashDrawerService(db_session, clock=fixed_clock(at("martes", 10 * 60)))
        assert service.get_last_closing() is None

        service.open_drawer(admin_user.id)
        service.close_drawer(CashDrawerClose(total_cash=Decimal("5200")))

        later = CashDrawerService(db_session, clock=fixed_clock(at("martes", 18 * 60)))
        later.open_drawer(admin_user.id)
        later.close_drawer(CashDrawerClose(total_cash=Decimal("5900"), total_card=Decimal("100")))

        # Una caja abierta y luego forzada a cerrar no cuenta como corte
        later.open_drawer(admin_user.id)
        later.open_drawer(admin_user.id)

        last = service.get_last_closing()
        assert last.gross_sales == Decimal("1000")
        assert last.shift == Shift.NOCHE


# ===== TESTS DE ENDPOINTS =====

class TestCashDrawerEndpoints:
    """Tests para /api/caja"""

    def test_requires_authentication(self, client):
        response = client.post("/api/caja/abrir", json={"opening_float": 5000})
        assert response.status_code == 401
        assert response.json()["ok"] is False

    def test_open_and_query(self, client, auth_headers, admin_user):
        response = client.post("/api/caja/abrir", json={"opening_float": 5000}, headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["message"] == "Caja abierta correctamente."

        response = client.get("/api/caja/abierta", headers=auth_headers)
        drawer = response.json()["drawer"]
        assert drawer["id"] == body["drawer_id"]
        assert drawer["status"] == "abierta"
        assert drawer["opened_by"] == admin_user.id

    def test_no_open_drawer(self, client, auth_headers):
        response = client.get("/api/caja/abierta", headers=auth_headers)
        assert response.json() == {"ok": True, "drawer": None}

    def test_close_without_open_drawer(self, client, auth_headers):
        response = client.post("/api/caja/cerrar", json={"total_cash": 6000}, headers=auth_headers)
        assert response.status_code == 409
        assert response.json() == {"ok": False, "error": "No hay caja abierta."}

    def test_close_and_last_closing(self, client, auth_headers):
        client.post("/api/caja/abrir", json={"opening_float": 5000}, headers=auth_headers)

        response = client.post("/api/caja/cerrar", json={
            "total_cash": 6000,
            "total_card": 0,
            "total_transfer": 0,
            "tigo_balance": 500,
            "claro_balance": 300,
            "shortage": 0
        }, headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert Decimal(str(body["gross_sales"])) == Decimal("1800")
        assert body["shift"] in (1, 2)

        response = client.get("/api/caja/ultimo-corte-info", headers=auth_headers)
        closing = response.json()["closing"]
        assert Decimal(str(closing["gross_sales"])) == Decimal("1800")
        assert Decimal(str(closing["tigo_balance"])) == Decimal("500")

    def test_negative_amount_rejected(self, client, auth_headers):
        client.post("/api/caja/abrir", json={}, headers=auth_headers)
        response = client.post("/api/caja/cerrar", json={"total_cash": -1}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["ok"] is False
