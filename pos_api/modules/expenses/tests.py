"""
Tests para gastos diarios
"""

from datetime import date
from decimal import Decimal

import pytest

from pos_api.common.exceptions import NotFoundError, ValidationError
from pos_api.modules.expenses.models import Expense
from pos_api.modules.expenses.schemas import ExpenseCreate, ExpenseUpdate
from pos_api.modules.expenses.service import ExpenseService

TODAY = date(2024, 1, 10)


def today():
    return TODAY


@pytest.fixture
def seeded_expenses(db_session):
    db_session.add_all([
        Expense(date=date(2023, 12, 20), description="Alquiler", amount=Decimal("4000")),
        Expense(date=date(2024, 1, 3), description="Agua", amount=Decimal("120")),
        Expense(date=date(2024, 1, 9), description="Limpieza", amount=Decimal("80")),
    ])
    db_session.commit()


class TestExpenseService:
    """Tests para ExpenseService"""

    def test_create_uses_today(self, db_session):
        expense = ExpenseService(db_session, today=today).create(
            ExpenseCreate(description=" Bolsas ", amount=Decimal("45.50"))
        )
        assert expense.date == TODAY
        assert expense.description == "Bolsas"
        assert expense.amount == Decimal("45.50")

    def test_list_recent_window(self, db_session, seeded_expenses):
        expenses = ExpenseService(db_session, today=today).list_recent(7)
        assert [e.description for e in expenses] == ["Agua", "Limpieza"]

    def test_list_wider_window(self, db_session, seeded_expenses):
        expenses = ExpenseService(db_session, today=today).list_recent(30)
        assert [e.description for e in expenses] == ["Alquiler", "Agua", "Limpieza"]

    @pytest.mark.parametrize("days", [0, -1])
    def test_invalid_window(self, db_session, days):
        with pytest.raises(ValidationError):
            ExpenseService(db_session, today=today).list_recent(days)

    def test_update(self, db_session, seeded_expenses):
        service = ExpenseService(db_session, today=today)
        expense = service.list_recent(7)[0]

        updated = service.update(expense.id, ExpenseUpdate(description="Agua potable", amount=Decimal("130")))
        assert updated.description == "Agua potable"
        assert updated.amount == Decimal("130")
        assert updated.date == date(2024, 1, 3)

    def test_delete(self, db_session, seeded_expenses):
        service = ExpenseService(db_session, today=today)
        expense = service.list_recent(7)[0]

        service.delete(expense.id)
        with pytest.raises(NotFoundError):
            service.get(expense.id)


class TestExpenseEndpoints:
    """Tests para /api/reportes/gastos y /api/gastos/*"""

    def test_create_and_list(self, client, auth_headers):
        response = client.post("/api/reportes/gastos", json={
            "description": "Papel térmico", "amount": "150.00"
        }, headers=auth_headers)
        assert response.status_code == 201
        expense_id = response.json()["expense"]["id"]

        response = client.get("/api/reportes/gastos", headers=auth_headers)
        expenses = response.json()["expenses"]
        assert [e["id"] for e in expenses] == [expense_id]
        assert Decimal(str(expenses[0]["amount"])) == Decimal("150")

    def test_edit_and_delete(self, client, auth_headers):
        expense_id = client.post("/api/reportes/gastos", json={
            "description": "Papel", "amount": "10"
        }, headers=auth_headers).json()["expense"]["id"]

        response = client.put(f"/api/gastos/editar/{expense_id}", json={
            "description": "Papel bond", "amount": "12"
        }, headers=auth_headers)
        assert response.json() == {"ok": True, "message": "Gasto actualizado"}

        response = client.delete(f"/api/gastos/eliminar/{expense_id}", headers=auth_headers)
        assert response.json() == {"ok": True, "message": "Gasto eliminado"}

        response = client.delete(f"/api/gastos/eliminar/{expense_id}", headers=auth_headers)
        assert response.status_code == 404

    def test_invalid_days(self, client, auth_headers):
        response = client.get("/api/reportes/gastos?dias=0", headers=auth_headers)
        assert response.status_code == 400

    def test_blank_description(self, client, auth_headers):
        response = client.post("/api/reportes/gastos", json={"description": "   ", "amount": "5"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["ok"] is False
