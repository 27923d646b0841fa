"""
Tests para clientes con crédito
"""

from datetime import datetime
from decimal import Decimal

import pytest

from pos_api.common.exceptions import NotFoundError
from pos_api.modules.customers.models import Customer
from pos_api.modules.customers.schemas import CreditCustomerCreate
from pos_api.modules.customers.service import CustomerService


def clock_at(moment: datetime):
    return lambda: moment


class TestCustomerService:
    """Tests para CustomerService"""

    def test_create_credit_customer(self, db_session):
        service = CustomerService(db_session, clock=clock_at(datetime(2024, 3, 1, 9, 0)))
        customer = service.create_credit_customer(CreditCustomerCreate(
            name="  Ana López ", phone="9999-0000", amount=Decimal("500")
        ))

        assert customer.name == "Ana López"
        assert customer.has_credit is True
        assert customer.debt_amount == Decimal("500")
        assert customer.credit_date == datetime(2024, 3, 1, 9, 0)

    def test_list_newest_first(self, db_session):
        CustomerService(db_session, clock=clock_at(datetime(2024, 3, 1))).create_credit_customer(
            CreditCustomerCreate(name="Primero")
        )
        CustomerService(db_session, clock=clock_at(datetime(2024, 3, 5))).create_credit_customer(
            CreditCustomerCreate(name="Segundo")
        )
        db_session.add(Customer(name="Sin crédito", has_credit=False))
        db_session.commit()

        names = [c.name for c in CustomerService(db_session).list_credit_customers()]
        assert names == ["Segundo", "Primero"]

    def test_adjust_debt(self, db_session):
        service = CustomerService(db_session)
        customer = service.create_credit_customer(CreditCustomerCreate(name="Ana", amount=Decimal("500")))

        assert service.adjust_debt(customer.id, Decimal("150.50")).debt_amount == Decimal("650.50")
        assert service.adjust_debt(customer.id, Decimal("-200")).debt_amount == Decimal("450.50")

    def test_assign_credit_replaces_debt(self, db_session):
        service = CustomerService(db_session)
        customer = service.create_credit_customer(CreditCustomerCreate(name="Ana", amount=Decimal("500")))
        service.remove_credit(customer.id)

        customer = service.assign_credit(customer.id, Decimal("80"))
        assert customer.has_credit is True
        assert customer.debt_amount == Decimal("80")
        assert customer.credit_date is not None

    def test_remove_credit(self, db_session):
        service = CustomerService(db_session)
        customer = service.create_credit_customer(CreditCustomerCreate(name="Ana", amount=Decimal("500")))

        customer = service.remove_credit(customer.id)
        assert customer.has_credit is False
        assert customer.debt_amount == Decimal("0")
        assert customer.credit_date is None
        assert service.list_credit_customers() == []

    def test_missing_customer(self, db_session):
        with pytest.raises(NotFoundError):
            CustomerService(db_session).adjust_debt(42, Decimal("1"))


class TestCustomerEndpoints:
    """Tests para /api/clientes"""

    def test_create_and_list(self, client, auth_headers):
        response = client.post("/api/clientes/credito", json={
            "name": "Carlos", "phone": "3333-1111", "amount": "250.00"
        }, headers=auth_headers)
        assert response.status_code == 201
        customer_id = response.json()["customer"]["id"]

        response = client.get("/api/clientes/credito", headers=auth_headers)
        customers = response.json()["customers"]
        assert [c["id"] for c in customers] == [customer_id]
        assert Decimal(str(customers[0]["debt_amount"])) == Decimal("250")

    def test_adjust_debt(self, client, auth_headers):
        customer_id = client.post(
            "/api/clientes/credito", json={"name": "Carlos", "amount": "100"}, headers=auth_headers
        ).json()["customer"]["id"]

        response = client.put(f"/api/clientes/{customer_id}/deuda", json={"amount": "-40"}, headers=auth_headers)
        assert Decimal(str(response.json()["customer"]["debt_amount"])) == Decimal("60")

    def test_remove_credit(self, client, auth_headers):
        customer_id = client.post(
            "/api/clientes/credito", json={"name": "Carlos"}, headers=auth_headers
        ).json()["customer"]["id"]

        response = client.put(f"/api/clientes/{customer_id}/quitar-credito", headers=auth_headers)
        assert response.status_code == 200
        assert client.get("/api/clientes/credito", headers=auth_headers).json()["customers"] == []

    def test_negative_credit_rejected(self, client, auth_headers):
        response = client.post("/api/clientes/credito", json={"name": "Carlos", "amount": "-1"}, headers=auth_headers)
        assert response.status_code == 400

    def test_missing_customer(self, client, auth_headers):
        response = client.put("/api/clientes/77/credito", json={"amount": "10"}, headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"ok": False, "error": "Cliente no encontrado"}
