"""
Tests para el libro de existencias y las alertas de inventario

Cubren:
- Conservación de stock (ENTRADA y SALIDA se compensan)
- Movimiento + bitácora + existencia en una sola transacción
- Rollback completo ante fallos a mitad del movimiento
- Alertas de stock bajo/agotado y su limpieza
- Endpoints /api/inventario/*
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from pos_api.common.exceptions import ValidationError, ConflictError, NotFoundError, StorageError
from pos_api.modules.products.models import (
    Product, InventoryMovement, InventoryLog, InventoryAlert, MovementType
)
from pos_api.modules.inventory.alerts import AlertManager, alert_message
from pos_api.modules.inventory.service import StockLedger


def counts(db_session, product_id):
    return (
        db_session.query(InventoryMovement).filter(InventoryMovement.product_id == product_id).count(),
        db_session.query(InventoryLog).filter(InventoryLog.product_id == product_id).count(),
    )


def pending_alerts(db_session, product_id):
    return db_session.query(InventoryAlert).filter(
        InventoryAlert.product_id == product_id,
        InventoryAlert.attended == False
    ).order_by(InventoryAlert.id).all()


class FailingAlerts(AlertManager):
    """Simula un fallo del almacén después de actualizar el stock"""

    def raise_if_low(self, product, stock, stock_minimum):
        raise SQLAlchemyError("disk I/O error")

    def clear_outstanding(self, product_id):
        raise SQLAlchemyError("disk I/O error")


# ===== TESTS DE MENSAJES =====

class TestAlertMessage:
    """Tests para alert_message"""

    def test_out_of_stock(self):
        assert alert_message("Mouse USB", 0, 3) == "Producto agotado: Mouse USB"

    def test_low_stock(self):
        assert alert_message("Mouse USB", 2, 3) == "Stock bajo en Mouse USB. Stock actual: 2"

    def test_at_minimum_is_low(self):
        assert alert_message("Mouse USB", 3, 3) == "Stock bajo en Mouse USB. Stock actual: 3"

    def test_negative_is_low(self):
        assert alert_message("Mouse USB", -2, 3) == "Stock bajo en Mouse USB. Stock actual: -2"

    def test_above_minimum(self):
        assert alert_message("Mouse USB", 4, 3) is None


# ===== TESTS DEL LIBRO DE EXISTENCIAS =====

class TestStockLedger:
    """Tests para StockLedger"""

    def test_entry_then_exit_is_net_zero(self, db_session, sample_products, admin_user):
        mouse, _ = sample_products
        ledger = StockLedger(db_session)

        entry = ledger.apply_movement(mouse.id, MovementType.ENTRADA, 5, admin_user.id, "Compra")
        assert entry.stock == 15

        exit_ = ledger.apply_movement(mouse.id, MovementType.SALIDA, 5, admin_user.id, "Ajuste")
        assert exit_.stock == 10

        db_session.expire_all()
        assert db_session.get(Product, mouse.id).stock == 10
        assert counts(db_session, mouse.id) == (2, 2)

    def test_movement_and_log_mirror(self, db_session, sample_products, admin_user):
        mouse, _ = sample_products
        StockLedger(db_session).apply_movement(mouse.id, MovementType.ENTRADA, 7, admin_user.id, "Compra")

        movement = db_session.query(InventoryMovement).filter(InventoryMovement.product_id == mouse.id).one()
        log = db_session.query(InventoryLog).filter(InventoryLog.product_id == mouse.id).one()
        assert movement.movement_type == MovementType.ENTRADA
        assert movement.quantity == log.quantity == 7
        assert movement.user_id == log.user_id == admin_user.id
        assert movement.reason == log.detail == "Compra"

    def test_record_movement_custom_log_detail(self, db_session, sample_products):
        mouse, _ = sample_products
        ledger = StockLedger(db_session)
        ledger.record_movement(mouse.id, MovementType.SALIDA, 1, None, "Venta", detail="Venta POS")
        db_session.commit()

        log = db_session.query(InventoryLog).filter(InventoryLog.product_id == mouse.id).one()
        assert log.detail == "Venta POS"

    def test_exit_can_go_negative(self, db_session, sample_products):
        """Por defecto la salida se registra aunque no haya existencia"""
        _, cable = sample_products
        result = StockLedger(db_session).apply_movement(cable.id, MovementType.SALIDA, 6, None, "Venta")

        assert result.stock == -2
        assert result.alert_raised is True

    def test_negative_stock_can_be_disallowed(self, db_session, sample_products):
        _, cable = sample_products
        ledger = StockLedger(db_session, allow_negative=False)

        with pytest.raises(ConflictError):
            ledger.apply_movement(cable.id, MovementType.SALIDA, 6, None, "Venta")

        db_session.expire_all()
        assert db_session.get(Product, cable.id).stock == 4
        assert counts(db_session, cable.id) == (0, 0)

    @pytest.mark.parametrize("quantity", [0, -3, None, 1.5, True])
    def test_invalid_quantity(self, db_session, sample_products, quantity):
        mouse, _ = sample_products
        with pytest.raises(ValidationError):
            StockLedger(db_session).apply_movement(mouse.id, MovementType.ENTRADA, quantity, None, None)
        assert counts(db_session, mouse.id) == (0, 0)

    def test_unknown_product(self, db_session, sample_products):
        with pytest.raises(ValidationError):
            StockLedger(db_session).apply_movement(9999, MovementType.ENTRADA, 1, None, None)
        assert db_session.query(InventoryMovement).count() == 0

    def test_invalid_type(self, db_session, sample_products):
        mouse, _ = sample_products
        with pytest.raises(ValidationError):
            StockLedger(db_session).apply_movement(mouse.id, "ENTRADA_X", 1, None, None)

    def test_rollback_on_failure(self, db_session, sample_products):
        """Un fallo después de tocar el stock revierte movimiento, bitácora y existencia"""
        _, cable = sample_products
        ledger = StockLedger(db_session, alerts=FailingAlerts(db_session))

        with pytest.raises(StorageError):
            ledger.apply_movement(cable.id, MovementType.SALIDA, 2, None, "Venta")

        db_session.expire_all()
        assert db_session.get(Product, cable.id).stock == 4
        assert counts(db_session, cable.id) == (0, 0)

    def test_lock_products_sorted_and_unique(self, db_session, sample_products):
        mouse, cable = sample_products
        ledger = StockLedger(db_session)

        assert ledger.lock_products([cable.id, None, mouse.id, cable.id, 999]) == sorted([mouse.id, cable.id])
        assert ledger.lock_products([]) == []
        db_session.rollback()

    def test_movement_history_newest_first(self, db_session, sample_products):
        mouse, _ = sample_products
        ledger = StockLedger(db_session)
        ledger.apply_movement(mouse.id, MovementType.ENTRADA, 1, None, "primero")
        ledger.apply_movement(mouse.id, MovementType.SALIDA, 1, None, "segundo")

        history = ledger.movement_history(mouse.id)
        assert [m.reason for m in history] == ["segundo", "primero"]


# ===== TESTS DE ALERTAS =====

class TestAlerts:
    """Tests para alertas generadas por el libro de existencias"""

    def test_exit_to_minimum_raises_alert(self, db_session, sample_products):
        _, cable = sample_products
        result = StockLedger(db_session).apply_movement(cable.id, MovementType.SALIDA, 1, None, "Venta")

        assert result.stock == 3
        assert result.alert_raised is True
        alerts = pending_alerts(db_session, cable.id)
        assert len(alerts) == 1
        assert alerts[0].message == "Stock bajo en Cable HDMI 2m. Stock actual: 3"
        assert alerts[0].stock_at_creation == 3

    def test_exit_to_zero_is_out_of_stock(self, db_session, sample_products):
        _, cable = sample_products
        StockLedger(db_session).apply_movement(cable.id, MovementType.SALIDA, 4, None, "Venta")
        assert pending_alerts(db_session, cable.id)[0].message == "Producto agotado: Cable HDMI 2m"

    def test_exit_above_minimum_no_alert(self, db_session, sample_products):
        mouse, _ = sample_products
        result = StockLedger(db_session).apply_movement(mouse.id, MovementType.SALIDA, 2, None, "Venta")
        assert result.alert_raised is False
        assert pending_alerts(db_session, mouse.id) == []

    def test_alerts_append_by_default(self, db_session, sample_products):
        """Cada salida bajo el mínimo agrega una alerta nueva"""
        _, cable = sample_products
        ledger = StockLedger(db_session, alerts=AlertManager(db_session, deduplicate=False))
        ledger.apply_movement(cable.id, MovementType.SALIDA, 1, None, "Venta")
        ledger.apply_movement(cable.id, MovementType.SALIDA, 1, None, "Venta")

        assert len(pending_alerts(db_session, cable.id)) == 2

    def test_alerts_deduplicated(self, db_session, sample_products):
        _, cable = sample_products
        ledger = StockLedger(db_session, alerts=AlertManager(db_session, deduplicate=True))
        ledger.apply_movement(cable.id, MovementType.SALIDA, 1, None, "Venta")
        ledger.apply_movement(cable.id, MovementType.SALIDA, 2, None, "Venta")

        alerts = pending_alerts(db_session, cable.id)
        assert len(alerts) == 1
        assert alerts[0].stock_at_creation == 1

    def test_entry_above_minimum_clears_alerts(self, db_session, sample_products):
        _, cable = sample_products
        ledger = StockLedger(db_session)
        ledger.apply_movement(cable.id, MovementType.SALIDA, 1, None, "Venta")
        ledger.apply_movement(cable.id, MovementType.SALIDA, 1, None, "Venta")

        result = ledger.apply_movement(cable.id, MovementType.ENTRADA, 10, None, "Compra")
        assert result.alerts_cleared == 2
        assert pending_alerts(db_session, cable.id) == []

    def test_entry_still_below_minimum_raises_alert(self, db_session, sample_products):
        _, cable = sample_products
        ledger = StockLedger(db_session)
        ledger.apply_movement(cable.id, MovementType.SALIDA, 4, None, "Venta")

        result = ledger.apply_movement(cable.id, MovementType.ENTRADA, 1, None, "Compra")
        assert result.stock == 1
        assert result.alert_raised is True
        assert result.alerts_cleared == 0

    def test_mark_attended_idempotent(self, db_session, sample_products):
        _, cable = sample_products
        StockLedger(db_session).apply_movement(cable.id, MovementType.SALIDA, 1, None, "Venta")
        alert = pending_alerts(db_session, cable.id)[0]

        manager = AlertManager(db_session)
        manager.mark_attended(alert.id)
        manager.mark_attended(alert.id)
        db_session.commit()

        assert pending_alerts(db_session, cable.id) == []

    def test_mark_attended_missing(self, db_session):
        with pytest.raises(NotFoundError):
            AlertManager(db_session).mark_attended(12345)

    def test_list_unattended_newest_first(self, db_session, sample_products):
        mouse, cable = sample_products
        ledger = StockLedger(db_session)
        ledger.apply_movement(cable.id, MovementType.SALIDA, 1, None, "Venta")
        ledger.apply_movement(mouse.id, MovementType.SALIDA, 8, None, "Venta")

        alerts = AlertManager(db_session).list_unattended()
        assert [a.product_id for a in alerts] == [mouse.id, cable.id]


# ===== TESTS DE ENDPOINTS =====

class TestInventoryEndpoints:
    """Tests para /api/inventario"""

    def test_entry(self, client, auth_headers, sample_products):
        mouse, _ = sample_products
        response = client.post("/api/inventario/entrada", json={
            "product_id": mouse.id, "quantity": 5, "reason": "Compra proveedor"
        }, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["stock"] == 15

    def test_exit_raises_alert(self, client, auth_headers, sample_products):
        _, cable = sample_products
        response = client.post("/api/inventario/salida", json={
            "product_id": cable.id, "quantity": 2
        }, headers=auth_headers)

        body = response.json()
        assert body["stock"] == 2
        assert body["alert_raised"] is True

        alerts = client.get("/api/inventario/alertas", headers=auth_headers).json()["alerts"]
        assert len(alerts) == 1
        assert alerts[0]["product_name"] == "Cable HDMI 2m"

        response = client.patch(f"/api/inventario/alertas/{alerts[0]['id']}/atender", headers=auth_headers)
        assert response.json() == {"ok": True, "message": "Alerta marcada como atendida"}
        assert client.get("/api/inventario/alertas", headers=auth_headers).json()["alerts"] == []

    def test_zero_quantity_rejected(self, client, auth_headers, sample_products):
        mouse, _ = sample_products
        response = client.post("/api/inventario/salida", json={
            "product_id": mouse.id, "quantity": 0
        }, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["ok"] is False

    def test_unknown_product_rejected(self, client, auth_headers):
        response = client.post("/api/inventario/entrada", json={
            "product_id": 777, "quantity": 1
        }, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Producto no encontrado: 777"}

    def test_movement_history(self, client, auth_headers, sample_products, admin_user):
        mouse, _ = sample_products
        client.post("/api/inventario/entrada", json={"product_id": mouse.id, "quantity": 3}, headers=auth_headers)

        response = client.get(f"/api/inventario/movimientos?product_id={mouse.id}", headers=auth_headers)
        movements = response.json()["movements"]
        assert len(movements) == 1
        assert movements[0]["movement_type"] == "ENTRADA"
        assert movements[0]["user_id"] == admin_user.id

    def test_attend_missing_alert(self, client, auth_headers):
        response = client.patch("/api/inventario/alertas/999/atender", headers=auth_headers)
        assert response.status_code == 404
