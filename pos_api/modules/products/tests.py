"""
Tests para el catálogo de productos
"""

from decimal import Decimal

import pytest

from pos_api.common.exceptions import ConflictError, NotFoundError, ValidationError
from pos_api.modules.products.models import Product, InventoryMovement, InventoryLog, InventoryAlert, MovementType
from pos_api.modules.products.schemas import ProductCreate, PriceUpdate, ProductIdentityUpdate
from pos_api.modules.products.service import ProductService
from pos_api.modules.inventory.service import StockLedger
from pos_api.modules.sales.models import Sale, SaleDetail


class TestAlertLevel:
    """Tests para Product.alert_level"""

    @pytest.mark.parametrize("stock,minimum,expected", [
        (0, 3, "agotado"),
        (2, 3, "bajo"),
        (3, 3, "bajo"),
        (-1, 3, "bajo"),
        (4, 3, "normal"),
        (0, 0, "agotado"),
    ])
    def test_levels(self, stock, minimum, expected):
        assert Product(stock=stock, stock_minimum=minimum).alert_level == expected


class TestProductService:
    """Tests para ProductService"""

    def test_lookup_by_barcode(self, db_session, sample_products):
        mouse, _ = sample_products
        service = ProductService(db_session)

        assert service.lookup_by_barcode("7401000000011").id == mouse.id
        assert service.lookup_by_barcode("0000") is None

    def test_lookup_requires_code(self, db_session):
        with pytest.raises(ValidationError):
            ProductService(db_session).lookup_by_barcode("")

    def test_create_with_initial_stock(self, db_session, admin_user):
        product = ProductService(db_session).create_product(ProductCreate(
            barcode=" 7402 ", name="Teclado", stock=6, stock_minimum=2, price=Decimal("300")
        ), admin_user.id)

        assert product.barcode == "7402"
        assert product.stock == 6

        movement = db_session.query(InventoryMovement).filter(InventoryMovement.product_id == product.id).one()
        assert movement.movement_type == MovementType.ENTRADA
        assert movement.quantity == 6
        assert movement.reason == "Ingreso inicial"
        assert db_session.query(InventoryLog).filter(InventoryLog.product_id == product.id).count() == 1

    def test_create_without_stock_has_no_movement(self, db_session):
        product = ProductService(db_session).create_product(ProductCreate(
            barcode="7403", name="Funda", price=Decimal("50")
        ), None)

        assert product.stock == 0
        assert db_session.query(InventoryMovement).count() == 0

    def test_duplicate_barcode(self, db_session, sample_products):
        with pytest.raises(ConflictError):
            ProductService(db_session).create_product(ProductCreate(
                barcode="7401000000011", name="Otro", price=Decimal("1")
            ), None)

    def test_update_price(self, db_session, sample_products):
        mouse, _ = sample_products
        product = ProductService(db_session).update_price(
            mouse.id, PriceUpdate(price=Decimal("175.00"), wholesale_price=Decimal("140.00"))
        )
        assert product.price == Decimal("175.00")
        assert product.wholesale_price == Decimal("140.00")

    def test_update_price_missing(self, db_session):
        with pytest.raises(NotFoundError):
            ProductService(db_session).update_price(99, PriceUpdate(price=Decimal("1")))

    def test_update_identity(self, db_session, sample_products):
        mouse, _ = sample_products
        product = ProductService(db_session).update_identity(
            mouse.id, ProductIdentityUpdate(barcode="7409", name="Mouse inalámbrico")
        )
        assert product.barcode == "7409"
        assert product.name == "Mouse inalámbrico"

    def test_update_identity_duplicate_barcode(self, db_session, sample_products):
        mouse, cable = sample_products
        with pytest.raises(ConflictError):
            ProductService(db_session).update_identity(
                mouse.id, ProductIdentityUpdate(barcode=cable.barcode, name="Mouse")
            )

    def test_delete_removes_dependencies(self, db_session, sample_products):
        _, cable = sample_products
        StockLedger(db_session).apply_movement(cable.id, MovementType.SALIDA, 2, None, "Ajuste")

        ProductService(db_session).delete_product(cable.id)

        db_session.expire_all()
        assert db_session.get(Product, cable.id) is None
        assert db_session.query(InventoryMovement).count() == 0
        assert db_session.query(InventoryLog).count() == 0
        assert db_session.query(InventoryAlert).count() == 0

    def test_delete_with_sales_rejected(self, db_session, sample_products):
        mouse, _ = sample_products
        sale = Sale(payment_method="efectivo", total=Decimal("150"), final_total=Decimal("150"))
        db_session.add(sale)
        db_session.flush()
        db_session.add(SaleDetail(
            sale_id=sale.id, product_id=mouse.id, item_code=str(mouse.id), description="Mouse USB",
            quantity=1, unit_price=Decimal("150"), line_total=Decimal("150")
        ))
        db_session.commit()

        with pytest.raises(ConflictError):
            ProductService(db_session).delete_product(mouse.id)

        db_session.expire_all()
        assert db_session.get(Product, mouse.id) is not None


class TestProductEndpoints:
    """Tests para /api/productos y /api/inventario/productos"""

    def test_lookup(self, client, auth_headers, sample_products):
        response = client.get("/api/productos/buscar?codigo=7401000000028", headers=auth_headers)
        body = response.json()
        assert body["found"] is True
        assert body["product"]["name"] == "Cable HDMI 2m"
        assert Decimal(str(body["product"]["price"])) == Decimal("95.50")

    def test_lookup_not_found(self, client, auth_headers):
        response = client.get("/api/productos/buscar?codigo=000", headers=auth_headers)
        assert response.json() == {"ok": True, "found": False, "product": None}

    def test_lookup_without_code(self, client, auth_headers):
        response = client.get("/api/productos/buscar", headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Debe enviar un código de barra"}

    def test_inventory_list(self, client, auth_headers, sample_products):
        response = client.get("/api/inventario/productos", headers=auth_headers)
        products = response.json()["products"]
        assert [p["name"] for p in products] == ["Cable HDMI 2m", "Mouse USB"]
        assert [p["alert_level"] for p in products] == ["normal", "normal"]

    def test_create_product(self, client, auth_headers):
        response = client.post("/api/inventario/productos", json={
            "barcode": "7405", "name": "Audífonos", "stock": 3, "stock_minimum": 1, "price": "220.00"
        }, headers=auth_headers)

        assert response.status_code == 201
        product_id = response.json()["product_id"]

        response = client.get("/api/productos/buscar?codigo=7405", headers=auth_headers)
        assert response.json()["product"]["id"] == product_id
        assert response.json()["product"]["stock"] == 3

    def test_create_duplicate(self, client, auth_headers, sample_products):
        response = client.post("/api/inventario/productos", json={
            "barcode": "7401000000011", "name": "Repetido", "price": "1"
        }, headers=auth_headers)
        assert response.status_code == 409

    def test_update_price(self, client, auth_headers, sample_products):
        mouse, _ = sample_products
        response = client.patch(f"/api/inventario/precio/{mouse.id}", json={"price": "160"}, headers=auth_headers)
        assert response.json() == {"ok": True, "message": "Precio actualizado correctamente"}

    def test_delete_product(self, client, auth_headers, sample_products):
        _, cable = sample_products
        response = client.delete(f"/api/inventario/productos/{cable.id}", headers=auth_headers)
        assert response.status_code == 200

        response = client.delete(f"/api/inventario/productos/{cable.id}", headers=auth_headers)
        assert response.status_code == 404
