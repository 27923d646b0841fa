"""
Tests para el módulo de ventas

Cubren:
- Monto en letras de la factura
- Validación de líneas de venta (productos y servicios "S{id}")
- Venta atómica: detalles + salidas de inventario en una transacción
- Factura PDF: escrita y confirmada, o pendiente y regenerable
- Endpoints /api/ventas/*
"""

import os
from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError as PydanticValidationError
from urllib3.exceptions import MaxRetryError

from pos_api.main import create_app
from pos_api.common.exceptions import StorageError, ValidationError, ConflictError, NotFoundError
from pos_api.modules.products.models import Product, InventoryMovement, InventoryLog, InventoryAlert
from pos_api.modules.sales.invoice_pdf import InvoiceDocument, InvoiceLine, page_height, render_invoice
from pos_api.modules.sales.models import Sale, SaleDetail, InvoiceStatus
from pos_api.modules.sales.schemas import SaleItem, SaleCreate
from pos_api.modules.sales.service import SaleService
from pos_api.modules.inventory.service import StockLedger
from pos_api.modules.sales.storage import InvoiceStorage, LocalInvoiceStorage, MinIOInvoiceStorage
from pos_api.modules.sales.utils import amount_to_words, is_service_line


class BrokenStorage(InvoiceStorage):
    """Almacén que nunca confirma la escritura"""

    def save(self, name, data):
        raise StorageError(f"No se pudo guardar la factura {name}: disco lleno")

    def load(self, name):
        raise NotFoundError("Factura no encontrada")

    def exists(self, name):
        return False


class FakeObject:
    def __init__(self, data):
        self.data = data
        self.size = len(data)

    def read(self):
        return self.data

    def close(self):
        pass

    def release_conn(self):
        pass


class FakeMinio:
    """Cliente de MinIO en memoria"""

    def __init__(self):
        self.buckets = set()
        self.objects = {}

    def bucket_exists(self, bucket_name):
        return bucket_name in self.buckets

    def make_bucket(self, bucket_name):
        self.buckets.add(bucket_name)

    def put_object(self, bucket_name, key, data, length, content_type=None):
        self.objects[(bucket_name, key)] = data.read(length)

    def stat_object(self, bucket_name, key):
        return FakeObject(self.objects[(bucket_name, key)])

    def get_object(self, bucket_name, key):
        return FakeObject(self.objects[(bucket_name, key)])


class UnreachableMinio(FakeMinio):
    """El bucket existe pero el servidor dejó de responder"""

    def __init__(self):
        super().__init__()
        self.buckets.add("facturas")

    def put_object(self, bucket_name, key, data, length, content_type=None):
        raise MaxRetryError(None, f"/{bucket_name}/{key}", reason=ConnectionRefusedError(111, "Connection refused"))

    def stat_object(self, bucket_name, key):
        raise ConnectionRefusedError(111, "Connection refused")

    def get_object(self, bucket_name, key):
        raise ConnectionRefusedError(111, "Connection refused")


def sale_payload(mouse, cable, **overrides):
    payload = {
        "items": [
            {"product_id": mouse.id, "name": "Mouse USB", "price": "150.00", "quantity": 2},
            {"product_id": str(cable.id), "name": "Cable HDMI 2m", "price": "95.50", "quantity": 2},
            {"product_id": "S1", "name": "Instalación de antivirus", "price": "50.00", "quantity": 1},
        ],
        "total": "541.00",
        "payment_method": "efectivo",
        "customer_name": "Juan Pérez",
        "customer_rtn": "08011990123456"
    }
    payload.update(overrides)
    return payload


# ===== TESTS DE MONTO EN LETRAS =====

class TestAmountToWords:
    """Tests para amount_to_words"""

    @pytest.mark.parametrize("amount,expected", [
        (Decimal("125.5"), "CIENTO VEINTE Y CINCO LEMPIRAS CON 50/100"),
        (Decimal("19"), "DIECINUEVE LEMPIRAS CON 00/100"),
        (Decimal("20"), "VEINTE LEMPIRAS CON 00/100"),
        (Decimal("21"), "VEINTE Y UNO LEMPIRAS CON 00/100"),
        (Decimal("100"), "CIEN LEMPIRAS CON 00/100"),
        (Decimal("101.05"), "CIENTO UNO LEMPIRAS CON 05/100"),
        (Decimal("0"), "CERO LEMPIRAS CON 00/100"),
        (Decimal("0.75"), "CERO LEMPIRAS CON 75/100"),
    ])
    def test_words(self, amount, expected):
        assert amount_to_words(amount) == expected

    def test_two_hundred_and_above_print_number(self):
        assert amount_to_words(Decimal("250")) == "250 LEMPIRAS CON 00/100"
        assert amount_to_words(Decimal("1999.99")) == "1999 LEMPIRAS CON 99/100"

    def test_rounds_half_up(self):
        assert amount_to_words(Decimal("0.995")) == "UNO LEMPIRAS CON 00/100"
        assert amount_to_words("19.994") == "DIECINUEVE LEMPIRAS CON 99/100"

    def test_custom_currency(self):
        assert amount_to_words(15, currency="DOLARES") == "QUINCE DOLARES CON 00/100"

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            amount_to_words(Decimal("-1"))


# ===== TESTS DE LÍNEAS DE VENTA =====

class TestSaleItem:
    """Tests para SaleItem"""

    def test_service_line(self):
        item = SaleItem(product_id="S3", name="Formateo", price=Decimal("200"), quantity=1)
        assert item.product_id == "S3"
        assert item.is_service is True

    def test_numeric_string_is_product(self):
        item = SaleItem(product_id="12", name="Mouse", price=Decimal("150"), quantity=2)
        assert item.product_id == 12
        assert item.is_service is False
        assert item.line_total == Decimal("300")

    @pytest.mark.parametrize("item_id", ["X1", "s1", "", 0, -4])
    def test_invalid_ids(self, item_id):
        with pytest.raises(PydanticValidationError):
            SaleItem(product_id=item_id, name="Algo", price=Decimal("1"), quantity=1)

    def test_quantity_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            SaleItem(product_id=1, name="Algo", price=Decimal("1"), quantity=0)

    def test_sale_needs_items(self):
        with pytest.raises(PydanticValidationError):
            SaleCreate(items=[], total=Decimal("0"), payment_method="efectivo")

    def test_is_service_line(self):
        assert is_service_line("S10") is True
        assert is_service_line(10) is False
        assert is_service_line("10") is False


# ===== TESTS DE FACTURA PDF =====

class TestInvoicePdf:
    """Tests para render_invoice"""

    def test_page_height_grows_with_lines(self):
        assert page_height(0) == 410
        assert page_height(3) == 452

    def test_render_produces_pdf(self):
        document = InvoiceDocument(
            invoice_number=7,
            date=datetime(2024, 5, 10, 14, 30),
            seller_name="María Cajera",
            total=Decimal("125.50"),
            lines=[InvoiceLine(quantity=1, description="Mouse USB", line_total=Decimal("125.50"))]
        )
        content = render_invoice(document)
        assert content.startswith(b"%PDF")
        assert document.file_name == "7.pdf"

    def test_missing_logo_is_skipped(self, tmp_path):
        document = InvoiceDocument(
            invoice_number=8,
            date=datetime(2024, 5, 10, 14, 30),
            seller_name="María Cajera",
            total=Decimal("0"),
        )
        content = render_invoice(document, logo_path=str(tmp_path / "no-existe.png"))
        assert content.startswith(b"%PDF")


# ===== TESTS DEL SERVICIO =====

class TestSaleService:
    """Tests para SaleService"""

    def test_register_sale(self, db_session, sample_products, admin_user, invoice_storage, invoice_dir):
        mouse, cable = sample_products
        data = SaleCreate(**sale_payload(mouse, cable))

        sale = SaleService(db_session, invoice_storage).register_sale(data, admin_user)

        assert sale.invoice_number == sale.id
        assert sale.invoice_status == InvoiceStatus.GENERADA
        assert sale.invoice_file == f"{sale.invoice_number}.pdf"
        assert sale.seller_name == "Administrador"
        assert sale.total == Decimal("541.00")

        path = invoice_dir / sale.invoice_file
        assert path.exists()
        assert path.read_bytes().startswith(b"%PDF")

        db_session.expire_all()
        assert db_session.get(Product, mouse.id).stock == 8
        assert db_session.get(Product, cable.id).stock == 2

    def test_details_and_ledger(self, db_session, sample_products, admin_user, invoice_storage):
        mouse, cable = sample_products
        sale = SaleService(db_session, invoice_storage).register_sale(
            SaleCreate(**sale_payload(mouse, cable)), admin_user
        )

        details = db_session.query(SaleDetail).filter(SaleDetail.sale_id == sale.id).order_by(SaleDetail.id).all()
        assert [d.item_code for d in details] == [str(mouse.id), str(cable.id), "S1"]
        assert [d.is_service for d in details] == [False, False, True]
        assert details[2].product_id is None
        assert details[0].line_total == Decimal("300.00")

        # Solo los productos generan salida de inventario
        movements = db_session.query(InventoryMovement).all()
        assert sorted(m.product_id for m in movements) == sorted([mouse.id, cable.id])
        assert all(m.reason == "Venta" for m in movements)
        assert {log.detail for log in db_session.query(InventoryLog).all()} == {"Venta POS"}

        # El cable quedó en 2 con mínimo 3
        alerts = db_session.query(InventoryAlert).filter(InventoryAlert.product_id == cable.id).all()
        assert len(alerts) == 1
        assert alerts[0].stock_at_creation == 2

    def test_unknown_product_rolls_back_everything(self, db_session, sample_products, admin_user,
                                                   invoice_storage, invoice_dir):
        mouse, cable = sample_products
        payload = sale_payload(mouse, cable)
        payload["items"].append({"product_id": 999, "name": "Fantasma", "price": "1", "quantity": 1})

        with pytest.raises(ValidationError):
            SaleService(db_session, invoice_storage).register_sale(SaleCreate(**payload), admin_user)

        db_session.expire_all()
        assert db_session.query(Sale).count() == 0
        assert db_session.query(SaleDetail).count() == 0
        assert db_session.query(InventoryMovement).count() == 0
        assert db_session.query(InventoryLog).count() == 0
        assert db_session.get(Product, mouse.id).stock == 10
        assert db_session.get(Product, cable.id).stock == 4
        assert not invoice_dir.exists() or os.listdir(invoice_dir) == []

    def test_invoice_numbers_increase(self, db_session, sample_products, admin_user, invoice_storage):
        mouse, cable = sample_products
        service = SaleService(db_session, invoice_storage)
        first = service.register_sale(SaleCreate(**sale_payload(mouse, cable)), admin_user)
        second = service.register_sale(SaleCreate(**sale_payload(mouse, cable)), admin_user)

        assert second.invoice_number > first.invoice_number

    def test_storage_failure_leaves_invoice_pending(self, db_session, sample_products, admin_user,
                                                    invoice_storage):
        mouse, cable = sample_products

        with pytest.raises(StorageError) as exc_info:
            SaleService(db_session, BrokenStorage()).register_sale(
                SaleCreate(**sale_payload(mouse, cable)), admin_user
            )
        assert "pero no se pudo generar el PDF" in exc_info.value.message

        # La venta y el inventario quedan confirmados
        db_session.expire_all()
        sale = db_session.query(Sale).one()
        assert sale.invoice_status == InvoiceStatus.PENDIENTE
        assert sale.invoice_file is None
        assert db_session.get(Product, mouse.id).stock == 8

        service = SaleService(db_session, invoice_storage)
        assert [s.id for s in service.pending_invoices()] == [sale.id]
        assert service.regenerate_pending() == {"regenerated": 1, "failed": 0}

        db_session.expire_all()
        sale = db_session.get(Sale, sale.id)
        assert sale.invoice_status == InvoiceStatus.GENERADA
        assert invoice_storage.exists(sale.invoice_file)
        assert service.pending_invoices() == []

    def test_regenerate_pending_counts_failures(self, db_session, sample_products, admin_user):
        mouse, cable = sample_products
        with pytest.raises(StorageError):
            SaleService(db_session, BrokenStorage()).register_sale(
                SaleCreate(**sale_payload(mouse, cable)), admin_user
            )

        result = SaleService(db_session, BrokenStorage()).regenerate_pending()
        assert result == {"regenerated": 0, "failed": 1}

    def test_regenerate_overwrites_same_file(self, db_session, sample_products, admin_user,
                                             invoice_storage, invoice_dir):
        mouse, cable = sample_products
        service = SaleService(db_session, invoice_storage)
        sale = service.register_sale(SaleCreate(**sale_payload(mouse, cable)), admin_user)

        service.regenerate_invoice(sale.invoice_number)
        assert os.listdir(invoice_dir) == [f"{sale.invoice_number}.pdf"]

    def test_load_pending_invoice_conflict(self, db_session, sample_products, admin_user, invoice_storage):
        mouse, cable = sample_products
        with pytest.raises(StorageError):
            SaleService(db_session, BrokenStorage()).register_sale(
                SaleCreate(**sale_payload(mouse, cable)), admin_user
            )
        sale = db_session.query(Sale).one()

        with pytest.raises(ConflictError):
            SaleService(db_session, invoice_storage).load_invoice(sale.invoice_number)

    def test_products_locked_in_id_order(self, db_session, sample_products, admin_user,
                                         invoice_storage, monkeypatch):
        mouse, cable = sample_products
        payload = sale_payload(mouse, cable)
        payload["items"] = [payload["items"][1], payload["items"][2], payload["items"][0]]

        calls = []
        lock_products = StockLedger.lock_products
        record_movement = StockLedger.record_movement

        def spy_lock(ledger, product_ids):
            locked = lock_products(ledger, product_ids)
            calls.append(("lock", locked))
            return locked

        def spy_record(ledger, product_id, *args, **kwargs):
            calls.append(("salida", product_id))
            return record_movement(ledger, product_id, *args, **kwargs)

        monkeypatch.setattr(StockLedger, "lock_products", spy_lock)
        monkeypatch.setattr(StockLedger, "record_movement", spy_record)

        sale = SaleService(db_session, invoice_storage).register_sale(SaleCreate(**payload), admin_user)

        # Bloqueo único en orden de ID antes de cualquier salida
        assert calls[0] == ("lock", sorted([mouse.id, cable.id]))
        assert calls[1:] == [("salida", cable.id), ("salida", mouse.id)]

        # Los detalles conservan el orden de la caja
        details = db_session.query(SaleDetail).filter(SaleDetail.sale_id == sale.id).order_by(SaleDetail.id).all()
        assert [d.item_code for d in details] == [str(cable.id), "S1", str(mouse.id)]

    def test_unreachable_minio_leaves_invoice_pending(self, db_session, sample_products, admin_user):
        mouse, cable = sample_products
        storage = MinIOInvoiceStorage(UnreachableMinio(), "facturas")

        with pytest.raises(StorageError) as exc_info:
            SaleService(db_session, storage).register_sale(SaleCreate(**sale_payload(mouse, cable)), admin_user)
        assert "pero no se pudo generar el PDF" in exc_info.value.message

        db_session.expire_all()
        assert db_session.query(Sale).one().invoice_status == InvoiceStatus.PENDIENTE

        result = SaleService(db_session, storage).regenerate_pending()
        assert result == {"regenerated": 0, "failed": 1}

    def test_get_missing_sale(self, db_session, invoice_storage):
        with pytest.raises(NotFoundError):
            SaleService(db_session, invoice_storage).get_sale(404)


# ===== TESTS DE ALMACÉN LOCAL =====

class TestLocalInvoiceStorage:
    """Tests para LocalInvoiceStorage"""

    def test_save_and_load(self, tmp_path):
        storage = LocalInvoiceStorage(tmp_path / "pdfs")
        assert storage.save("3.pdf", b"%PDF-1.4 prueba") == "3.pdf"
        assert storage.exists("3.pdf")
        assert storage.load("3.pdf") == b"%PDF-1.4 prueba"
        assert os.listdir(tmp_path / "pdfs") == ["3.pdf"]

    def test_rejects_paths(self, tmp_path):
        storage = LocalInvoiceStorage(tmp_path)
        with pytest.raises(StorageError):
            storage.save("../fuera.pdf", b"x")

    def test_load_missing(self, tmp_path):
        with pytest.raises(NotFoundError):
            LocalInvoiceStorage(tmp_path).load("9.pdf")

    def test_unwritable_directory(self, tmp_path):
        blocker = tmp_path / "archivo"
        blocker.write_bytes(b"no soy carpeta")
        with pytest.raises(StorageError):
            LocalInvoiceStorage(blocker).save("1.pdf", b"%PDF")


# ===== TESTS DE ALMACÉN MINIO =====

class TestMinIOInvoiceStorage:
    """Tests para MinIOInvoiceStorage con un cliente falso"""

    def test_creates_bucket_and_saves(self):
        client = FakeMinio()
        storage = MinIOInvoiceStorage(client, "facturas", prefix="/pos/")

        assert "facturas" in client.buckets
        assert storage.save("7.pdf", b"%PDF-1.4 prueba") == "7.pdf"
        assert ("facturas", "pos/7.pdf") in client.objects
        assert storage.exists("7.pdf")
        assert storage.load("7.pdf") == b"%PDF-1.4 prueba"

    def test_bucket_setup_unreachable(self):
        class DownClient(FakeMinio):
            def bucket_exists(self, bucket_name):
                raise MaxRetryError(None, f"/{bucket_name}")

        with pytest.raises(StorageError):
            MinIOInvoiceStorage(DownClient(), "facturas")

    def test_save_unreachable(self):
        storage = MinIOInvoiceStorage(UnreachableMinio(), "facturas")
        with pytest.raises(StorageError) as exc_info:
            storage.save("1.pdf", b"%PDF")
        assert isinstance(exc_info.value.cause, MaxRetryError)

    def test_load_and_exists_unreachable(self):
        storage = MinIOInvoiceStorage(UnreachableMinio(), "facturas")
        with pytest.raises(StorageError):
            storage.load("1.pdf")
        with pytest.raises(StorageError):
            storage.exists("1.pdf")


# ===== TESTS DE ENDPOINTS =====

class TestSalesEndpoints:
    """Tests para /api/ventas"""

    def test_register_sale(self, client, auth_headers, sample_products, invoice_dir):
        mouse, cable = sample_products
        response = client.post("/api/ventas/registrar", json=sale_payload(mouse, cable), headers=auth_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["ok"] is True
        assert body["file_name"] == f"{body['invoice_number']}.pdf"
        assert (invoice_dir / body["file_name"]).exists()

    def test_get_sale(self, client, auth_headers, sample_products):
        mouse, cable = sample_products
        number = client.post(
            "/api/ventas/registrar", json=sale_payload(mouse, cable), headers=auth_headers
        ).json()["invoice_number"]

        response = client.get(f"/api/ventas/{number}", headers=auth_headers)
        sale = response.json()["sale"]
        assert sale["invoice_status"] == "generada"
        assert sale["customer_name"] == "Juan Pérez"
        assert [d["item_code"] for d in sale["details"]] == [str(mouse.id), str(cable.id), "S1"]

    def test_download_invoice(self, client, auth_headers, sample_products):
        mouse, cable = sample_products
        number = client.post(
            "/api/ventas/registrar", json=sale_payload(mouse, cable), headers=auth_headers
        ).json()["invoice_number"]

        response = client.get(f"/api/ventas/{number}/factura", headers=auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_unknown_product(self, client, auth_headers, sample_products, db_session):
        mouse, cable = sample_products
        payload = sale_payload(mouse, cable)
        payload["items"].append({"product_id": 999, "name": "Fantasma", "price": "1", "quantity": 1})

        response = client.post("/api/ventas/registrar", json=payload, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Producto no encontrado: 999"}

        db_session.expire_all()
        assert db_session.query(Sale).count() == 0
        assert db_session.get(Product, mouse.id).stock == 10

    def test_invalid_line_id(self, client, auth_headers, sample_products):
        mouse, cable = sample_products
        payload = sale_payload(mouse, cable)
        payload["items"][0]["product_id"] = "X9"

        response = client.post("/api/ventas/registrar", json=payload, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["ok"] is False

    def test_storage_failure_then_regenerate(self, database, db_session, auth_headers,
                                             sample_products, invoice_storage):
        mouse, cable = sample_products
        broken = TestClient(create_app(database=database, invoice_storage=BrokenStorage()))

        response = broken.post("/api/ventas/registrar", json=sale_payload(mouse, cable), headers=auth_headers)
        assert response.status_code == 500
        body = response.json()
        assert body["ok"] is False
        assert "pero no se pudo generar el PDF" in body["error"]

        sale = db_session.query(Sale).one()
        assert sale.invoice_status == InvoiceStatus.PENDIENTE

        healthy = TestClient(create_app(database=database, invoice_storage=invoice_storage))
        response = healthy.post(f"/api/ventas/{sale.invoice_number}/factura", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["file_name"] == f"{sale.invoice_number}.pdf"

        db_session.expire_all()
        assert db_session.get(Sale, sale.id).invoice_status == InvoiceStatus.GENERADA

    def test_unreachable_minio_returns_json_error(self, database, db_session, auth_headers, sample_products):
        mouse, cable = sample_products
        storage = MinIOInvoiceStorage(UnreachableMinio(), "facturas")
        down = TestClient(create_app(database=database, invoice_storage=storage))

        response = down.post("/api/ventas/registrar", json=sale_payload(mouse, cable), headers=auth_headers)
        assert response.status_code == 500
        body = response.json()
        assert body["ok"] is False
        assert "pero no se pudo generar el PDF" in body["error"]
        assert db_session.query(Sale).one().invoice_status == InvoiceStatus.PENDIENTE

    def test_missing_sale(self, client, auth_headers):
        response = client.get("/api/ventas/12345", headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"ok": False, "error": "Venta no encontrada"}

    def test_requires_authentication(self, client, sample_products):
        mouse, cable = sample_products
        response = client.post("/api/ventas/registrar", json=sale_payload(mouse, cable))
        assert response.status_code == 401
