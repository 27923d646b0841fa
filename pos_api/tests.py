"""
Tests de la aplicación: rutas base, formato de errores y tareas programadas
"""

from decimal import Decimal

from alembic import command
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import OperationalError

from migrate import get_alembic_config, main as migrate_main
from pos_api.core.config import Settings
from pos_api.database.database import Base, import_models
from pos_api.main import create_app
from pos_api.modules.sales import tasks
from pos_api.modules.sales.models import Sale, InvoiceStatus


class SharedDatabase:
    """Entrega sesiones del Database de pruebas sin cerrarlo al terminar la tarea"""

    def __init__(self, database):
        self.database = database

    def session(self):
        return self.database.session()

    def dispose(self):
        pass


class UnreachableDatabase:
    def ping(self):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    def dispose(self):
        pass


class TestSettings:
    """Tests para Settings"""

    def test_database_url_override(self):
        assert Settings(DATABASE_URL="sqlite:///pos.db").database_url == "sqlite:///pos.db"

    def test_database_url_from_parts(self):
        config = Settings(DATABASE_URL=None, POSTGRES_USER="u", POSTGRES_PASSWORD="p",
                          POSTGRES_HOST="db", POSTGRES_PORT=5433, POSTGRES_DB="pos")
        assert config.database_url == "postgresql+psycopg2://u:p@db:5433/pos"

    def test_bool_strings(self):
        config = Settings(ALLOW_NEGATIVE_STOCK="'false'", ALERT_DEDUPLICATE="yes")
        assert config.ALLOW_NEGATIVE_STOCK is False
        assert config.ALERT_DEDUPLICATE is True

    def test_business_defaults(self):
        config = Settings()
        assert config.CASH_DRAWER_BASE_FLOAT == Decimal("5000")
        assert config.CURRENCY_NAME == "LEMPIRAS"


class TestAppRoutes:
    """Tests para / y /health"""

    def test_root(self, client):
        body = client.get("/").json()
        assert body["ok"] is True
        assert body["message"] == "POS API is running"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health_database_down(self, invoice_storage):
        client = TestClient(create_app(database=UnreachableDatabase(), invoice_storage=invoice_storage))
        response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["ok"] is False

    def test_security_headers(self, client):
        response = client.get("/")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


class TestErrorEnvelope:
    """Todos los errores responden {ok: false, error}"""

    def test_unknown_route(self, client):
        response = client.get("/api/no-existe")
        assert response.status_code == 404
        assert response.json()["ok"] is False

    def test_validation_error_is_400(self, client, auth_headers):
        response = client.post("/api/caja/cerrar", json={"total_cash": "mucho"}, headers=auth_headers)
        assert response.status_code == 400
        body = response.json()
        assert body["ok"] is False
        assert "total_cash" in body["error"]

    def test_missing_token(self, client):
        response = client.get("/api/reportes/turnos")
        assert response.status_code == 401
        assert response.json() == {"ok": False, "error": "No autenticado"}


class TestMigrations:
    """La migración inicial crea el mismo esquema que los modelos"""

    def test_upgrade_and_downgrade(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'pos.db'}"
        config = get_alembic_config(url)

        command.upgrade(config, "head")
        engine = create_engine(url)
        inspector = inspect(engine)
        import_models()
        assert set(inspector.get_table_names()) - {"alembic_version"} == set(Base.metadata.tables)
        assert "uq_cash_drawer_single_open" in {i["name"] for i in inspector.get_indexes("cash_drawer")}

        command.downgrade(config, "base")
        assert set(inspect(engine).get_table_names()) - {"alembic_version"} == set()
        engine.dispose()

    def test_cli_usage(self):
        assert migrate_main(["migrate.py"]) == 1
        assert migrate_main(["migrate.py", "create"]) == 1
        assert migrate_main(["migrate.py", "borrar-todo"]) == 1


class TestInvoiceTask:
    """Tests para la tarea regenerate_pending_invoices"""

    def test_regenerates_pending(self, database, db_session, admin_user, invoice_storage, monkeypatch):
        sale = Sale(
            invoice_number=1,
            user_id=admin_user.id,
            payment_method="efectivo",
            total=Decimal("95.50"),
            final_total=Decimal("95.50"),
            seller_name=admin_user.name,
            invoice_status=InvoiceStatus.PENDIENTE
        )
        db_session.add(sale)
        db_session.commit()

        monkeypatch.setattr(tasks, "Database", lambda url: SharedDatabase(database))
        monkeypatch.setattr(tasks, "build_invoice_storage", lambda: invoice_storage)

        result = tasks.regenerate_pending_invoices(limit=10)

        assert result == {"regenerated": 1, "failed": 0}
        db_session.expire_all()
        assert db_session.get(Sale, sale.id).invoice_status == InvoiceStatus.GENERADA
        assert invoice_storage.exists("1.pdf")
