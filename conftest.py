"""
Fixtures compartidas para los tests de cada módulo.

Cada test recibe una base SQLite en memoria nueva y un directorio temporal
para las facturas.
"""
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from pos_api.database.database import Database
from pos_api.main import create_app
from pos_api.modules.auth.models import User, Permission, UserPermission
from pos_api.modules.auth.dependencies import USERS_MANAGE
from pos_api.modules.auth.utils import hash_password, create_access_token
from pos_api.modules.products.models import Product
from pos_api.modules.sales.storage import LocalInvoiceStorage


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def invoice_dir(tmp_path):
    return tmp_path / "facturas"


@pytest.fixture
def invoice_storage(invoice_dir):
    return LocalInvoiceStorage(invoice_dir)


@pytest.fixture
def client(database, invoice_storage):
    app = create_app(database=database, invoice_storage=invoice_storage)
    return TestClient(app)


def make_user(db_session, username: str, name: str, password: str = "secreto123",
              role: str = "cajero", is_active: bool = True, permissions=()) -> User:
    user = User(
        name=name,
        username=username,
        password_hash=hash_password(password),
        role=role,
        is_active=is_active
    )
    db_session.add(user)
    db_session.flush()

    for permission_name in permissions:
        permission = db_session.query(Permission).filter(Permission.name == permission_name).first()
        if permission is None:
            permission = Permission(name=permission_name)
            db_session.add(permission)
            db_session.flush()
        db_session.add(UserPermission(user_id=user.id, permission_id=permission.id))

    db_session.commit()
    db_session.refresh(user)
    return user


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def admin_user(db_session):
    """Usuario administrador con permiso usuarios.gestionar"""
    return make_user(db_session, "admin", "Administrador", role="admin", permissions=[USERS_MANAGE])


@pytest.fixture
def cashier_user(db_session):
    """Cajero sin permisos de administración"""
    return make_user(db_session, "cajero1", "María Cajera")


@pytest.fixture
def auth_headers(admin_user):
    return bearer(admin_user)


@pytest.fixture
def cashier_headers(cashier_user):
    return bearer(cashier_user)


@pytest.fixture
def sample_products(db_session):
    """Dos productos con existencia y mínimo de reorden 3"""
    mouse = Product(
        barcode="7401000000011",
        name="Mouse USB",
        stock=10,
        stock_minimum=3,
        price=Decimal("150.00"),
        wholesale_price=Decimal("120.00")
    )
    cable = Product(
        barcode="7401000000028",
        name="Cable HDMI 2m",
        stock=4,
        stock_minimum=3,
        price=Decimal("95.50"),
        wholesale_price=Decimal("80.00")
    )
    db_session.add_all([mouse, cable])
    db_session.commit()
    db_session.refresh(mouse)
    db_session.refresh(cable)
    return mouse, cable


@pytest.fixture
def user_factory(db_session):
    """Crear usuarios adicionales dentro de un test"""
    def factory(username: str, name: str, **kwargs) -> User:
        return make_user(db_session, username, name, **kwargs)
    return factory


@pytest.fixture
def headers_for():
    """Cabeceras Authorization para cualquier usuario"""
    return bearer
