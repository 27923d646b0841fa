"""
Tests para autenticación y gestión de usuarios
"""

from datetime import timedelta

import pytest

from pos_api.common.exceptions import AuthError, ConflictError, ValidationError, NotFoundError
from pos_api.modules.auth.models import User, Permission
from pos_api.modules.auth.schemas import UserCreate
from pos_api.modules.auth.service import AuthService
from pos_api.modules.auth.utils import (
    hash_password, verify_password, create_access_token, verify_token
)


# ===== TESTS DE UTILIDADES =====

class TestPasswordHashing:
    """Tests para hash_password / verify_password"""

    def test_hash_and_verify(self):
        hashed = hash_password("secreto123")
        assert hashed != "secreto123"
        assert verify_password("secreto123", hashed) is True
        assert verify_password("otra", hashed) is False

    def test_empty_hash_never_matches(self):
        assert verify_password("secreto123", "") is False


class TestTokens:
    """Tests para create_access_token / verify_token"""

    def test_round_trip_claims(self):
        payload = verify_token(create_access_token({"sub": "5", "role": "admin"}))
        assert payload["sub"] == "5"
        assert payload["role"] == "admin"
        assert payload["type"] == "access"

    def test_expired_token(self):
        token = create_access_token({"sub": "5"}, expires_delta=timedelta(seconds=-5))
        with pytest.raises(AuthError) as exc_info:
            verify_token(token)
        assert exc_info.value.message == "Token expirado"

    def test_tampered_token(self):
        token = create_access_token({"sub": "5"})
        with pytest.raises(AuthError):
            verify_token(token[:-2] + ("aa" if not token.endswith("aa") else "bb"))


# ===== TESTS DEL SERVICIO =====

class TestAuthService:
    """Tests para AuthService"""

    def test_login(self, db_session, cashier_user):
        result = AuthService(db_session).login("cajero1", "secreto123")
        assert result["user"].id == cashier_user.id
        assert verify_token(result["token"])["sub"] == str(cashier_user.id)

    def test_login_wrong_password(self, db_session, cashier_user):
        with pytest.raises(AuthError):
            AuthService(db_session).login("cajero1", "equivocada")

    def test_login_inactive_user(self, db_session, user_factory):
        user_factory("inactivo", "Usuario Inactivo", is_active=False)
        with pytest.raises(AuthError):
            AuthService(db_session).login("inactivo", "secreto123")

    def test_create_user(self, db_session):
        user = AuthService(db_session).create_user(UserCreate(
            name="Pedro", username="pedro", password="clave123"
        ))
        assert user.role == "cajero"
        assert user.is_active is True
        assert verify_password("clave123", user.password_hash)

    def test_create_duplicate_user(self, db_session, cashier_user):
        with pytest.raises(ConflictError):
            AuthService(db_session).create_user(UserCreate(
                name="Otra", username="cajero1", password="clave123"
            ))

    def test_assign_permissions_replaces(self, db_session, cashier_user):
        db_session.add_all([Permission(name="reportes.ver"), Permission(name="caja.cerrar")])
        db_session.commit()
        service = AuthService(db_session)

        assert service.assign_permissions(cashier_user.id, ["reportes.ver", "caja.cerrar"]) == [
            "caja.cerrar", "reportes.ver"
        ]
        assert service.assign_permissions(cashier_user.id, ["reportes.ver"]) == ["reportes.ver"]
        assert service.get_user_permissions(cashier_user.id) == ["reportes.ver"]

    def test_assign_unknown_permission(self, db_session, cashier_user):
        with pytest.raises(ValidationError):
            AuthService(db_session).assign_permissions(cashier_user.id, ["no.existe"])

    def test_delete_user(self, db_session, admin_user):
        AuthService(db_session).delete_user(admin_user.id)
        db_session.expire_all()
        assert db_session.query(User).count() == 0

    def test_delete_missing_user(self, db_session):
        with pytest.raises(NotFoundError):
            AuthService(db_session).delete_user(321)


# ===== TESTS DE ENDPOINTS =====

class TestAuthEndpoints:
    """Tests para /api/login y /api/usuarios"""

    def test_login(self, client, cashier_user):
        response = client.post("/api/login", json={"usuario": "cajero1", "password": "secreto123"})

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["token_type"] == "bearer"
        assert body["user"] == {"id": cashier_user.id, "name": "María Cajera", "role": "cajero"}

    def test_login_invalid(self, client, cashier_user):
        response = client.post("/api/login", json={"usuario": "cajero1", "password": "mala"})
        assert response.status_code == 401
        assert response.json() == {"ok": False, "error": "Contraseña incorrecta"}

    def test_login_missing_fields(self, client):
        response = client.post("/api/login", json={"usuario": "cajero1"})
        assert response.status_code == 400
        assert response.json()["ok"] is False

    def test_token_from_login_works(self, client, cashier_user):
        token = client.post(
            "/api/login", json={"usuario": "cajero1", "password": "secreto123"}
        ).json()["token"]

        response = client.get("/api/usuarios/permisos", headers={"Authorization": f"Bearer {token}"})
        assert response.json() == {"ok": True, "permissions": []}

    def test_invalid_token(self, client):
        response = client.get("/api/usuarios/permisos", headers={"Authorization": "Bearer basura"})
        assert response.status_code == 401
        assert response.json() == {"ok": False, "error": "Token inválido"}

    def test_deactivated_user_token_rejected(self, client, db_session, cashier_user, cashier_headers):
        cashier_user.is_active = False
        db_session.commit()

        response = client.get("/api/usuarios/permisos", headers=cashier_headers)
        assert response.status_code == 401

    def test_list_users_requires_permission(self, client, cashier_headers):
        response = client.get("/api/usuarios", headers=cashier_headers)
        assert response.status_code == 403
        assert response.json() == {"ok": False, "error": "No autorizado"}

    def test_list_users(self, client, auth_headers, cashier_user):
        response = client.get("/api/usuarios", headers=auth_headers)
        usernames = [u["username"] for u in response.json()["users"]]
        assert usernames == ["admin", "cajero1"]

    def test_create_and_deactivate_user(self, client, auth_headers):
        response = client.post("/api/usuarios/crear", json={
            "name": "Luis", "username": "luis", "password": "clave123"
        }, headers=auth_headers)
        assert response.status_code == 201
        user_id = response.json()["user"]["id"]

        response = client.put(f"/api/usuarios/{user_id}/activo", json={"is_active": False}, headers=auth_headers)
        assert response.json()["user"]["is_active"] is False

        response = client.post("/api/login", json={"usuario": "luis", "password": "clave123"})
        assert response.status_code == 401

    def test_assign_permissions_endpoint(self, client, auth_headers, cashier_user, headers_for):
        response = client.post("/api/usuarios/asignar-permisos", json={
            "user_id": cashier_user.id, "permissions": ["usuarios.gestionar"]
        }, headers=auth_headers)
        assert response.json() == {"ok": True, "permissions": ["usuarios.gestionar"]}

        response = client.get("/api/usuarios", headers=headers_for(cashier_user))
        assert response.status_code == 200

    def test_permission_catalog(self, client, auth_headers):
        response = client.get("/api/permisos", headers=auth_headers)
        assert response.json()["permissions"] == ["usuarios.gestionar"]
