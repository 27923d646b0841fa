"""
Servicio de usuarios, sesiones y permisos.
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import List
import logging

from pos_api.common.exceptions import (
    POSError, AuthError, ConflictError, NotFoundError, ValidationError, StorageError
)
from pos_api.modules.auth.models import User, Permission, UserPermission
from pos_api.modules.auth.schemas import UserCreate
from pos_api.modules.auth.utils import hash_password, verify_password, create_access_token
from pos_api.modules.auth.dependencies import get_permission_names

logger = logging.getLogger(__name__)


class AuthService:
    """Servicio para autenticación y gestión de usuarios"""

    def __init__(self, db: Session):
        self.db = db

    def login(self, username: str, password: str) -> dict:
        """Validar credenciales y emitir token firmado"""
        user = self.db.query(User).filter(
            User.username == username,
            User.is_active == True
        ).first()

        if not user:
            raise AuthError("Usuario no encontrado o inactivo")

        if not verify_password(password, user.password_hash):
            raise AuthError("Contraseña incorrecta")

        token = create_access_token({"sub": str(user.id), "role": user.role})
        logger.info(f"Login de usuario {user.username}")
        return {"token": token, "user": user}

    def list_users(self) -> List[User]:
        return self.db.query(User).order_by(User.id).all()

    def _get_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("Usuario no encontrado")
        return user

    def create_user(self, user_data: UserCreate) -> User:
        """Crear usuario con contraseña hasheada"""
        try:
            existing = self.db.query(User).filter(User.username == user_data.username).first()
            if existing:
                raise ConflictError("El usuario ya existe")

            user = User(
                name=user_data.name,
                username=user_data.username,
                password_hash=hash_password(user_data.password),
                role=user_data.role,
                is_active=True
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            return user

        except POSError:
            raise
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("El usuario ya existe")
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al crear usuario: {str(e)}", cause=e)

    def get_user_permissions(self, user_id: int) -> List[str]:
        self._get_user(user_id)
        return get_permission_names(self.db, user_id)

    def list_permission_names(self) -> List[str]:
        return [row.name for row in self.db.query(Permission.name).order_by(Permission.name).all()]

    def assign_permissions(self, user_id: int, permission_names: List[str]) -> List[str]:
        """Reemplazar el conjunto de permisos de un usuario"""
        try:
            self._get_user(user_id)

            permissions = self.db.query(Permission).filter(
                Permission.name.in_(permission_names)
            ).all() if permission_names else []

            unknown = set(permission_names) - {p.name for p in permissions}
            if unknown:
                raise ValidationError(f"Permisos desconocidos: {', '.join(sorted(unknown))}")

            self.db.query(UserPermission).filter(UserPermission.user_id == user_id).delete()
            for permission in permissions:
                self.db.add(UserPermission(user_id=user_id, permission_id=permission.id))

            self.db.commit()
            return sorted(p.name for p in permissions)

        except POSError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al asignar permisos: {str(e)}", cause=e)

    def set_active(self, user_id: int, is_active: bool) -> User:
        try:
            user = self._get_user(user_id)
            user.is_active = is_active
            self.db.commit()
            self.db.refresh(user)
            return user
        except POSError:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al actualizar usuario: {str(e)}", cause=e)

    def delete_user(self, user_id: int) -> bool:
        try:
            user = self._get_user(user_id)
            self.db.query(UserPermission).filter(UserPermission.user_id == user_id).delete()
            self.db.delete(user)
            self.db.commit()
            return True
        except POSError:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al eliminar usuario: {str(e)}", cause=e)
