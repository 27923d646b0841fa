"""
Dependencias de autorización para FastAPI.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from pos_api.dependencies.dbDependencies import get_db
from pos_api.common.exceptions import PermissionDeniedError
from pos_api.modules.auth.models import User, UserPermission, Permission
from pos_api.modules.auth.utils import get_current_user

USERS_MANAGE = "usuarios.gestionar"


def get_permission_names(db: Session, user_id: int) -> list[str]:
    rows = db.query(Permission.name).join(
        UserPermission, UserPermission.permission_id == Permission.id
    ).filter(UserPermission.user_id == user_id).all()
    return [row.name for row in rows]


class AuthDependencies:
    """Dependencias de autorización reutilizables."""

    @staticmethod
    def require_permission(permission: str):
        """
        Dependencia para requerir un permiso específico.
        """
        def permission_checker(
            current_user: User = Depends(get_current_user),
            db: Session = Depends(get_db)
        ) -> User:
            if permission not in get_permission_names(db, current_user.id):
                raise PermissionDeniedError("No autorizado")
            return current_user
        return permission_checker

    @staticmethod
    def require_users_manage():
        return AuthDependencies.require_permission(USERS_MANAGE)


require_permission = AuthDependencies.require_permission
require_users_manage = AuthDependencies.require_users_manage
