from fastapi import APIRouter, Depends, Path

from pos_api.dependencies.dbDependencies import db_dependency
from pos_api.dependencies.userDependencies import user_dependency
from pos_api.modules.auth.dependencies import require_users_manage
from pos_api.modules.auth.models import User
from pos_api.modules.auth.service import AuthService
from pos_api.modules.auth.schemas import (
    LoginRequest, TokenResponse, UserSummary, UserList, UserCreate, UserOut,
    PermissionsAssign, ActiveUpdate, PermissionNames, MessageResponse, UserResponse
)

auth_router = APIRouter()


@auth_router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, db: db_dependency):
    """
    Iniciar sesión con usuario y contraseña.

    Devuelve un JWT firmado con expiración. Credenciales inválidas responden 401.
    """
    service = AuthService(db)
    result = service.login(credentials.username, credentials.password)
    return TokenResponse(token=result["token"], user=UserSummary.model_validate(result["user"]))


@auth_router.get("/usuarios", response_model=UserList)
def list_users(db: db_dependency, current_user: User = Depends(require_users_manage())):
    """Listar usuarios (requiere usuarios.gestionar)"""
    return UserList(users=[UserOut.model_validate(u) for u in AuthService(db).list_users()])


@auth_router.get("/usuarios/permisos", response_model=PermissionNames)
def my_permissions(db: db_dependency, current_user: user_dependency):
    """Permisos del usuario autenticado"""
    return PermissionNames(permissions=AuthService(db).get_user_permissions(current_user.id))


@auth_router.get("/permisos", response_model=PermissionNames)
def list_permissions(db: db_dependency, current_user: user_dependency):
    """Catálogo de permisos disponibles"""
    return PermissionNames(permissions=AuthService(db).list_permission_names())


@auth_router.get("/usuarios/{user_id}/permisos", response_model=PermissionNames)
def user_permissions(
    db: db_dependency,
    user_id: int = Path(..., description="ID del usuario"),
    current_user: User = Depends(require_users_manage())
):
    return PermissionNames(permissions=AuthService(db).get_user_permissions(user_id))


@auth_router.post("/usuarios/asignar-permisos", response_model=PermissionNames)
def assign_permissions(
    data: PermissionsAssign,
    db: db_dependency,
    current_user: User = Depends(require_users_manage())
):
    """Reemplaza los permisos del usuario por la lista enviada"""
    permissions = AuthService(db).assign_permissions(data.user_id, data.permissions)
    return PermissionNames(permissions=permissions)


@auth_router.post("/usuarios/crear", response_model=UserResponse, status_code=201)
def create_user(
    data: UserCreate,
    db: db_dependency,
    current_user: User = Depends(require_users_manage())
):
    return UserResponse(user=UserOut.model_validate(AuthService(db).create_user(data)))


@auth_router.put("/usuarios/{user_id}/activo", response_model=UserResponse)
def set_user_active(
    data: ActiveUpdate,
    db: db_dependency,
    user_id: int = Path(..., description="ID del usuario"),
    current_user: User = Depends(require_users_manage())
):
    return UserResponse(user=UserOut.model_validate(AuthService(db).set_active(user_id, data.is_active)))


@auth_router.delete("/usuarios/{user_id}", response_model=MessageResponse)
def delete_user(
    db: db_dependency,
    user_id: int = Path(..., description="ID del usuario"),
    current_user: User = Depends(require_users_manage())
):
    AuthService(db).delete_user(user_id)
    return MessageResponse(message="Usuario eliminado")
