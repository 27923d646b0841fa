from passlib.context import CryptContext
from fastapi import Depends
from datetime import datetime, timedelta, timezone
from typing import Optional
import jwt
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pos_api.core.config import settings
from pos_api.common.exceptions import AuthError
from pos_api.modules.auth.models import User
from pos_api.dependencies.dbDependencies import db_dependency

oauth2_scheme = HTTPBearer(auto_error=False)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)

def verify_password(plain: str, hashed: str) -> bool:
    """Verify a hashed password against a plain password."""
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token with an expiration time.
    If expires_delta is not provided, it defaults to ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "iat": now, "type": "access"})
    return jwt.encode(to_encode, settings.APP_SECRET_STRING, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify a JWT token and return the payload.
    """
    try:
        return jwt.decode(token, settings.APP_SECRET_STRING, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expirado")
    except jwt.InvalidTokenError:
        raise AuthError("Token inválido")


def get_current_user(
    db: db_dependency,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme)
) -> User:
    """ Retrieve the current user based on the provided JWT token. """
    if credentials is None:
        raise AuthError("No autenticado")

    payload = verify_token(credentials.credentials)
    user_id = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        raise AuthError("Token inválido")

    user = db.query(User).filter(User.id == int(user_id)).first()
    if user is None or user.is_active is not True:
        raise AuthError("Usuario no encontrado o inactivo")

    return user
