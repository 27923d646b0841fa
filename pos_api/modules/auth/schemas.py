from pydantic import BaseModel, Field, field_validator
from typing import List


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=60, alias="usuario")
    password: str = Field(..., min_length=1)

    model_config = {"populate_by_name": True}


class UserSummary(BaseModel):
    id: int
    name: str
    role: str

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    ok: bool = True
    token: str
    token_type: str = "bearer"
    user: UserSummary


class UserOut(BaseModel):
    id: int
    name: str
    username: str
    role: str
    is_active: bool

    model_config = {"from_attributes": True}


class UserList(BaseModel):
    ok: bool = True
    users: List[UserOut]


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    username: str = Field(..., min_length=3, max_length=60)
    password: str = Field(..., min_length=6)
    role: str = Field(default="cajero", max_length=30)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        cleaned = v.strip()
        if " " in cleaned:
            raise ValueError('El usuario no puede contener espacios')
        return cleaned


class PermissionsAssign(BaseModel):
    user_id: int
    permissions: List[str] = Field(default_factory=list)


class ActiveUpdate(BaseModel):
    is_active: bool


class PermissionNames(BaseModel):
    ok: bool = True
    permissions: List[str]


class MessageResponse(BaseModel):
    ok: bool = True
    message: str


class UserResponse(BaseModel):
    ok: bool = True
    user: UserOut
