from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from pos_api.database.database import Base
from pos_api.common.mixins import TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    username = Column(String(60), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(30), nullable=False, default="cajero")
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    user_permissions = relationship("UserPermission", back_populates="user", cascade="all, delete-orphan")

    @property
    def permission_names(self) -> list[str]:
        return sorted(up.permission.name for up in self.user_permissions)


class Permission(Base):
    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(80), unique=True, nullable=False)  # ej. usuarios.gestionar
    description = Column(String(255), nullable=True)


class UserPermission(Base):
    __tablename__ = "user_permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    permission_id = Column(Integer, ForeignKey("permissions.id"), nullable=False)

    # Relationships
    user = relationship("User", back_populates="user_permissions")
    permission = relationship("Permission", lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "permission_id", name="uq_user_permission"),
    )
