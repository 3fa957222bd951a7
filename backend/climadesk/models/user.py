"""
Modelo SQLAlchemy para la entidad User
Proyecto: ClimaDesk (Back-office de climatización)

Modelo para la autenticación de los usuarios del back-office.
"""

from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from climadesk.models import Base
from climadesk.models.mixins import ActiveFlagMixin, TimestampMixin, UUIDMixin


class UserRole(str, Enum):
    """Roles de usuario."""
    ADMIN = "admin"
    USER = "user"


class User(Base, UUIDMixin, TimestampMixin, ActiveFlagMixin):
    """
    Usuario del sistema.

    Attributes:
        username: nombre de usuario único (login)
        hashed_password: hash bcrypt
        full_name: nombre completo
        email: correo (opcional)
        role: admin | user
        last_login_at: último login correcto
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        doc="Nombre de usuario único",
    )

    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.USER.value,
        doc="Rol del usuario",
    )

    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_users_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"
