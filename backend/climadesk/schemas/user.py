"""
Schemas Pydantic para la entidad User
Proyecto: ClimaDesk (Back-office de climatización)
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserLogin(BaseModel):
    """
    Credenciales de login.

    Los campos vacíos se validan en AuthService para devolver el mensaje
    de negocio en lugar del error de esquema.
    """

    username: str = Field(default="", description="Nombre de usuario")
    password: str = Field(default="", description="Contraseña en claro")


class UserResponse(BaseModel):
    """Datos públicos del usuario (nunca la contraseña)."""

    id: UUID
    username: str
    full_name: str
    email: Optional[str] = None
    role: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


__all__ = [
    "UserLogin",
    "UserResponse",
]
