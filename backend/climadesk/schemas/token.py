"""
Schemas Pydantic para la autenticación JWT
Proyecto: ClimaDesk (Back-office de climatización)

Schemas de los tokens JWT y su payload.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class TokenResponse(BaseModel):
    """
    Respuesta de login/refresh.

    Attributes:
        access_token: token de acceso JWT
        refresh_token: token de refresh JWT
        token_type: tipo de token (bearer)
        expires_at: caducidad UTC del access token
        username: usuario autenticado
        role: rol del usuario
    """

    access_token: str = Field(..., description="Token de acceso JWT")
    refresh_token: str = Field(..., description="Token de refresh JWT")
    token_type: str = Field(default="bearer", description="Tipo de token")
    expires_at: datetime = Field(..., description="Caducidad del access token (UTC)")
    username: str
    role: str


class TokenRefresh(BaseModel):
    """Petición de refresh."""

    refresh_token: str = Field(..., description="Token de refresh JWT")


class TokenPayload(BaseModel):
    """
    Payload de los tokens JWT.

    Attributes:
        sub: id del usuario como string
        role: rol del usuario
        exp: caducidad
        type: "access" o "refresh"
    """

    sub: str = Field(..., description="Id del usuario")
    role: str = Field(..., description="Rol del usuario")
    exp: datetime = Field(..., description="Fecha/hora de caducidad")
    type: str = Field(..., description="Tipo de token (access/refresh)")


__all__ = [
    "TokenResponse",
    "TokenRefresh",
    "TokenPayload",
]
