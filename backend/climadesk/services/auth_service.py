"""
Servicio de autenticación
Proyecto: ClimaDesk (Back-office de climatización)

Lógica de negocio para login, refresh de tokens y creación del usuario
administrador inicial.
"""

import datetime
import logging
from uuid import UUID

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.config import Settings, get_settings
from climadesk.core.exceptions import BusinessValidationError
from climadesk.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from climadesk.models.user import User, UserRole
from climadesk.schemas.token import TokenResponse
from climadesk.schemas.user import UserLogin

# Logger para este módulo
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Credenciales inválidas."


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthService:
    """Servicio de autenticación."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def login(self, db: AsyncSession, data: UserLogin) -> TokenResponse:
        """
        Autentica un usuario y devuelve el par de tokens JWT.

        Raises:
            BusinessValidationError: usuario o contraseña vacíos
            HTTPException 401: credenciales inválidas o usuario inactivo
        """
        username = (data.username or "").strip()
        if not username or not (data.password or "").strip():
            raise BusinessValidationError("Usuario y contraseña son obligatorios.")

        result = await db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()

        if user is None or not user.is_active:
            logger.warning("Login fallido para %r", username)
            raise _unauthorized(INVALID_CREDENTIALS)

        if not verify_password(data.password, user.hashed_password):
            logger.warning("Login fallido para %r", username)
            raise _unauthorized(INVALID_CREDENTIALS)

        user.last_login_at = datetime.datetime.now(datetime.timezone.utc)
        await db.commit()

        logger.info("Login correcto: %s", username)
        return self._issue_tokens(user)

    async def refresh(self, db: AsyncSession, refresh_token: str) -> TokenResponse:
        """
        Emite un nuevo par de tokens a partir de un refresh token.

        Raises:
            HTTPException 401: token inválido, de acceso, o usuario inactivo
        """
        token_data = decode_token(refresh_token, self.settings)

        if token_data.type != "refresh":
            raise _unauthorized("Se requiere un refresh token")

        try:
            user_id = UUID(token_data.sub)
        except ValueError:
            raise _unauthorized("Id de usuario inválido en el token")

        user = await db.get(User, user_id)
        if user is None or not user.is_active:
            raise _unauthorized("Usuario no encontrado o desactivado")

        return self._issue_tokens(user)

    def _issue_tokens(self, user: User) -> TokenResponse:
        access_token, expires_at = create_access_token(str(user.id), user.role, self.settings)
        refresh_token = create_refresh_token(str(user.id), user.role, self.settings)
        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
            expires_at=expires_at,
            username=user.username,
            role=user.role,
        )


class AuthBootstrapper:
    """
    Garantiza que exista el usuario administrador inicial.

    Si el usuario existe se reactiva y se le devuelve el rol admin; si no
    existe se crea con la contraseña de seed configurada.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    async def ensure_seed_admin(self, db: AsyncSession) -> User:
        """
        Raises:
            RuntimeError: hay que crear el usuario y no hay contraseña de seed
        """
        username = (self.settings.seed_admin_username or "").strip() or "admin"
        full_name = (self.settings.seed_admin_full_name or "").strip() or "Administrador"

        result = await db.execute(select(User).where(User.username == username))
        existing = result.scalar_one_or_none()

        if existing is not None:
            if not existing.is_active or existing.role != UserRole.ADMIN.value:
                existing.is_active = True
                existing.role = UserRole.ADMIN.value
                existing.full_name = existing.full_name or full_name
                await db.commit()
                logger.info("Usuario admin %s reactivado", username)
            return existing

        password = (self.settings.seed_admin_password or "").strip()
        if not password:
            raise RuntimeError(
                "No hay contraseña de seed para el usuario admin. Define AUTH_SEED_ADMIN_PASSWORD."
            )

        user = User(
            username=username,
            full_name=full_name,
            hashed_password=hash_password(password),
            role=UserRole.ADMIN.value,
            is_active=True,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info("Usuario admin inicial creado: %s", username)
        return user


def get_auth_service(settings: Settings = Depends(get_settings)) -> AuthService:
    """Dependency de FastAPI para AuthService."""
    return AuthService(settings)


__all__ = ["AuthService", "AuthBootstrapper", "get_auth_service", "INVALID_CREDENTIALS"]
