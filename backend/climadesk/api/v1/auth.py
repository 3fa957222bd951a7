"""
Router de autenticación
Proyecto: ClimaDesk (Back-office de climatización)

Endpoints de login, refresh de tokens y perfil del usuario.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.database import get_db
from climadesk.core.deps import CurrentUser
from climadesk.schemas.token import TokenRefresh, TokenResponse
from climadesk.schemas.user import UserLogin, UserResponse
from climadesk.services.auth_service import AuthService, get_auth_service

router = APIRouter(
    prefix="/auth",
    tags=["Autenticación"],
)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Inicia sesión",
)
async def login(
    data: UserLogin,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """
    Valida usuario y contraseña y devuelve los tokens JWT.

    Returns:
        TokenResponse con access_token, refresh_token y caducidad
    """
    return await service.login(db, data)


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Renueva los tokens",
)
async def refresh(
    data: TokenRefresh,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    return await service.refresh(db, data.refresh_token)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Perfil del usuario actual",
)
async def get_me(current_user: CurrentUser):
    return current_user


__all__ = ["router"]
