"""
Módulo de seguridad para autenticación JWT
Proyecto: ClimaDesk (Back-office de climatización)

Hash de contraseñas y emisión/validación de tokens JWT.
"""

from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status
from jose import JWTError, jwt
from passlib.context import CryptContext

from climadesk.core.config import Settings
from climadesk.schemas.token import TokenPayload

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hashea una contraseña en claro.

    Args:
        password: contraseña en claro

    Returns:
        Hash bcrypt
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifica una contraseña en claro contra su hash.
    """
    return pwd_context.verify(plain_password, hashed_password)


def _encode(user_id: str, role: str, token_type: str, expire: datetime, settings: Settings) -> str:
    payload = {
        "sub": user_id,
        "role": role,
        "exp": expire,
        "type": token_type,
        "iss": settings.jwt_issuer,
    }
    return jwt.encode(payload, settings.jwt_key, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str, role: str, settings: Settings) -> tuple[str, datetime]:
    """
    Crea un access token JWT.

    Args:
        user_id: id del usuario
        role: rol del usuario
        settings: configuración con clave y caducidad

    Returns:
        Tupla (token, fecha de caducidad UTC)
    """
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.access_token_expire_minutes
    )
    return _encode(user_id, role, "access", expire, settings), expire


def create_refresh_token(user_id: str, role: str, settings: Settings) -> str:
    """
    Crea un refresh token JWT.
    """
    expire = datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_expire_days)
    return _encode(user_id, role, "refresh", expire, settings)


def decode_token(token: str, settings: Settings) -> TokenPayload:
    """
    Decodifica y valida un token JWT.

    Raises:
        HTTPException 401: token inválido, caducado o sin sujeto
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token inválido o caducado: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido: falta el sujeto",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenPayload(
        sub=payload["sub"],
        role=payload.get("role") or "user",
        exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        type=payload.get("type") or "access",
    )


__all__ = [
    "hash_password",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
]
