"""
Configuración de pytest y fixtures compartidas.

Cada test usa una base SQLite en memoria (aiosqlite + StaticPool) con el
esquema completo. Los tests de API usan httpx.AsyncClient sobre la app
ASGI con get_db sustituido por la sesión de prueba.
"""

import os

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ["GEMINI_API_KEY"] = ""

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from climadesk.core.config import get_settings
from climadesk.core.database import get_db
from climadesk.core.security import create_access_token, hash_password
from climadesk.main import app
from climadesk.models import Base, CatalogItem, Client, FiscalVoucher, User
from climadesk.models.user import UserRole
from climadesk.schemas.line import LineInput

TEST_PASSWORD = "clave-segura-123"


# ============================================================
# Base de datos
# ============================================================


@pytest.fixture
async def engine():
    """Engine SQLite en memoria compartido por todas las sesiones del test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory):
    """Sesión para los tests de servicio."""
    async with session_factory() as session:
        yield session


# ============================================================
# Cliente HTTP
# ============================================================


@pytest.fixture
async def api_client(session_factory):
    """AsyncClient contra la app con get_db apuntando a la base de prueba."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except BaseException:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ============================================================
# Usuarios y tokens
# ============================================================


async def _create_user(session_factory, username: str, role: str, is_active: bool = True) -> User:
    async with session_factory() as session:
        user = User(
            username=username,
            full_name=username.title(),
            hashed_password=hash_password(TEST_PASSWORD),
            role=role,
            is_active=is_active,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


@pytest.fixture
async def admin_user(session_factory) -> User:
    return await _create_user(session_factory, "admin", UserRole.ADMIN.value)


@pytest.fixture
async def plain_user(session_factory) -> User:
    return await _create_user(session_factory, "tecnico", UserRole.USER.value)


def _auth_headers(user: User) -> dict[str, str]:
    token, _ = create_access_token(str(user.id), user.role, get_settings())
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user) -> dict[str, str]:
    return _auth_headers(admin_user)


@pytest.fixture
def user_headers(plain_user) -> dict[str, str]:
    return _auth_headers(plain_user)


# ============================================================
# Datos de dominio
# ============================================================


@pytest.fixture
async def client_entity(db) -> Client:
    """Cliente particular activo."""
    client = Client(
        client_type="Individual",
        first_name="Juan",
        last_name="Pérez",
        phone="8095550101",
        address="Calle 5, Naco",
        is_active=True,
    )
    db.add(client)
    await db.commit()
    await db.refresh(client)
    return client


@pytest.fixture
async def vouchers(db) -> list[FiscalVoucher]:
    """Tres NCF libres, insertados fuera de orden."""
    numbers = ["B0100000003", "B0100000001", "B0100000002"]
    created = [FiscalVoucher(voucher_number=n, voucher_type="B01", is_used=False) for n in numbers]
    db.add_all(created)
    await db.commit()
    return created


@pytest.fixture
async def catalog(db) -> list[CatalogItem]:
    items = [
        CatalogItem(
            name="Instalacion split 12000 BTU",
            description="Instalacion de equipo split con rejillas",
            item_type="Service",
            nivel="Basico",
            base_price=Decimal("4500.00"),
            is_taxable=True,
        ),
        CatalogItem(
            name="Rejillas de aluminio",
            description="Rejillas nuevas para ductos",
            item_type="Material",
            base_price=Decimal("850.00"),
            is_taxable=True,
        ),
        CatalogItem(
            name="Mantenimiento preventivo",
            description="Limpieza de filtros y serpentines",
            item_type="Service",
            nivel="Estandar",
            base_price=Decimal("1500.00"),
            is_taxable=False,
        ),
        CatalogItem(
            name="Rejillas antiguas",
            description="Descontinuado",
            item_type="Product",
            base_price=Decimal("100.00"),
            is_taxable=False,
            is_active=False,
        ),
    ]
    db.add_all(items)
    await db.commit()
    return items


@pytest.fixture
def make_line():
    """Factory de líneas válidas con valores por defecto sobreescribibles."""

    def _make(**overrides) -> LineInput:
        data = {
            "name": "Instalacion",
            "quantity": Decimal("2"),
            "unit_price": Decimal("100"),
            "discount_value": Decimal("10"),
            "is_taxable": True,
            "tax_rate": Decimal("18"),
        }
        data.update(overrides)
        return LineInput(**data)

    return _make
