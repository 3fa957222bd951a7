"""
Router FastAPI para la entidad Client
Proyecto: ClimaDesk (Back-office de climatización)

Define los endpoints API para la gestión de clientes.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.database import get_db
from climadesk.core.deps import AdminUser, CurrentUser
from climadesk.schemas.client import ClientCreate, ClientRead, ClientUpdate
from climadesk.services.client_service import ClientService, get_client_service

# Logger para este módulo
logger = logging.getLogger(__name__)

# Router con prefix y tag
router = APIRouter(
    prefix="/clients",
    tags=["Clientes"],
)


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------

@router.get(
    "",
    name="clientes_lista",
    summary="Lista clientes",
    description="Lista los clientes con filtro opcional de búsqueda y estado.",
    response_model=list[ClientRead],
    status_code=status.HTTP_200_OK,
)
async def get_clients(
    _: CurrentUser,
    search: Optional[str] = Query(None, description="Nombre, empresa, teléfono, documento o correo"),
    is_active: Optional[bool] = Query(None, description="Filtra por estado"),
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> list[ClientRead]:
    """
    Lista los clientes ordenados por nombre.

    Args:
        search: término de búsqueda opcional
        is_active: None devuelve activos e inactivos
    """
    clients = await service.get_all(db=db, search=search, is_active=is_active)
    return [ClientRead.model_validate(c) for c in clients]


@router.get(
    "/{client_id}",
    name="cliente_detalle",
    summary="Detalle de cliente",
    response_model=ClientRead,
    status_code=status.HTTP_200_OK,
)
async def get_client(
    client_id: uuid.UUID,
    _: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    """
    Raises:
        NotFoundError: el cliente no existe
    """
    client = await service.get_by_id(db=db, client_id=client_id)
    return ClientRead.model_validate(client)


@router.post(
    "",
    name="cliente_crear",
    summary="Crea cliente",
    response_model=ClientRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_client(
    client_data: ClientCreate,
    _: AdminUser,
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    """
    Crea un cliente.

    Raises:
        BusinessValidationError: faltan campos obligatorios (todos juntos)
    """
    client = await service.create(db=db, data=client_data)
    return ClientRead.model_validate(client)


@router.put(
    "/{client_id}",
    name="cliente_actualizar",
    summary="Actualiza cliente",
    response_model=ClientRead,
    status_code=status.HTTP_200_OK,
)
async def update_client(
    client_id: uuid.UUID,
    client_data: ClientUpdate,
    _: AdminUser,
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    client = await service.update(db=db, client_id=client_id, data=client_data)
    return ClientRead.model_validate(client)


@router.delete(
    "/{client_id}",
    name="cliente_borrar",
    summary="Borra cliente",
    description="Borra un cliente sin cotizaciones ni facturas asociadas.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_client(
    client_id: uuid.UUID,
    _: AdminUser,
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> None:
    """
    Raises:
        NotFoundError: el cliente no existe
        ConflictError: el cliente tiene cotizaciones o facturas
    """
    await service.delete(db=db, client_id=client_id)
