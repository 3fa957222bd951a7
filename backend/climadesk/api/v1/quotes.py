"""
Router FastAPI para las cotizaciones
Proyecto: ClimaDesk (Back-office de climatización)
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.database import get_db
from climadesk.core.deps import AdminUser, CurrentUser
from climadesk.schemas.quote import QuoteCreate, QuoteRead, QuoteUpdate
from climadesk.services.quote_service import QuoteService, get_quote_service

# Logger para este módulo
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/quotes",
    tags=["Cotizaciones"],
)


@router.get(
    "",
    name="cotizaciones_lista",
    summary="Lista cotizaciones",
    response_model=list[QuoteRead],
)
async def get_quotes(
    _: CurrentUser,
    search: Optional[str] = Query(None, description="Nombre, descripción o cliente"),
    client_id: Optional[uuid.UUID] = Query(None, description="Filtra por cliente"),
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> list[QuoteRead]:
    quotes = await service.get_all(db, search=search, client_id=client_id)
    return [QuoteRead.model_validate(q) for q in quotes]


@router.get(
    "/{quote_id}",
    name="cotizacion_detalle",
    summary="Detalle de cotización",
    response_model=QuoteRead,
)
async def get_quote(
    quote_id: uuid.UUID,
    _: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteRead:
    return QuoteRead.model_validate(await service.get_by_id(db, quote_id))


@router.post(
    "",
    name="cotizacion_crear",
    summary="Crea cotización",
    description=(
        "Crea una cotización para un cliente existente (client_id) o uno nuevo "
        "(new_client). from_quote_id usa otra cotización como plantilla."
    ),
    response_model=QuoteRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_quote(
    data: QuoteCreate,
    _: AdminUser,
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteRead:
    """
    Raises:
        BusinessValidationError: cliente o líneas inválidos
    """
    return QuoteRead.model_validate(await service.create(db, data))


@router.put(
    "/{quote_id}",
    name="cotizacion_actualizar",
    summary="Actualiza cotización",
    response_model=QuoteRead,
)
async def update_quote(
    quote_id: uuid.UUID,
    data: QuoteUpdate,
    _: AdminUser,
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteRead:
    return QuoteRead.model_validate(await service.update(db, quote_id, data))


@router.delete(
    "/{quote_id}",
    name="cotizacion_borrar",
    summary="Borra cotización",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_quote(
    quote_id: uuid.UUID,
    _: AdminUser,
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> None:
    await service.delete(db, quote_id)
