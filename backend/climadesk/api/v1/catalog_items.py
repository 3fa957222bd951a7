"""
Router FastAPI para el catálogo
Proyecto: ClimaDesk (Back-office de climatización)

La lectura es pública (la usan el asistente y el formulario de
cotización); la escritura requiere sesión.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.database import get_db
from climadesk.core.deps import CurrentUser
from climadesk.schemas.catalog_item import CatalogItemCreate, CatalogItemRead, CatalogItemUpdate
from climadesk.services.catalog_item_service import CatalogItemService, get_catalog_item_service

router = APIRouter(
    prefix="/catalog-items",
    tags=["Catálogo"],
)


@router.get(
    "",
    name="catalogo_lista",
    summary="Lista el catálogo",
    response_model=list[CatalogItemRead],
)
async def get_catalog_items(
    search: Optional[str] = Query(None, description="Nombre, descripción o SKU"),
    item_type: Optional[str] = Query(None, description="Service, Product, Material u Other"),
    is_active: Optional[bool] = Query(None, description="Filtra por estado"),
    db: AsyncSession = Depends(get_db),
    service: CatalogItemService = Depends(get_catalog_item_service),
) -> list[CatalogItemRead]:
    items = await service.get_all(db, search=search, item_type=item_type, is_active=is_active)
    return [CatalogItemRead.model_validate(i) for i in items]


@router.get(
    "/{item_id}",
    name="catalogo_detalle",
    summary="Detalle de un elemento del catálogo",
    response_model=CatalogItemRead,
)
async def get_catalog_item(
    item_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: CatalogItemService = Depends(get_catalog_item_service),
) -> CatalogItemRead:
    return CatalogItemRead.model_validate(await service.get_by_id(db, item_id))


@router.post(
    "",
    name="catalogo_crear",
    summary="Crea un elemento del catálogo",
    response_model=CatalogItemRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_catalog_item(
    data: CatalogItemCreate,
    _: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: CatalogItemService = Depends(get_catalog_item_service),
) -> CatalogItemRead:
    return CatalogItemRead.model_validate(await service.create(db, data))


@router.put(
    "/{item_id}",
    name="catalogo_actualizar",
    summary="Actualiza un elemento del catálogo",
    response_model=CatalogItemRead,
)
async def update_catalog_item(
    item_id: uuid.UUID,
    data: CatalogItemUpdate,
    _: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: CatalogItemService = Depends(get_catalog_item_service),
) -> CatalogItemRead:
    return CatalogItemRead.model_validate(await service.update(db, item_id, data))


@router.delete(
    "/{item_id}",
    name="catalogo_borrar",
    summary="Borra un elemento del catálogo",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_catalog_item(
    item_id: uuid.UUID,
    _: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: CatalogItemService = Depends(get_catalog_item_service),
) -> None:
    await service.delete(db, item_id)
