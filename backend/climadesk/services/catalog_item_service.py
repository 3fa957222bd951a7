"""
Service Layer para el catálogo
Proyecto: ClimaDesk (Back-office de climatización)
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.exceptions import BusinessValidationError, NotFoundError
from climadesk.models import CatalogItem
from climadesk.schemas.catalog_item import CatalogItemCreate, CatalogItemType, CatalogItemUpdate

# Logger para este módulo
logger = logging.getLogger(__name__)

ITEM_TYPES = tuple(t.value for t in CatalogItemType)


def collect_catalog_item_errors(data: CatalogItemCreate | CatalogItemUpdate) -> list[str]:
    """Reglas de obligatoriedad del elemento de catálogo."""
    errors: list[str] = []
    if not (data.name or "").strip():
        errors.append("Name es obligatorio.")

    item_type = (data.item_type or "").strip()
    if not item_type:
        errors.append("ItemType es obligatorio.")
    elif item_type not in ITEM_TYPES:
        errors.append("ItemType debe ser 'Service', 'Product', 'Material' o 'Other'.")

    if item_type == CatalogItemType.SERVICE.value and not (data.nivel or "").strip():
        errors.append("Nivel es obligatorio cuando el tipo es Service.")
    return errors


class CatalogItemService:
    """Service del catálogo de servicios y productos."""

    async def get_all(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        item_type: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[CatalogItem]:
        """
        Lista el catálogo ordenado por nombre.

        Args:
            search: texto sobre nombre, descripción o SKU
            item_type: filtra por tipo
            is_active: filtra por estado (None = todos)
        """
        query = select(CatalogItem)

        if item_type and item_type.strip():
            query = query.where(CatalogItem.item_type == item_type.strip())

        if is_active is not None:
            query = query.where(CatalogItem.is_active == is_active)

        if search and search.strip():
            term = f"%{search.strip()}%"
            query = query.where(
                or_(
                    CatalogItem.name.ilike(term),
                    CatalogItem.description.ilike(term),
                    CatalogItem.sku.ilike(term),
                )
            )

        result = await db.execute(query.order_by(CatalogItem.name.asc()))
        return list(result.scalars().all())

    async def get_by_id(self, db: AsyncSession, item_id: uuid.UUID) -> CatalogItem:
        item = await db.get(CatalogItem, item_id)
        if item is None:
            logger.warning("Elemento de catálogo no encontrado: %s", item_id)
            raise NotFoundError(f"Elemento de catálogo {item_id} no encontrado")
        return item

    async def create(self, db: AsyncSession, data: CatalogItemCreate) -> CatalogItem:
        """
        Raises:
            BusinessValidationError: faltan campos obligatorios
        """
        errors = collect_catalog_item_errors(data)
        if errors:
            raise BusinessValidationError(errors)

        item = CatalogItem(**self._normalized(data))
        db.add(item)
        await db.commit()
        await db.refresh(item)
        logger.info("Elemento de catálogo creado: %s (%s)", item.name, item.item_type)
        return item

    async def update(
        self,
        db: AsyncSession,
        item_id: uuid.UUID,
        data: CatalogItemUpdate,
    ) -> CatalogItem:
        """
        Raises:
            NotFoundError: el elemento no existe
            BusinessValidationError: faltan campos obligatorios
        """
        item = await self.get_by_id(db, item_id)

        errors = collect_catalog_item_errors(data)
        if errors:
            raise BusinessValidationError(errors)

        for field, value in self._normalized(data).items():
            setattr(item, field, value)

        await db.commit()
        await db.refresh(item)
        logger.info("Elemento de catálogo actualizado: %s", item_id)
        return item

    async def delete(self, db: AsyncSession, item_id: uuid.UUID) -> None:
        """Las líneas copian nombre y precio, así que el borrado no afecta a documentos."""
        item = await self.get_by_id(db, item_id)
        await db.delete(item)
        await db.commit()
        logger.info("Elemento de catálogo borrado: %s", item_id)

    @staticmethod
    def _normalized(data: CatalogItemCreate | CatalogItemUpdate) -> dict:
        payload = data.model_dump()
        payload["name"] = payload["name"].strip()
        payload["item_type"] = payload["item_type"].strip()
        if payload["item_type"] != CatalogItemType.SERVICE.value and not (payload["nivel"] or "").strip():
            payload["nivel"] = None
        return payload


def get_catalog_item_service() -> CatalogItemService:
    """Dependency de FastAPI para CatalogItemService."""
    return CatalogItemService()


__all__ = ["CatalogItemService", "get_catalog_item_service", "collect_catalog_item_errors"]
