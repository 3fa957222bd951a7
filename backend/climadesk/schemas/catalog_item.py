"""
Schemas Pydantic para el catálogo
Proyecto: ClimaDesk (Back-office de climatización)
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CatalogItemType(str, Enum):
    """Tipo de elemento del catálogo."""
    SERVICE = "Service"
    PRODUCT = "Product"
    MATERIAL = "Material"
    OTHER = "Other"


class CatalogItemBase(BaseModel):
    name: str = Field(default="", max_length=300)
    description: Optional[str] = Field(None, max_length=1000)
    item_type: str = Field(default="", description="'Service' | 'Product' | 'Material' | 'Other'")
    nivel: Optional[str] = Field(None, max_length=50, description="Obligatorio para servicios")
    sku: Optional[str] = Field(None, max_length=100)
    unit: Optional[str] = Field(None, max_length=50)
    base_price: Optional[Decimal] = Field(None, ge=Decimal("0"))
    cost: Optional[Decimal] = Field(None, ge=Decimal("0"))
    is_taxable: bool = False
    is_active: bool = True


class CatalogItemCreate(CatalogItemBase):
    pass


class CatalogItemUpdate(CatalogItemBase):
    pass


class CatalogItemRead(CatalogItemBase):
    id: uuid.UUID
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


__all__ = [
    "CatalogItemType",
    "CatalogItemCreate",
    "CatalogItemUpdate",
    "CatalogItemRead",
]
