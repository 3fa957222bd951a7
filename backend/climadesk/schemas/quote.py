"""
Schemas Pydantic para las cotizaciones
Proyecto: ClimaDesk (Back-office de climatización)
"""

import datetime
import uuid
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from climadesk.schemas.client import ClientCreate, ClientSummary
from climadesk.schemas.line import LineInput, LineRead


class QuoteCreate(BaseModel):
    """
    Creación de cotización.

    Se indica un cliente existente (client_id) o uno nuevo (new_client),
    creado en la misma transacción. Con from_quote_id se copian nombre,
    descripción y líneas de otra cotización; las líneas explícitas
    sustituyen a las de la plantilla.
    """

    from_quote_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None
    new_client: Optional[ClientCreate] = None
    name: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = None
    lines: List[LineInput] = Field(default_factory=list)


class QuoteUpdate(BaseModel):
    """Actualización completa: cabecera y sustitución de todas las líneas."""

    client_id: Optional[uuid.UUID] = None
    new_client: Optional[ClientCreate] = Field(
        None,
        description="No permitido en edición; se acepta solo para devolver el error",
    )
    name: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = None
    lines: List[LineInput] = Field(default_factory=list)


class QuoteRead(BaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    client: Optional[ClientSummary] = None
    name: Optional[str] = None
    description: Optional[str] = None
    subtotal: Decimal
    discount_total: Decimal
    tax_total: Decimal
    grand_total: Decimal
    lines: List[LineRead] = Field(default_factory=list)
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


__all__ = ["QuoteCreate", "QuoteUpdate", "QuoteRead"]
