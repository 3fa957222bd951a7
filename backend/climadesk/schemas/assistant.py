"""
Schemas Pydantic del asistente
Proyecto: ClimaDesk (Back-office de climatización)

El formulario web trabaja en camelCase, por eso estos schemas usan alias
camelCase (aceptan también snake_case al construirlos desde Python).
"""

import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _StrictCamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


# -------------------------------------------------------------------
# Petición
# -------------------------------------------------------------------
class AssistantContext(_CamelModel):
    current_route: Optional[str] = None
    session_id: Optional[str] = None
    timezone: Optional[str] = None


class AssistantInterpretRequest(_CamelModel):
    message: str = ""
    context: Optional[AssistantContext] = None


# -------------------------------------------------------------------
# Prefill
# -------------------------------------------------------------------
class QuoteCatalogPrefillLine(_StrictCamelModel):
    """Línea sugerida a partir del catálogo."""

    catalog_item_id: Optional[uuid.UUID] = None
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    quantity: float = 1.0
    unit_price: float = 0.0
    is_taxable: bool = False
    tax_rate: float = 0.0


class QuotePrefill(_StrictCamelModel):
    """Datos sugeridos para el formulario de cotización."""

    client_id: Optional[uuid.UUID] = None
    service_type: Optional[str] = None
    work_area: Optional[str] = None
    materials_or_notes: Optional[str] = None
    client_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None
    unit_price: Optional[float] = None
    scheduled_date: Optional[str] = None
    catalog_lines: List[QuoteCatalogPrefillLine] = Field(default_factory=list)


# -------------------------------------------------------------------
# Respuesta
# -------------------------------------------------------------------
class AssistantInterpretResponse(_CamelModel):
    ok: bool = True
    action: str = "chat_reply"
    intent: str = "unknown"
    confidence: float = 0.0
    next_route: Optional[str] = None
    prefill: QuotePrefill = Field(default_factory=QuotePrefill)
    missing_fields: List[str] = Field(default_factory=list)
    assistant_message: str = "No identifiqué una acción para ejecutar."


class ProviderInterpretation(_StrictCamelModel):
    """
    Respuesta JSON del proveedor externo.

    Cualquier campo desconocido o valor fuera de dominio invalida la
    respuesta completa.
    """

    action: Literal["open_quote_create", "chat_reply"]
    intent: Literal["create_quote", "unknown"]
    confidence: float = Field(..., ge=0.0, le=1.0)
    next_route: Optional[str] = None
    prefill: QuotePrefill = Field(default_factory=QuotePrefill)
    missing_fields: List[str] = Field(default_factory=list)
    assistant_message: Optional[str] = None


__all__ = [
    "AssistantContext",
    "AssistantInterpretRequest",
    "AssistantInterpretResponse",
    "QuoteCatalogPrefillLine",
    "QuotePrefill",
    "ProviderInterpretation",
]
