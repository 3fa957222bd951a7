"""
Service Layer del asistente
Proyecto: ClimaDesk (Back-office de climatización)

Flujo de interpret:
1. Mensaje vacío -> ok=False (el router responde 400)
2. Proveedor externo si está configurado; si falla, parser heurístico
3. Si la intención es create_quote, enriquecimiento con la base de datos:
   cliente existente, líneas sugeridas del catálogo y limpieza de
   missing_fields
"""

import logging
import re
from decimal import Decimal
from typing import Optional

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.config import Settings, get_settings
from climadesk.core.exceptions import ExternalProviderFailure
from climadesk.models import CatalogItem, Client
from climadesk.schemas.assistant import (
    AssistantInterpretRequest,
    AssistantInterpretResponse,
    ProviderInterpretation,
    QuoteCatalogPrefillLine,
)
from climadesk.schemas.catalog_item import CatalogItemType
from climadesk.schemas.client import ClientType
from climadesk.services.assistant_parser import interpret_heuristic
from climadesk.services.assistant_provider import AssistantProvider, GeminiAssistantProvider

# Logger para este módulo
logger = logging.getLogger(__name__)

EMPTY_MESSAGE = "Debes escribir un mensaje para continuar."
PROVIDER_DEFAULT_MESSAGE = "Procesamos tu solicitud."

MAX_CATALOG_SUGGESTIONS = 4
MIN_TOKEN_LENGTH = 4

CLIENT_NAME_PATTERN = re.compile(r"cliente\s+([a-zA-ZáéíóúÁÉÍÓÚñÑ0-9]+)", re.IGNORECASE)
TOKEN_SPLIT_PATTERN = re.compile(r"[^a-z0-9áéíóúñ]+")

STOP_WORDS = frozenset({
    "quiero", "hacer", "una", "un", "de", "del", "con", "para", "cotización", "cotizar",
    "instalacion", "servicio", "cliente", "segundo", "piso", "2do", "primer", "1er",
})


# ------------------------------------------------------------
# Helpers puros
# ------------------------------------------------------------
def extract_client_name(message: str) -> Optional[str]:
    """Nombre que sigue a la palabra 'cliente', si existe."""
    match = CLIENT_NAME_PATTERN.search(message or "")
    return match.group(1).strip() if match else None


def build_catalog_tokens(
    message: str,
    service_type: Optional[str],
    notes: Optional[str],
) -> list[str]:
    """
    Tokens de búsqueda en el catálogo: palabras de al menos 4 letras que
    no son stop-words, más el tipo de servicio detectado.
    """
    source = f"{message} {service_type or ''} {notes or ''}".lower()
    raw_tokens = [t.strip() for t in TOKEN_SPLIT_PATTERN.split(source) if t.strip()]

    tokens = [t for t in dict.fromkeys(raw_tokens) if len(t) >= MIN_TOKEN_LENGTH and t not in STOP_WORDS]
    if service_type and service_type.strip():
        tokens.append(service_type.strip().lower())
    return list(dict.fromkeys(tokens))


def rank_catalog_items(items: list[CatalogItem], tokens: list[str]) -> list[CatalogItem]:
    """
    Ordena por número de tokens contenidos en nombre + descripción; a igual
    puntuación van primero los servicios. Descarta puntuación 0.
    """
    scored = []
    for item in items:
        text = f"{item.name or ''} {item.description or ''}".lower()
        score = sum(1 for token in tokens if token in text)
        if score > 0:
            scored.append((score, item))

    scored.sort(key=lambda entry: (-entry[0], 0 if entry[1].item_type == CatalogItemType.SERVICE.value else 1))
    return [item for _, item in scored[:MAX_CATALOG_SUGGESTIONS]]


def match_client(clients: list[Client], name: str) -> Optional[Client]:
    """
    Coincidencia exacta (sin mayúsculas) de nombre, empresa o nombre
    completo; si no hay, la primera coincidencia parcial.
    """
    wanted = name.strip().lower()

    for client in clients:
        full_name = f"{client.first_name or ''} {client.last_name or ''}".strip()
        candidates = ((client.first_name or "").strip(), (client.company_name or "").strip(), full_name)
        if any(candidate.lower() == wanted for candidate in candidates):
            return client

    for client in clients:
        fields = (client.first_name, client.last_name, client.company_name)
        if any(field and wanted in field.lower() for field in fields):
            return client

    return None


def response_from_provider(result: ProviderInterpretation) -> AssistantInterpretResponse:
    return AssistantInterpretResponse(
        ok=True,
        action=result.action,
        intent=result.intent,
        confidence=result.confidence,
        next_route=result.next_route,
        prefill=result.prefill,
        missing_fields=[f for f in result.missing_fields if f and f.strip()],
        assistant_message=(result.assistant_message or "").strip() or PROVIDER_DEFAULT_MESSAGE,
    )


def clean_missing_fields(result: AssistantInterpretResponse) -> None:
    """Quita duplicados y los campos ya resueltos por el enriquecimiento."""
    seen: set[str] = set()
    cleaned: list[str] = []
    for field in result.missing_fields:
        key = (field or "").strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        cleaned.append(field)

    if result.prefill.client_id is not None:
        cleaned = [f for f in cleaned if f.lower() != "clientname"]
    if result.prefill.catalog_lines:
        cleaned = [f for f in cleaned if f.lower() != "servicetype"]

    result.missing_fields = cleaned


class AssistantService:
    """Service del asistente de cotizaciones."""

    def __init__(self, settings: Settings, provider: Optional[AssistantProvider] = None):
        self.settings = settings
        if provider is None and settings.assistant_provider_enabled:
            provider = GeminiAssistantProvider(settings)
        self.provider = provider

    async def interpret(
        self,
        db: AsyncSession,
        request: AssistantInterpretRequest,
    ) -> AssistantInterpretResponse:
        """
        Interpreta el mensaje y completa la sugerencia con datos existentes.

        Returns:
            AssistantInterpretResponse; ok=False solo con mensaje vacío
        """
        message = request.message or ""
        if not message.strip():
            return AssistantInterpretResponse(
                ok=False,
                action="chat_reply",
                intent="unknown",
                confidence=0.0,
                assistant_message=EMPTY_MESSAGE,
            )

        result = await self._interpret_text(message)

        if result.intent.lower() == "create_quote":
            await self._attach_existing_client(db, result, message)
            await self._attach_catalog_lines(db, result, message)
            clean_missing_fields(result)

        return result

    async def _interpret_text(self, message: str) -> AssistantInterpretResponse:
        if self.provider is None:
            return interpret_heuristic(message)

        try:
            return response_from_provider(await self.provider.interpret(message))
        except ExternalProviderFailure as e:
            logger.warning("Proveedor del asistente falló, se usa el parser heurístico: %s", e)
            return interpret_heuristic(message)

    async def _attach_existing_client(
        self,
        db: AsyncSession,
        result: AssistantInterpretResponse,
        message: str,
    ) -> None:
        prefill = result.prefill
        name = (prefill.client_name or "").strip() or extract_client_name(message)
        if not name:
            return

        rows = await db.execute(
            select(Client).where(Client.is_active.is_(True)).order_by(Client.created_at.asc())
        )
        client = match_client(list(rows.scalars().all()), name)

        if client is None:
            prefill.client_name = name
            return

        prefill.client_id = client.id
        if client.client_type == ClientType.COMPANY.value:
            prefill.client_name = client.company_name or name
        else:
            prefill.client_name = f"{client.first_name} {client.last_name or ''}".strip()
        prefill.phone = prefill.phone or client.phone
        prefill.address = prefill.address or client.address
        logger.debug("Asistente: cliente %s asociado a %r", client.id, name)

    async def _attach_catalog_lines(
        self,
        db: AsyncSession,
        result: AssistantInterpretResponse,
        message: str,
    ) -> None:
        prefill = result.prefill
        if prefill.catalog_lines:
            return

        tokens = build_catalog_tokens(message, prefill.service_type, prefill.materials_or_notes)
        if not tokens:
            return

        rows = await db.execute(
            select(CatalogItem).where(CatalogItem.is_active.is_(True)).order_by(CatalogItem.name.asc())
        )
        tax_rate = float(self.settings.default_tax_rate)

        for item in rank_catalog_items(list(rows.scalars().all()), tokens):
            prefill.catalog_lines.append(
                QuoteCatalogPrefillLine(
                    catalog_item_id=item.id,
                    name=item.name,
                    description=item.description,
                    quantity=1.0,
                    unit_price=float(item.base_price or Decimal("0")),
                    is_taxable=item.is_taxable,
                    tax_rate=tax_rate if item.is_taxable else 0.0,
                )
            )


def get_assistant_service(settings: Settings = Depends(get_settings)) -> AssistantService:
    """Dependency de FastAPI para AssistantService."""
    return AssistantService(settings)


__all__ = [
    "AssistantService",
    "get_assistant_service",
    "build_catalog_tokens",
    "rank_catalog_items",
    "match_client",
    "extract_client_name",
]
