"""
Parser heurístico del asistente
Proyecto: ClimaDesk (Back-office de climatización)

Interpreta un mensaje libre y devuelve los datos sugeridos para el
formulario de cotización. Se usa cuando no hay proveedor externo o cuando
éste falla; es determinista.
"""

import re
from typing import Optional

from climadesk.schemas.assistant import AssistantInterpretResponse, QuotePrefill

QUOTE_TRIGGER = "cotiza"
QUOTE_CREATE_ROUTE = "/quotes/create.html"

HEURISTIC_CONFIDENCE_UNKNOWN = 0.45
HEURISTIC_CONFIDENCE_QUOTE = 0.80

MESSAGE_NO_TRIGGER = "Puedo ayudarte a crear una cotización. Indica servicio, area, cliente y cantidades."
MESSAGE_OPEN_QUOTE = "Abriré el módulo de cotizaciónes y completaré los campos detectados."

# (fragmento, tipo de servicio) en orden de prioridad
SERVICE_KEYWORDS = (
    ("instal", "instalacion"),
    ("mantenimiento", "mantenimiento"),
    ("repar", "reparacion"),
)

WORK_AREA_PATTERNS = (
    (re.compile(r"\b2do piso\b|\bsegundo piso\b"), "2do piso"),
    (re.compile(r"\b1er piso\b|\bprimer piso\b"), "1er piso"),
)

NOTES_PATTERN = re.compile(r"\bcon\s+(.+)$")


def extract_service_type(lower: str) -> Optional[str]:
    for fragment, service_type in SERVICE_KEYWORDS:
        if fragment in lower:
            return service_type
    return None


def extract_work_area(lower: str) -> Optional[str]:
    for pattern, work_area in WORK_AREA_PATTERNS:
        if pattern.search(lower):
            return work_area
    return None


def extract_notes(lower: str) -> Optional[str]:
    """Todo lo que sigue a 'con' hasta el final del mensaje."""
    match = NOTES_PATTERN.search(lower)
    return match.group(1).strip() if match else None


def missing_quote_fields(prefill: QuotePrefill) -> list[str]:
    """Campos útiles de la cotización que faltan, en orden fijo."""
    missing: list[str] = []
    if not (prefill.client_name or "").strip():
        missing.append("clientName")
    if prefill.quantity is None:
        missing.append("quantity")
    if prefill.unit_price is None:
        missing.append("unitPrice")
    if not (prefill.phone or "").strip():
        missing.append("phone")
    if not (prefill.address or "").strip():
        missing.append("address")
    return missing


def interpret_heuristic(text: str) -> AssistantInterpretResponse:
    """
    Interpreta el mensaje sin proveedor externo.

    Sin la palabra 'cotiza' la intención es desconocida (confianza 0.45).
    Con ella se extraen tipo de servicio, área de trabajo y notas, y la
    intención es create_quote (confianza 0.80).

    Args:
        text: mensaje del usuario

    Returns:
        AssistantInterpretResponse con ok=True
    """
    lower = (text or "").strip().lower()

    if QUOTE_TRIGGER not in lower:
        return AssistantInterpretResponse(
            ok=True,
            action="chat_reply",
            intent="unknown",
            confidence=HEURISTIC_CONFIDENCE_UNKNOWN,
            prefill=QuotePrefill(),
            missing_fields=[],
            assistant_message=MESSAGE_NO_TRIGGER,
        )

    prefill = QuotePrefill(
        service_type=extract_service_type(lower),
        work_area=extract_work_area(lower),
        materials_or_notes=extract_notes(lower),
    )

    return AssistantInterpretResponse(
        ok=True,
        action="open_quote_create",
        intent="create_quote",
        confidence=HEURISTIC_CONFIDENCE_QUOTE,
        next_route=QUOTE_CREATE_ROUTE,
        prefill=prefill,
        missing_fields=missing_quote_fields(prefill),
        assistant_message=MESSAGE_OPEN_QUOTE,
    )


__all__ = ["interpret_heuristic", "missing_quote_fields", "QUOTE_CREATE_ROUTE"]
