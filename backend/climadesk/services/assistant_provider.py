"""
Proveedor externo del asistente (Gemini)
Proyecto: ClimaDesk (Back-office de climatización)

Envía el mensaje del usuario a Gemini y valida la respuesta JSON contra
ProviderInterpretation. Cualquier fallo (timeout, error del SDK, JSON
inválido o esquema distinto) se eleva como ExternalProviderFailure; el
servicio del asistente lo convierte en la respuesta heurística.
"""

import asyncio
import logging
from typing import Protocol

from google import genai
from google.genai import types
from pydantic import ValidationError as PydanticValidationError

from climadesk.core.config import Settings
from climadesk.core.exceptions import ExternalProviderFailure
from climadesk.schemas.assistant import ProviderInterpretation

# Logger para este módulo
logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """Eres un clasificador de intencion para ClimaDesk, un taller de climatizacion.
Analiza el mensaje y responde SOLO JSON valido con este esquema:
{{
  "action": "open_quote_create|chat_reply",
  "intent": "create_quote|unknown",
  "confidence": 0.0,
  "nextRoute": "/quotes/create.html|null",
  "prefill": {{
    "clientId": null,
    "serviceType": "string|null",
    "workArea": "string|null",
    "materialsOrNotes": "string|null",
    "clientName": "string|null",
    "phone": "string|null",
    "address": "string|null",
    "quantity": "number|null",
    "unit": "string|null",
    "unitPrice": "number|null",
    "scheduledDate": "string|null",
    "catalogLines": []
  }},
  "missingFields": ["array de strings"],
  "assistantMessage": "string"
}}

Reglas:
- Si piden crear cotizacion => action=open_quote_create, intent=create_quote, nextRoute=/quotes/create.html.
- No inventes datos numericos si no vienen en el texto.
- Campos no detectados deben ir en null.
- missingFields debe listar datos utiles para completar una cotizacion.
- Responde en espanol en assistantMessage.

Mensaje del usuario:
{message}"""


class AssistantProvider(Protocol):
    """Contrato de un proveedor externo: mensaje -> interpretación validada."""

    async def interpret(self, message: str) -> ProviderInterpretation:
        ...


def build_prompt(message: str) -> str:
    return PROMPT_TEMPLATE.format(message=message)


def strip_code_fences(raw: str) -> str:
    """Quita un bloque ```json ... ``` si el modelo lo añade."""
    raw = raw.strip()
    if not raw.startswith("```"):
        return raw
    lines = raw.splitlines()
    lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()


def parse_provider_text(raw: str | None) -> ProviderInterpretation:
    """
    Valida el texto devuelto por el modelo.

    Raises:
        ExternalProviderFailure: respuesta vacía o que no cumple el esquema
    """
    if not raw or not raw.strip():
        raise ExternalProviderFailure("Respuesta vacía del proveedor")
    try:
        return ProviderInterpretation.model_validate_json(strip_code_fences(raw))
    except PydanticValidationError as e:
        raise ExternalProviderFailure(f"Respuesta del proveedor con formato inválido: {e}") from e


class GeminiAssistantProvider:
    """Cliente asíncrono de Gemini vía google-genai."""

    def __init__(self, settings: Settings, client: genai.Client | None = None):
        self.model = (settings.gemini_model or "").strip() or "gemini-2.0-flash"
        self.timeout = settings.gemini_timeout_seconds
        self.client = client or genai.Client(api_key=settings.gemini_api_key.strip())

    async def interpret(self, message: str) -> ProviderInterpretation:
        """
        Raises:
            ExternalProviderFailure: timeout, error del SDK o respuesta inválida
        """
        logger.debug("Enviando mensaje a Gemini (%s)", self.model)
        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.model,
                    contents=build_prompt(message),
                    config=types.GenerateContentConfig(
                        temperature=0.1,
                        response_mime_type="application/json",
                    ),
                ),
                timeout=self.timeout,
            )
            raw = response.text
        except asyncio.TimeoutError as e:
            raise ExternalProviderFailure(f"Gemini no respondió en {self.timeout}s") from e
        except Exception as e:
            raise ExternalProviderFailure(f"Error llamando a Gemini: {e}") from e

        return parse_provider_text(raw)


__all__ = [
    "AssistantProvider",
    "GeminiAssistantProvider",
    "build_prompt",
    "parse_provider_text",
]
