"""
Router del asistente
Proyecto: ClimaDesk (Back-office de climatización)

Interpreta un mensaje libre y devuelve datos sugeridos para el formulario
de cotización.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.database import get_db
from climadesk.schemas.assistant import AssistantInterpretRequest, AssistantInterpretResponse
from climadesk.services.assistant_service import AssistantService, get_assistant_service

router = APIRouter(
    prefix="/assistant",
    tags=["Asistente"],
)


@router.post(
    "/interpret",
    name="asistente_interpretar",
    summary="Interpreta un mensaje",
    response_model=AssistantInterpretResponse,
    response_model_by_alias=True,
    responses={status.HTTP_400_BAD_REQUEST: {"model": AssistantInterpretResponse}},
)
async def interpret(
    request: AssistantInterpretRequest,
    db: AsyncSession = Depends(get_db),
    service: AssistantService = Depends(get_assistant_service),
):
    """
    Devuelve intención, confianza, prefill y campos que faltan.

    Un mensaje vacío responde 400 con ok=false; los fallos del proveedor
    externo nunca llegan al cliente.
    """
    result = await service.interpret(db, request)
    if not result.ok:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=result.model_dump(mode="json", by_alias=True),
        )
    return result


__all__ = ["router"]
