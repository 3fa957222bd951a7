"""
Router FastAPI para la facturación
Proyecto: ClimaDesk (Back-office de climatización)

Define los endpoints API de facturas, incluidos cobros y cancelación.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.database import get_db
from climadesk.core.deps import AdminUser, CurrentUser
from climadesk.schemas.invoice import (
    InvoiceCreate,
    InvoicePaymentCreate,
    InvoiceRead,
    InvoiceUpdate,
)
from climadesk.services.invoice_service import InvoiceService, get_invoice_service

# Logger para este módulo
logger = logging.getLogger(__name__)

# Router con prefix y tag
router = APIRouter(
    prefix="/invoices",
    tags=["Facturación"],
)


# -------------------------------------------------------------------
# Endpoints de facturas
# -------------------------------------------------------------------

@router.get(
    "",
    name="facturas_lista",
    summary="Lista facturas",
    description="Lista las facturas con búsqueda libre y filtros por cliente y estado.",
    response_model=list[InvoiceRead],
    status_code=status.HTTP_200_OK,
)
async def get_invoices(
    _: CurrentUser,
    search: Optional[str] = Query(None, description="Código, descripción, cliente o NCF"),
    client_id: Optional[uuid.UUID] = Query(None, description="Filtra por cliente"),
    status_filter: Optional[str] = Query(
        None,
        alias="status",
        description="Draft, Sent, PartiallyPaid, Paid o Cancelled",
    ),
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> list[InvoiceRead]:
    invoices = await service.get_all(db, search=search, client_id=client_id, status=status_filter)
    return [InvoiceRead.model_validate(i) for i in invoices]


@router.get(
    "/{invoice_id}",
    name="factura_detalle",
    summary="Detalle de factura",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def get_invoice(
    _: CurrentUser,
    invoice_id: uuid.UUID = Path(..., description="UUID de la factura"),
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    """
    Raises:
        NotFoundError: la factura no existe
    """
    return InvoiceRead.model_validate(await service.get_by_id(db, invoice_id))


@router.post(
    "",
    name="factura_crear",
    summary="Crea factura",
    description=(
        "Crea la factura con su código FACTURA-NNNNNN. Si requires_fiscal_voucher "
        "es true se le asigna el menor NCF disponible en la misma transacción."
    ),
    response_model=InvoiceRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_invoice(
    data: InvoiceCreate,
    _: AdminUser,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    """
    Raises:
        BusinessValidationError: datos inválidos o sin NCF disponible
        ConflictError: conflicto de concurrencia al numerar o asignar NCF
    """
    invoice = await service.create_invoice(db, data)
    return InvoiceRead.model_validate(invoice)


@router.put(
    "/{invoice_id}",
    name="factura_actualizar",
    summary="Actualiza factura",
    description="Sustituye cabecera y líneas. No asigna ni libera NCF.",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def update_invoice(
    data: InvoiceUpdate,
    _: AdminUser,
    invoice_id: uuid.UUID = Path(..., description="UUID de la factura"),
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    invoice = await service.update_invoice(db, invoice_id, data)
    return InvoiceRead.model_validate(invoice)


@router.delete(
    "/{invoice_id}",
    name="factura_borrar",
    summary="Borra factura",
    description="Borra la factura con líneas y cobros y libera su NCF.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_invoice(
    _: AdminUser,
    invoice_id: uuid.UUID = Path(..., description="UUID de la factura"),
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> None:
    await service.delete(db, invoice_id)


# -------------------------------------------------------------------
# Cobros y cancelación
# -------------------------------------------------------------------

@router.post(
    "/{invoice_id}/payments",
    name="factura_registrar_cobro",
    summary="Registra un cobro",
    response_model=InvoiceRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_payment(
    data: InvoicePaymentCreate,
    _: AdminUser,
    invoice_id: uuid.UUID = Path(..., description="UUID de la factura"),
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    """
    Añade el cobro y devuelve la factura con cobrado, saldo y estado
    recalculados.

    Raises:
        BusinessValidationError: importe <= 0, sin método o factura cancelada
    """
    invoice = await service.add_payment(db, invoice_id, data)
    return InvoiceRead.model_validate(invoice)


@router.post(
    "/{invoice_id}/cancel",
    name="factura_cancelar",
    summary="Cancela factura",
    description="Cancela la factura y libera su NCF. Cancelar dos veces no es un error.",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def cancel_invoice(
    _: AdminUser,
    invoice_id: uuid.UUID = Path(..., description="UUID de la factura"),
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    invoice = await service.cancel(db, invoice_id)
    return InvoiceRead.model_validate(invoice)


__all__ = ["router"]
