"""
Schemas Pydantic para la facturación
Proyecto: ClimaDesk (Back-office de climatización)
"""

import datetime
import uuid
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from climadesk.models.invoice import InvoiceStatus
from climadesk.schemas.client import ClientSummary
from climadesk.schemas.line import LineInput, LineRead


# -------------------------------------------------------------------
# Factura
# -------------------------------------------------------------------
class InvoiceBase(BaseModel):
    """
    Campos comunes de creación y actualización.

    Attributes:
        quote_id: cotización de origen (opcional)
        client_id: cliente facturado (obligatorio)
        description: descripción libre
        issue_date: fecha de emisión (por defecto hoy)
        due_date: fecha de vencimiento
        requires_fiscal_voucher: la factura necesita NCF
        lines: al menos una línea
    """

    quote_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    issue_date: Optional[datetime.date] = None
    due_date: Optional[datetime.date] = None
    requires_fiscal_voucher: bool = False
    lines: List[LineInput] = Field(default_factory=list)


class InvoiceCreate(InvoiceBase):
    """Creación: si requires_fiscal_voucher es True se asigna un NCF."""
    pass


class InvoiceUpdate(InvoiceBase):
    """
    Actualización: sustituye cabecera y líneas y recalcula totales.

    Nunca asigna ni libera comprobantes fiscales, aunque cambie
    requires_fiscal_voucher.
    """
    pass


class InvoicePaymentCreate(BaseModel):
    payment_date: Optional[datetime.datetime] = Field(None, description="Por defecto ahora (UTC)")
    amount: Decimal = Field(default=Decimal("0"))
    method: str = ""
    reference: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = None


class InvoicePaymentRead(BaseModel):
    id: uuid.UUID
    payment_date: datetime.datetime
    amount: Decimal
    method: str
    reference: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class InvoiceRead(BaseModel):
    """Factura completa con líneas, cobros y NCF."""

    id: uuid.UUID
    quote_id: Optional[uuid.UUID] = None
    client_id: uuid.UUID
    client: Optional[ClientSummary] = None
    invoice_code: str
    description: Optional[str] = None
    issue_date: datetime.date
    due_date: Optional[datetime.date] = None
    status: InvoiceStatus
    requires_fiscal_voucher: bool
    fiscal_voucher_id: Optional[uuid.UUID] = None
    fiscal_voucher_number: Optional[str] = None
    subtotal: Decimal
    discount_total: Decimal
    tax_total: Decimal
    grand_total: Decimal
    paid_total: Decimal
    balance_due: Decimal
    lines: List[LineRead] = Field(default_factory=list)
    payments: List[InvoicePaymentRead] = Field(default_factory=list)
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


__all__ = [
    "InvoiceCreate",
    "InvoiceUpdate",
    "InvoicePaymentCreate",
    "InvoicePaymentRead",
    "InvoiceRead",
]
