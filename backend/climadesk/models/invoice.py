"""
Modelos SQLAlchemy para la facturación
Proyecto: ClimaDesk (Back-office de climatización)

Contiene:
- Invoice: factura principal
- InvoiceLine: líneas de la factura
- InvoicePayment: cobros registrados sobre la factura
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from climadesk.models import Base
from climadesk.models.mixins import DocumentTotalsMixin, PricedLineMixin, TimestampMixin, UUIDMixin

# Import para type hinting de relaciones (evita import circular)
if TYPE_CHECKING:
    from climadesk.models.client import Client
    from climadesk.models.fiscal_voucher import FiscalVoucher
    from climadesk.models.quote import Quote


class InvoiceStatus(str, Enum):
    """Estados de la factura."""
    DRAFT = "Draft"
    SENT = "Sent"
    PARTIALLY_PAID = "PartiallyPaid"
    PAID = "Paid"
    CANCELLED = "Cancelled"


class Invoice(Base, UUIDMixin, TimestampMixin, DocumentTotalsMixin):
    """
    Modelo de las facturas.

    Una factura puede nacer de una cotización o escribirse directamente.
    Los totales y el estado solo se recalculan en
    climadesk.services.invoice_status.

    Attributes:
        quote_id: cotización de origen (opcional)
        client_id: cliente facturado
        invoice_number: secuencial usado para invoice_code
        invoice_code: código visible (formato: FACTURA-000001)
        description: descripción libre
        issue_date: fecha de emisión
        due_date: fecha de vencimiento (opcional)
        status: Draft | Sent | PartiallyPaid | Paid | Cancelled
        requires_fiscal_voucher: la factura necesita NCF
        fiscal_voucher_id: comprobante asignado (único)
        subtotal, discount_total, tax_total, grand_total: totales de cabecera
        paid_total: suma de los cobros
        balance_due: grand_total - paid_total

    Relationships:
        client: cliente asociado
        quote: cotización de origen
        fiscal_voucher: comprobante asignado
        lines: líneas de la factura
        payments: cobros registrados
    """

    __tablename__ = "invoices"

    # ------------------------------------------------------------
    # Columnas Relaciones
    # ------------------------------------------------------------
    quote_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("quotes.id", ondelete="SET NULL"),
        nullable=True,
        doc="UUID de la cotización de origen",
    )

    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        doc="UUID del cliente facturado",
    )

    fiscal_voucher_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("fiscal_vouchers.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
        doc="UUID del comprobante fiscal asignado",
    )

    # ------------------------------------------------------------
    # Columnas Identificación
    # ------------------------------------------------------------
    invoice_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        unique=True,
        doc="Secuencial de la factura",
    )

    invoice_code: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        unique=True,
        doc="Código de la factura (formato: FACTURA-000001)",
    )

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    issue_date: Mapped[date] = mapped_column(Date, nullable=False)

    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=InvoiceStatus.DRAFT.value,
    )

    requires_fiscal_voucher: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # ------------------------------------------------------------
    # Columnas Cobros
    # ------------------------------------------------------------
    paid_total: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    balance_due: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    client: Mapped["Client"] = relationship(
        "Client",
        back_populates="invoices",
        lazy="selectin",
    )

    quote: Mapped[Optional["Quote"]] = relationship("Quote", lazy="noload")

    fiscal_voucher: Mapped[Optional["FiscalVoucher"]] = relationship(
        "FiscalVoucher",
        lazy="selectin",
    )

    lines: Mapped[List["InvoiceLine"]] = relationship(
        "InvoiceLine",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLine.position",
        lazy="selectin",
    )

    payments: Mapped[List["InvoicePayment"]] = relationship(
        "InvoicePayment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoicePayment.payment_date",
        lazy="selectin",
    )

    @property
    def fiscal_voucher_number(self) -> Optional[str]:
        """Número del NCF asignado, si lo hay."""
        return self.fiscal_voucher.voucher_number if self.fiscal_voucher else None

    # ------------------------------------------------------------
    # Índices y Restricciones
    # ------------------------------------------------------------
    __table_args__ = (
        Index("ix_invoices_client_id", "client_id"),
        Index("ix_invoices_status", "status"),
        Index("ix_invoices_issue_date", "issue_date"),
        CheckConstraint(
            "status IN ('Draft', 'Sent', 'PartiallyPaid', 'Paid', 'Cancelled')",
            name="ck_invoices_status",
        ),
        CheckConstraint("grand_total >= 0", name="ck_invoices_grand_total_positive"),
    )

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, code={self.invoice_code}, status={self.status})>"


class InvoiceLine(Base, UUIDMixin, TimestampMixin, PricedLineMixin):
    """Línea de factura, con la misma forma que QuoteLine."""

    __tablename__ = "invoice_lines"

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="UUID de la factura",
    )

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="lines")

    __table_args__ = (
        Index("ix_invoice_lines_invoice_position", "invoice_id", "position"),
        CheckConstraint("quantity > 0", name="ck_invoice_lines_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_invoice_lines_unit_price_positive"),
        CheckConstraint(
            "discount_value >= 0 AND discount_value <= 100",
            name="ck_invoice_lines_discount_value",
        ),
    )

    def __repr__(self) -> str:
        return f"<InvoiceLine(id={self.id}, name={self.name!r}, line_total={self.line_total})>"


class InvoicePayment(Base, UUIDMixin, TimestampMixin):
    """
    Cobro registrado sobre una factura.

    Attributes:
        payment_date: fecha/hora del cobro
        amount: importe (> 0, redondeado a 2 decimales)
        method: método de pago (efectivo, transferencia, ...)
        reference: referencia bancaria o de recibo
        notes: notas
    """

    __tablename__ = "invoice_payments"

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    payment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    method: Mapped[str] = mapped_column(String(50), nullable=False)
    reference: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_invoice_payments_amount_positive"),
    )

    def __repr__(self) -> str:
        return f"<InvoicePayment(id={self.id}, amount={self.amount}, method={self.method})>"
