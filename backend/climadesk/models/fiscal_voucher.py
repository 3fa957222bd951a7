"""
Modelo SQLAlchemy para los comprobantes fiscales (NCF)
Proyecto: ClimaDesk (Back-office de climatización)
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from climadesk.models import Base
from climadesk.models.mixins import TimestampMixin, UUIDMixin


class FiscalVoucher(Base, UUIDMixin, TimestampMixin):
    """
    Comprobante fiscal consumible por una única factura.

    Ciclo de vida: libre -> asignado a una factura -> libre (al cancelar o
    borrar la factura).

    Attributes:
        voucher_number: número del comprobante, único (ej. B0100000001)
        voucher_type: serie del comprobante (ej. B01)
        is_used: True mientras una factura no cancelada lo tenga asignado
        used_at: momento de la asignación
        used_in_invoice_id: factura que lo consume
    """

    __tablename__ = "fiscal_vouchers"

    voucher_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        doc="Número del comprobante",
    )

    voucher_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Sin FK: invoices.fiscal_voucher_id ya referencia esta tabla
    used_in_invoice_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        nullable=True,
        doc="UUID de la factura que consume el comprobante",
    )

    __table_args__ = (
        Index("ix_fiscal_vouchers_is_used_number", "is_used", "voucher_number"),
    )

    def __repr__(self) -> str:
        return f"<FiscalVoucher(number={self.voucher_number}, is_used={self.is_used})>"
