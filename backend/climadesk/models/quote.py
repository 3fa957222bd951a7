"""
Modelos SQLAlchemy para las cotizaciones
Proyecto: ClimaDesk (Back-office de climatización)

Contiene:
- Quote: cabecera de la cotización
- QuoteLine: líneas de la cotización
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from climadesk.models import Base
from climadesk.models.mixins import DocumentTotalsMixin, PricedLineMixin, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from climadesk.models.client import Client


class Quote(Base, UUIDMixin, TimestampMixin, DocumentTotalsMixin):
    """
    Cotización para un cliente existente.

    Relationships:
        client: cliente de la cotización
        lines: líneas ordenadas por position (borrado en cascada)
    """

    __tablename__ = "quotes"

    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        doc="UUID del cliente",
    )

    name: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    client: Mapped["Client"] = relationship(
        "Client",
        back_populates="quotes",
        lazy="selectin",
    )

    lines: Mapped[List["QuoteLine"]] = relationship(
        "QuoteLine",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteLine.position",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_quotes_client_id", "client_id"),
    )

    def __repr__(self) -> str:
        return f"<Quote(id={self.id}, name={self.name!r}, grand_total={self.grand_total})>"


class QuoteLine(Base, UUIDMixin, TimestampMixin, PricedLineMixin):
    """Línea de cotización. Nombre y precio se copian del catálogo o se escriben a mano."""

    __tablename__ = "quote_lines"

    quote_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    quote: Mapped["Quote"] = relationship("Quote", back_populates="lines")

    __table_args__ = (
        Index("ix_quote_lines_quote_position", "quote_id", "position"),
        CheckConstraint("quantity > 0", name="ck_quote_lines_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_quote_lines_unit_price_positive"),
    )

    def __repr__(self) -> str:
        return f"<QuoteLine(id={self.id}, name={self.name!r}, line_total={self.line_total})>"
