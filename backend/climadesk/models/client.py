"""
Modelo SQLAlchemy para la entidad Client
Proyecto: ClimaDesk (Back-office de climatización)

Ficha de clientes: personas físicas y empresas.
"""


from __future__ import annotations
from typing import Optional, TYPE_CHECKING, List

from sqlalchemy import CheckConstraint, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from climadesk.models import Base
from climadesk.models.mixins import ActiveFlagMixin, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from climadesk.models.invoice import Invoice
    from climadesk.models.quote import Quote


class Client(Base, UUIDMixin, TimestampMixin, ActiveFlagMixin):
    """
    Ficha de cliente.

    Los clientes son referenciados por cotizaciones y facturas, nunca
    borrados en cascada desde ellas.

    Attributes:
        client_type: 'Individual' o 'Company'
        first_name: nombre (obligatorio)
        last_name: apellido
        company_name: razón social (obligatoria si client_type = 'Company')
        document_number: cédula o RNC
        phone: teléfono principal (obligatorio)
        secondary_phone: teléfono alternativo
        email: correo
        address, sector, city: dirección
        notes: notas internas
        preferred_payment_method: método de pago habitual
        is_active: cliente activo
    """

    __tablename__ = "clients"

    client_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="Individual",
        doc="Tipo de cliente: 'Individual' o 'Company'",
    )

    first_name: Mapped[str] = mapped_column(String(200), nullable=False)
    last_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    company_name: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    document_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    secondary_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    sector: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    preferred_payment_method: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    quotes: Mapped[List["Quote"]] = relationship(
        "Quote",
        back_populates="client",
        lazy="noload",
    )

    invoices: Mapped[List["Invoice"]] = relationship(
        "Invoice",
        back_populates="client",
        lazy="noload",
    )

    @property
    def display_name(self) -> str:
        """Razón social para empresas, nombre completo para personas."""
        if self.client_type == "Company" and self.company_name:
            return self.company_name
        return f"{self.first_name} {self.last_name or ''}".strip()

    __table_args__ = (
        Index("ix_clients_first_name", "first_name"),
        Index("ix_clients_phone", "phone"),
        CheckConstraint(
            "client_type IN ('Individual', 'Company')",
            name="ck_clients_client_type",
        ),
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name={self.display_name!r})>"
