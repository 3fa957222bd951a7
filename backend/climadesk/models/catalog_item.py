"""
Modelo SQLAlchemy para el catálogo de servicios y productos
Proyecto: ClimaDesk (Back-office de climatización)
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from climadesk.models import Base
from climadesk.models.mixins import ActiveFlagMixin, TimestampMixin, UUIDMixin


class CatalogItem(Base, UUIDMixin, TimestampMixin, ActiveFlagMixin):
    """
    Elemento del catálogo (servicio, producto, material u otro).

    Las líneas de cotización copian nombre y precio del catálogo; no hay
    clave foránea de precio.
    """

    __tablename__ = "catalog_items"

    name: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    item_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="'Service' | 'Product' | 'Material' | 'Other'",
    )
    nivel: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        doc="Nivel del servicio; obligatorio solo para item_type = 'Service'",
    )
    sku: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    unit: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    base_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
    cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
    is_taxable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_catalog_items_name", "name"),
        CheckConstraint(
            "item_type IN ('Service', 'Product', 'Material', 'Other')",
            name="ck_catalog_items_item_type",
        ),
    )

    def __repr__(self) -> str:
        return f"CatalogItem(name={self.name!r}, item_type={self.item_type!r})"
