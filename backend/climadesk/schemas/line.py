"""
Schemas Pydantic de las líneas de cotización y factura
Proyecto: ClimaDesk (Back-office de climatización)

Los rangos (cantidad > 0, porcentajes 0-100, ...) se validan en
climadesk.services.line_calculator para acumular los errores de todas las
líneas.
"""

import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LineInput(BaseModel):
    """
    Línea enviada por el cliente.

    Attributes:
        name: nombre de la línea (obligatorio)
        description: descripción libre
        quantity: cantidad (> 0)
        unit_price: precio unitario (>= 0)
        discount_value: porcentaje de descuento (0-100)
        is_taxable: aplica impuesto
        tax_rate: porcentaje de impuesto (0-100)
    """

    name: str = ""
    description: Optional[str] = None
    quantity: Decimal = Field(default=Decimal("0"))
    unit_price: Decimal = Field(default=Decimal("0"))
    discount_value: Decimal = Field(default=Decimal("0"), description="Porcentaje 0-100")
    is_taxable: bool = False
    tax_rate: Decimal = Field(default=Decimal("0"), description="Porcentaje 0-100")


class LineRead(BaseModel):
    """Línea persistida con sus importes calculados."""

    id: uuid.UUID
    position: int
    name: str
    description: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    discount_value: Decimal
    discount_total: Decimal
    is_taxable: bool
    tax_rate: Decimal
    tax_total: Decimal
    line_subtotal: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


__all__ = ["LineInput", "LineRead"]
