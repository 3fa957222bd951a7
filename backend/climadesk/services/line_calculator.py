"""
Cálculo de importes de líneas
Proyecto: ClimaDesk (Back-office de climatización)

Funciones puras compartidas por cotizaciones y facturas.

Fórmula (redondeo bancario a 2 decimales SOLO en los puntos marcados):
    subtotal        = round(quantity * unit_price, 2)
    discount_total  = round(subtotal * discount_value / 100, 2)
    base            = subtotal - discount_total
    tax_total       = round(base * tax_rate / 100, 2) si is_taxable, si no 0
    line_total      = base + tax_total
"""

from decimal import Decimal, ROUND_HALF_EVEN
from typing import Iterable, NamedTuple, Protocol

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


class LineLike(Protocol):
    name: str
    quantity: Decimal
    unit_price: Decimal
    discount_value: Decimal
    is_taxable: bool
    tax_rate: Decimal


class LineAmounts(NamedTuple):
    line_subtotal: Decimal
    discount_total: Decimal
    tax_total: Decimal
    line_total: Decimal


class DocumentTotals(NamedTuple):
    subtotal: Decimal
    discount_total: Decimal
    tax_total: Decimal
    grand_total: Decimal


def round_money(value: Decimal) -> Decimal:
    """Redondeo bancario a 2 decimales."""
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_EVEN)


def validate_line(line: LineLike) -> list[str]:
    """
    Valida una línea y devuelve todos sus errores (lista vacía si es válida).
    """
    errors: list[str] = []
    if not (line.name or "").strip():
        errors.append("El nombre de la línea es obligatorio.")
    if line.quantity <= 0:
        errors.append("Quantity debe ser mayor que 0.")
    if line.unit_price < 0:
        errors.append("UnitPrice no puede ser negativo.")
    if line.discount_value < 0 or line.discount_value > HUNDRED:
        errors.append("DiscountValue debe estar entre 0 y 100.")
    if line.tax_rate < 0 or line.tax_rate > HUNDRED:
        errors.append("TaxRate debe estar entre 0 y 100.")
    return errors


def validate_lines(lines: Iterable[LineLike]) -> list[str]:
    """Acumula los errores de todas las líneas, sin cortar en la primera."""
    errors: list[str] = []
    for line in lines:
        errors.extend(validate_line(line))
    return errors


def compute_line(line: LineLike) -> LineAmounts:
    """
    Calcula los importes de una línea ya validada.

    Example:
        qty=2, unit_price=100, discount=10, taxable, tax=18
        -> subtotal 200.00, descuento 20.00, impuesto 32.40, total 212.40
    """
    subtotal = round_money(line.quantity * line.unit_price)
    discount_total = round_money(subtotal * line.discount_value / HUNDRED)
    base_after_discount = subtotal - discount_total
    if line.is_taxable:
        tax_total = round_money(base_after_discount * line.tax_rate / HUNDRED)
    else:
        tax_total = ZERO.quantize(TWO_PLACES)
    line_total = round_money(base_after_discount + tax_total)
    return LineAmounts(subtotal, discount_total, tax_total, line_total)


def compute_totals(lines: Iterable[LineAmounts]) -> DocumentTotals:
    """Totales de cabecera: cada suma se redondea por separado."""
    subtotal = discount_total = tax_total = grand_total = ZERO
    for amounts in lines:
        subtotal += amounts.line_subtotal
        discount_total += amounts.discount_total
        tax_total += amounts.tax_total
        grand_total += amounts.line_total
    return DocumentTotals(
        round_money(subtotal),
        round_money(discount_total),
        round_money(tax_total),
        round_money(grand_total),
    )


def build_line(line_cls, data: LineLike, position: int):
    """
    Crea una línea ORM (QuoteLine o InvoiceLine) con sus importes ya
    calculados.
    """
    amounts = compute_line(data)
    return line_cls(
        name=data.name.strip(),
        description=getattr(data, "description", None),
        quantity=data.quantity,
        unit_price=data.unit_price,
        discount_value=data.discount_value,
        is_taxable=data.is_taxable,
        tax_rate=data.tax_rate,
        position=position,
        **amounts._asdict(),
    )


__all__ = [
    "LineAmounts",
    "DocumentTotals",
    "round_money",
    "validate_line",
    "validate_lines",
    "compute_line",
    "compute_totals",
    "build_line",
]
