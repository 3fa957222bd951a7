"""
Estado y totales de la factura
Proyecto: ClimaDesk (Back-office de climatización)

Única rutina que recalcula totales y estado de una factura. Se ejecuta
tras cualquier cambio de líneas o cobros.

Estados:
    Draft -> Sent -> PartiallyPaid -> Paid
    Cancelled es absorbente: una factura cancelada no cambia más.
"""

import logging
from decimal import Decimal

from climadesk.models.invoice import Invoice, InvoiceStatus
from climadesk.services.line_calculator import LineAmounts, compute_totals, round_money

# Logger para este módulo
logger = logging.getLogger(__name__)


def derive_status(current_status: str, paid_total: Decimal, balance_due: Decimal) -> str:
    """
    Deriva el estado a partir de lo cobrado y del saldo.

    Args:
        current_status: estado actual
        paid_total: suma de cobros
        balance_due: saldo pendiente

    Returns:
        Nuevo estado (sin cambios si la factura está cancelada)
    """
    if current_status == InvoiceStatus.CANCELLED.value:
        return current_status
    if paid_total <= 0:
        return InvoiceStatus.SENT.value
    if balance_due <= 0:
        return InvoiceStatus.PAID.value
    return InvoiceStatus.PARTIALLY_PAID.value


def apply_status(invoice: Invoice) -> None:
    """Aplica derive_status sobre la factura."""
    new_status = derive_status(invoice.status, invoice.paid_total, invoice.balance_due)
    if new_status != invoice.status:
        logger.debug("Factura %s: %s -> %s", invoice.invoice_code, invoice.status, new_status)
    invoice.status = new_status


def recalculate_totals(invoice: Invoice) -> None:
    """
    Recalcula totales de cabecera, cobrado, saldo y estado.

    Los totales de cabecera son la suma redondeada de los importes
    persistidos en cada línea. En una factura cancelada los totales se
    recalculan pero el estado no cambia.
    """
    totals = compute_totals(
        LineAmounts(line.line_subtotal, line.discount_total, line.tax_total, line.line_total)
        for line in invoice.lines
    )
    invoice.subtotal = totals.subtotal
    invoice.discount_total = totals.discount_total
    invoice.tax_total = totals.tax_total
    invoice.grand_total = totals.grand_total

    invoice.paid_total = round_money(sum((p.amount for p in invoice.payments), Decimal("0")))
    invoice.balance_due = round_money(invoice.grand_total - invoice.paid_total)

    apply_status(invoice)


__all__ = ["derive_status", "apply_status", "recalculate_totals"]
