"""
Test del cálculo de importes de líneas y totales de documento.
"""

from decimal import Decimal, ROUND_HALF_EVEN

import pytest

from climadesk.services.line_calculator import (
    LineAmounts,
    compute_line,
    compute_totals,
    round_money,
    validate_line,
    validate_lines,
)


def _r(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN)


class TestComputeLine:
    """Importes de una línea."""

    def test_taxable_line_with_discount(self, make_line):
        """qty 2 x 100, 10% descuento, 18% impuesto."""
        amounts = compute_line(make_line())

        assert amounts.line_subtotal == Decimal("200.00")
        assert amounts.discount_total == Decimal("20.00")
        assert amounts.line_subtotal - amounts.discount_total == Decimal("180.00")
        assert amounts.tax_total == Decimal("32.40")
        assert amounts.line_total == Decimal("212.40")

    def test_non_taxable_line_ignores_tax_rate(self, make_line):
        amounts = compute_line(make_line(is_taxable=False, tax_rate=Decimal("18")))

        assert amounts.tax_total == Decimal("0.00")
        assert amounts.line_total == Decimal("180.00")

    def test_subtotal_rounds_half_even(self, make_line):
        """3 x 0.335 = 1.005 -> 1.00 con redondeo bancario."""
        amounts = compute_line(
            make_line(quantity=Decimal("3"), unit_price=Decimal("0.335"), discount_value=Decimal("0"), is_taxable=False)
        )
        assert amounts.line_subtotal == Decimal("1.00")

    @pytest.mark.parametrize(
        "quantity, unit_price, discount, taxable, tax",
        [
            ("1", "99.99", "0", True, "18"),
            ("3", "33.33", "15", True, "16"),
            ("0.5", "1234.57", "7.5", False, "18"),
            ("12", "0.07", "33.33", True, "18"),
            ("7", "19.995", "100", True, "18"),
        ],
    )
    def test_line_total_matches_formula(self, make_line, quantity, unit_price, discount, taxable, tax):
        qty, price, disc, rate = (Decimal(v) for v in (quantity, unit_price, discount, tax))
        amounts = compute_line(
            make_line(quantity=qty, unit_price=price, discount_value=disc, is_taxable=taxable, tax_rate=rate)
        )

        subtotal = _r(qty * price)
        discount_total = _r(subtotal * disc / 100)
        base = subtotal - discount_total
        tax_total = _r(base * rate / 100) if taxable else Decimal("0")

        assert amounts.line_total == _r(base + tax_total)


class TestComputeTotals:
    """Totales de cabecera."""

    def test_grand_total_is_rounded_sum_of_line_totals(self, make_line):
        lines = [
            make_line(),
            make_line(name="Tuberia", quantity=Decimal("3.5"), unit_price=Decimal("41.17"), discount_value=Decimal("0")),
            make_line(name="Mano de obra", quantity=Decimal("1"), unit_price=Decimal("650"), is_taxable=False),
        ]
        amounts = [compute_line(line) for line in lines]
        totals = compute_totals(amounts)

        assert totals.grand_total == round_money(sum(a.line_total for a in amounts))
        assert totals.subtotal == round_money(sum(a.line_subtotal for a in amounts))
        assert totals.discount_total == round_money(sum(a.discount_total for a in amounts))
        assert totals.tax_total == round_money(sum(a.tax_total for a in amounts))

    def test_empty_document_totals_are_zero(self):
        totals = compute_totals([])
        assert totals.grand_total == Decimal("0.00")

    def test_accepts_stored_amounts(self):
        stored = [LineAmounts(Decimal("100"), Decimal("0"), Decimal("18"), Decimal("118"))] * 3
        assert compute_totals(stored).grand_total == Decimal("354.00")


class TestValidateLine:
    """Validación acumulativa de líneas."""

    def test_valid_line_has_no_errors(self, make_line):
        assert validate_line(make_line()) == []

    def test_all_errors_of_a_line_are_reported(self, make_line):
        line = make_line(
            name="  ",
            quantity=Decimal("0"),
            unit_price=Decimal("-1"),
            discount_value=Decimal("101"),
            tax_rate=Decimal("-5"),
        )
        errors = validate_line(line)

        assert errors == [
            "El nombre de la línea es obligatorio.",
            "Quantity debe ser mayor que 0.",
            "UnitPrice no puede ser negativo.",
            "DiscountValue debe estar entre 0 y 100.",
            "TaxRate debe estar entre 0 y 100.",
        ]

    def test_errors_are_collected_across_lines(self, make_line):
        lines = [make_line(quantity=Decimal("-1")), make_line(), make_line(name="")]
        assert validate_lines(lines) == [
            "Quantity debe ser mayor que 0.",
            "El nombre de la línea es obligatorio.",
        ]

    def test_boundary_percentages_are_valid(self, make_line):
        assert validate_line(make_line(discount_value=Decimal("100"), tax_rate=Decimal("0"))) == []
