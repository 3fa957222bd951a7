"""
Tests de InvoiceService: numeración, NCF, cobros, estado y cancelación.

Se ejecutan contra SQLite en memoria con la sesión real, de modo que los
rollbacks y la liberación de comprobantes se comprueban sobre filas
persistidas.
"""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import func, select, update

from climadesk.core.exceptions import BusinessValidationError, DuplicateError, NotFoundError
from climadesk.models import FiscalVoucher, Invoice
from climadesk.models.invoice import InvoiceStatus
from climadesk.schemas.invoice import InvoiceCreate, InvoicePaymentCreate, InvoiceUpdate
from climadesk.schemas.fiscal_voucher import FiscalVoucherCreate
from climadesk.services.fiscal_voucher_service import NO_VOUCHER_AVAILABLE, FiscalVoucherService
from climadesk.services.invoice_service import InvoiceService, format_invoice_code


@pytest.fixture
def service() -> InvoiceService:
    return InvoiceService()


@pytest.fixture
def flat_line(make_line):
    """Línea de 500.00 sin descuento ni impuesto."""
    return make_line(
        name="Instalacion completa",
        quantity=Decimal("1"),
        unit_price=Decimal("500"),
        discount_value=Decimal("0"),
        is_taxable=False,
    )


async def _voucher(db, number: str) -> FiscalVoucher:
    result = await db.execute(
        select(FiscalVoucher)
        .where(FiscalVoucher.voucher_number == number)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _invoice_count(db) -> int:
    return await db.scalar(select(func.count()).select_from(Invoice))


class TestInvoiceCode:
    """Formato del código visible."""

    def test_code_is_zero_padded(self):
        assert format_invoice_code(1) == "FACTURA-000001"
        assert format_invoice_code(123456) == "FACTURA-123456"

    async def test_codes_are_sequential(self, db, service, client_entity, make_line):
        first = await service.create_invoice(db, InvoiceCreate(client_id=client_entity.id, lines=[make_line()]))
        second = await service.create_invoice(db, InvoiceCreate(client_id=client_entity.id, lines=[make_line()]))

        assert first.invoice_code == "FACTURA-000001"
        assert second.invoice_code == "FACTURA-000002"


class TestCreateInvoice:
    """Creación, validación y totales."""

    async def test_created_invoice_is_sent_with_totals(self, db, service, client_entity, make_line):
        invoice = await service.create_invoice(
            db, InvoiceCreate(client_id=client_entity.id, lines=[make_line(), make_line(name="Rejillas")])
        )

        assert invoice.status == InvoiceStatus.SENT.value
        assert invoice.subtotal == Decimal("400.00")
        assert invoice.discount_total == Decimal("40.00")
        assert invoice.tax_total == Decimal("64.80")
        assert invoice.grand_total == Decimal("424.80")
        assert invoice.paid_total == Decimal("0")
        assert invoice.balance_due == Decimal("424.80")
        assert [line.position for line in invoice.lines] == [0, 1]

    async def test_all_validation_errors_are_returned_together(self, db, service, make_line):
        data = InvoiceCreate(
            client_id=None,
            lines=[make_line(quantity=Decimal("0")), make_line(name="", tax_rate=Decimal("150"))],
        )

        with pytest.raises(BusinessValidationError) as exc_info:
            await service.create_invoice(db, data)

        assert exc_info.value.errors == [
            "Debe seleccionar un cliente.",
            "Quantity debe ser mayor que 0.",
            "El nombre de la línea es obligatorio.",
            "TaxRate debe estar entre 0 y 100.",
        ]
        assert await _invoice_count(db) == 0

    async def test_invoice_without_lines_is_rejected(self, db, service, client_entity):
        with pytest.raises(BusinessValidationError) as exc_info:
            await service.create_invoice(db, InvoiceCreate(client_id=client_entity.id, lines=[]))

        assert "La factura debe tener al menos una línea." in exc_info.value.errors

    async def test_unknown_client_and_quote_are_rejected(self, db, service, make_line):
        data = InvoiceCreate(client_id=uuid.uuid4(), quote_id=uuid.uuid4(), lines=[make_line()])

        with pytest.raises(BusinessValidationError) as exc_info:
            await service.create_invoice(db, data)

        assert exc_info.value.errors == [
            "El cliente seleccionado no existe.",
            "La cotización base no existe.",
        ]


class TestFiscalVoucherAllocation:
    """Asignación y liberación de NCF."""

    async def test_smallest_free_voucher_is_allocated(self, db, service, client_entity, vouchers, make_line):
        invoice = await service.create_invoice(
            db,
            InvoiceCreate(client_id=client_entity.id, requires_fiscal_voucher=True, lines=[make_line()]),
        )

        assert invoice.fiscal_voucher_number == "B0100000001"
        voucher = await _voucher(db, "B0100000001")
        assert voucher.is_used is True
        assert voucher.used_in_invoice_id == invoice.id
        assert voucher.used_at is not None

    async def test_each_invoice_gets_a_distinct_voucher(self, db, service, client_entity, vouchers, make_line):
        numbers = []
        for _ in range(3):
            invoice = await service.create_invoice(
                db,
                InvoiceCreate(client_id=client_entity.id, requires_fiscal_voucher=True, lines=[make_line()]),
            )
            numbers.append(invoice.fiscal_voucher_number)

        assert numbers == ["B0100000001", "B0100000002", "B0100000003"]

    async def test_no_voucher_available_leaves_no_invoice(self, db, service, client_entity, make_line):
        data = InvoiceCreate(client_id=client_entity.id, requires_fiscal_voucher=True, lines=[make_line()])

        with pytest.raises(BusinessValidationError) as exc_info:
            await service.create_invoice(db, data)

        assert exc_info.value.errors == [NO_VOUCHER_AVAILABLE]
        assert await _invoice_count(db) == 0

    async def test_missing_voucher_is_reported_with_line_errors(self, db, service, client_entity, make_line):
        data = InvoiceCreate(
            client_id=client_entity.id,
            requires_fiscal_voucher=True,
            lines=[make_line(quantity=Decimal("0"))],
        )

        with pytest.raises(BusinessValidationError) as exc_info:
            await service.create_invoice(db, data)

        assert exc_info.value.errors == ["Quantity debe ser mayor que 0.", NO_VOUCHER_AVAILABLE]
        assert await _invoice_count(db) == 0

    async def test_allocation_retries_when_candidate_was_taken(
        self, db, service, client_entity, vouchers, make_line, monkeypatch
    ):
        """Otra transacción reclama el candidato entre la lectura y el UPDATE."""
        voucher_service = service.voucher_service
        real_next_available = voucher_service._next_available
        calls = []

        async def stale_candidate_first(session):
            calls.append(1)
            candidate = await real_next_available(session)
            if len(calls) == 1:
                await session.execute(
                    update(FiscalVoucher)
                    .where(FiscalVoucher.id == candidate.id)
                    .values(is_used=True, used_in_invoice_id=uuid.uuid4())
                    .execution_options(synchronize_session=False)
                )
            return candidate

        monkeypatch.setattr(voucher_service, "_next_available", stale_candidate_first)

        invoice = await service.create_invoice(
            db,
            InvoiceCreate(client_id=client_entity.id, requires_fiscal_voucher=True, lines=[make_line()]),
        )

        assert len(calls) == 2
        assert invoice.fiscal_voucher_number == "B0100000002"

    async def test_update_never_allocates_a_voucher(self, db, service, client_entity, vouchers, make_line):
        invoice = await service.create_invoice(db, InvoiceCreate(client_id=client_entity.id, lines=[make_line()]))

        updated = await service.update_invoice(
            db,
            invoice.id,
            InvoiceUpdate(client_id=client_entity.id, requires_fiscal_voucher=True, lines=[make_line()]),
        )

        assert updated.fiscal_voucher_id is None
        assert updated.requires_fiscal_voucher is False
        for number in ("B0100000001", "B0100000002", "B0100000003"):
            assert (await _voucher(db, number)).is_used is False

    async def test_update_keeps_the_allocated_voucher(self, db, service, client_entity, vouchers, make_line):
        invoice = await service.create_invoice(
            db,
            InvoiceCreate(client_id=client_entity.id, requires_fiscal_voucher=True, lines=[make_line()]),
        )

        updated = await service.update_invoice(
            db,
            invoice.id,
            InvoiceUpdate(client_id=client_entity.id, requires_fiscal_voucher=False, lines=[make_line(quantity=Decimal("5"))]),
        )

        assert updated.fiscal_voucher_number == "B0100000001"
        assert updated.grand_total == Decimal("531.00")

    async def test_delete_releases_the_voucher(self, db, service, client_entity, vouchers, make_line):
        invoice = await service.create_invoice(
            db,
            InvoiceCreate(client_id=client_entity.id, requires_fiscal_voucher=True, lines=[make_line()]),
        )

        await service.delete(db, invoice.id)

        voucher = await _voucher(db, "B0100000001")
        assert voucher.is_used is False
        assert voucher.used_in_invoice_id is None
        assert await _invoice_count(db) == 0

        with pytest.raises(NotFoundError):
            await service.get_by_id(db, invoice.id)


class TestPayments:
    """Cobros y transición de estado."""

    async def test_partial_then_full_payment(self, db, service, client_entity, flat_line):
        invoice = await service.create_invoice(db, InvoiceCreate(client_id=client_entity.id, lines=[flat_line]))
        assert invoice.grand_total == Decimal("500.00")

        invoice = await service.add_payment(
            db, invoice.id, InvoicePaymentCreate(amount=Decimal("300"), method="Efectivo")
        )
        assert invoice.paid_total == Decimal("300.00")
        assert invoice.balance_due == Decimal("200.00")
        assert invoice.status == InvoiceStatus.PARTIALLY_PAID.value

        invoice = await service.add_payment(
            db, invoice.id, InvoicePaymentCreate(amount=Decimal("200"), method="Transferencia")
        )
        assert invoice.balance_due == Decimal("0.00")
        assert invoice.status == InvoiceStatus.PAID.value
        assert len(invoice.payments) == 2

    async def test_overpayment_is_paid_with_negative_balance(self, db, service, client_entity, flat_line):
        invoice = await service.create_invoice(db, InvoiceCreate(client_id=client_entity.id, lines=[flat_line]))

        invoice = await service.add_payment(
            db, invoice.id, InvoicePaymentCreate(amount=Decimal("600"), method="Efectivo")
        )

        assert invoice.status == InvoiceStatus.PAID.value
        assert invoice.balance_due == Decimal("-100.00")

    async def test_invalid_payment_reports_every_error(self, db, service, client_entity, flat_line):
        invoice = await service.create_invoice(db, InvoiceCreate(client_id=client_entity.id, lines=[flat_line]))

        with pytest.raises(BusinessValidationError) as exc_info:
            await service.add_payment(db, invoice.id, InvoicePaymentCreate(amount=Decimal("0"), method=" "))

        assert exc_info.value.errors == [
            "El monto del pago debe ser mayor que 0.",
            "El metodo de pago es obligatorio.",
        ]

    async def test_amount_rounding_to_zero_is_rejected(self, db, service, client_entity, flat_line):
        """0.004 se guarda como 0.00: se rechaza como importe no positivo."""
        invoice = await service.create_invoice(db, InvoiceCreate(client_id=client_entity.id, lines=[flat_line]))

        with pytest.raises(BusinessValidationError) as exc_info:
            await service.add_payment(
                db, invoice.id, InvoicePaymentCreate(amount=Decimal("0.004"), method="Efectivo")
            )

        assert exc_info.value.errors == ["El monto del pago debe ser mayor que 0."]
        reloaded = await service.get_by_id(db, invoice.id)
        assert reloaded.payments == []
        assert reloaded.paid_total == Decimal("0.00")

    async def test_lowering_lines_after_payment_recomputes_status(self, db, service, client_entity, flat_line, make_line):
        invoice = await service.create_invoice(db, InvoiceCreate(client_id=client_entity.id, lines=[flat_line]))
        await service.add_payment(db, invoice.id, InvoicePaymentCreate(amount=Decimal("300"), method="Efectivo"))

        cheaper = make_line(quantity=Decimal("1"), unit_price=Decimal("300"), discount_value=Decimal("0"), is_taxable=False)
        invoice = await service.update_invoice(
            db, invoice.id, InvoiceUpdate(client_id=client_entity.id, lines=[cheaper])
        )

        assert invoice.balance_due == Decimal("0.00")
        assert invoice.status == InvoiceStatus.PAID.value


class TestCancel:
    """Cancelación idempotente."""

    async def test_cancel_releases_voucher(self, db, service, client_entity, vouchers, make_line):
        invoice = await service.create_invoice(
            db,
            InvoiceCreate(client_id=client_entity.id, requires_fiscal_voucher=True, lines=[make_line()]),
        )
        assert invoice.fiscal_voucher_number == "B0100000001"

        cancelled = await service.cancel(db, invoice.id)

        assert cancelled.status == InvoiceStatus.CANCELLED.value
        assert cancelled.requires_fiscal_voucher is False
        assert cancelled.fiscal_voucher_id is None
        voucher = await _voucher(db, "B0100000001")
        assert voucher.is_used is False
        assert voucher.used_in_invoice_id is None
        assert voucher.used_at is None

    async def test_released_voucher_is_reused(self, db, service, client_entity, vouchers, make_line):
        data = InvoiceCreate(client_id=client_entity.id, requires_fiscal_voucher=True, lines=[make_line()])
        first = await service.create_invoice(db, data)
        await service.cancel(db, first.id)

        second = await service.create_invoice(db, data)

        assert second.fiscal_voucher_number == "B0100000001"

    async def test_cancel_twice_is_a_no_op(self, db, service, client_entity, vouchers, make_line):
        invoice = await service.create_invoice(
            db,
            InvoiceCreate(client_id=client_entity.id, requires_fiscal_voucher=True, lines=[make_line()]),
        )

        def snapshot(inv):
            return (inv.status, inv.requires_fiscal_voucher, inv.fiscal_voucher_id, inv.grand_total, inv.balance_due)

        first = snapshot(await service.cancel(db, invoice.id))
        second = snapshot(await service.cancel(db, invoice.id))

        assert first == second
        assert first[0] == InvoiceStatus.CANCELLED.value

    async def test_payment_on_cancelled_invoice_is_rejected(self, db, service, client_entity, flat_line):
        invoice = await service.create_invoice(db, InvoiceCreate(client_id=client_entity.id, lines=[flat_line]))
        await service.cancel(db, invoice.id)

        with pytest.raises(BusinessValidationError) as exc_info:
            await service.add_payment(db, invoice.id, InvoicePaymentCreate(amount=Decimal("10"), method="Efectivo"))

        assert exc_info.value.errors == ["No se pueden registrar pagos en una factura cancelada."]

    async def test_cancelled_invoice_keeps_status_on_update(self, db, service, client_entity, flat_line, make_line):
        invoice = await service.create_invoice(db, InvoiceCreate(client_id=client_entity.id, lines=[flat_line]))
        await service.cancel(db, invoice.id)

        updated = await service.update_invoice(
            db, invoice.id, InvoiceUpdate(client_id=client_entity.id, lines=[make_line()])
        )

        assert updated.status == InvoiceStatus.CANCELLED.value
        assert updated.grand_total == Decimal("212.40")


class TestListInvoices:
    """Búsqueda y filtros."""

    async def test_search_by_voucher_and_filter_by_status(self, db, service, client_entity, vouchers, make_line):
        with_voucher = await service.create_invoice(
            db,
            InvoiceCreate(client_id=client_entity.id, requires_fiscal_voucher=True, lines=[make_line()]),
        )
        plain = await service.create_invoice(db, InvoiceCreate(client_id=client_entity.id, lines=[make_line()]))
        await service.cancel(db, plain.id)

        by_voucher = await service.get_all(db, search="B0100000001")
        cancelled = await service.get_all(db, status=InvoiceStatus.CANCELLED.value)
        by_client_name = await service.get_all(db, search="juan")

        assert [i.id for i in by_voucher] == [with_voucher.id]
        assert [i.id for i in cancelled] == [plain.id]
        assert {i.id for i in by_client_name} == {with_voucher.id, plain.id}


class TestFiscalVoucherRegistry:
    """Alta y listado de comprobantes."""

    async def test_duplicate_number_is_rejected(self, db):
        vouchers = FiscalVoucherService()
        await vouchers.create(db, FiscalVoucherCreate(voucher_number="B0100000009", voucher_type="B01"))

        with pytest.raises(DuplicateError):
            await vouchers.create(db, FiscalVoucherCreate(voucher_number=" B0100000009 "))

        assert await db.scalar(select(func.count()).select_from(FiscalVoucher)) == 1

    async def test_empty_number_is_rejected(self, db):
        with pytest.raises(BusinessValidationError) as exc_info:
            await FiscalVoucherService().create(db, FiscalVoucherCreate(voucher_number="   "))

        assert exc_info.value.errors == ["VoucherNumber es obligatorio."]

    async def test_only_available_filter(self, db, service, client_entity, vouchers, make_line):
        await service.create_invoice(
            db,
            InvoiceCreate(client_id=client_entity.id, requires_fiscal_voucher=True, lines=[make_line()]),
        )

        available = await FiscalVoucherService().get_all(db, only_available=True)

        assert [v.voucher_number for v in available] == ["B0100000002", "B0100000003"]
