"""
Service Layer para la facturación
Proyecto: ClimaDesk (Back-office de climatización)

Contiene la lógica de negocio para:
- Creación de facturas con asignación de comprobante fiscal
- Actualización de cabecera y líneas (sin tocar comprobantes)
- Registro de cobros y recálculo de estado
- Cancelación (idempotente) y borrado con liberación del comprobante

Cada operación de escritura se ejecuta en una única transacción y hace
un solo commit; cualquier fallo intermedio hace rollback completo.
"""

import datetime
import logging
import uuid
from typing import Optional

from sqlalchemy import func, or_, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.exceptions import AppException, BusinessValidationError, ConflictError, NotFoundError
from climadesk.models import Client, FiscalVoucher, Invoice, InvoiceLine, InvoicePayment, Quote
from climadesk.models.invoice import InvoiceStatus
from climadesk.schemas.invoice import InvoiceCreate, InvoicePaymentCreate, InvoiceUpdate
from climadesk.services.fiscal_voucher_service import NO_VOUCHER_AVAILABLE, FiscalVoucherService
from climadesk.services.invoice_status import recalculate_totals
from climadesk.services.line_calculator import build_line, round_money, validate_lines

# Logger para este módulo
logger = logging.getLogger(__name__)

# Clave del advisory lock que serializa la numeración en PostgreSQL
INVOICE_NUMBER_LOCK_KEY = 7_301_001


def format_invoice_code(invoice_number: int) -> str:
    """Formato visible del código: FACTURA-000001."""
    return f"FACTURA-{invoice_number:06d}"


class InvoiceService:
    """
    Service de facturas.

    create_invoice y update_invoice son operaciones distintas: solo la
    creación asigna comprobante fiscal.
    """

    def __init__(self, voucher_service: Optional[FiscalVoucherService] = None):
        self.voucher_service = voucher_service or FiscalVoucherService()

    # ------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------
    async def get_all(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        client_id: Optional[uuid.UUID] = None,
        status: Optional[str] = None,
    ) -> list[Invoice]:
        """
        Lista facturas, las más recientes primero.

        Args:
            db: sesión de base de datos
            search: texto libre sobre código, descripción, cliente o NCF
            client_id: filtra por cliente
            status: filtra por estado exacto
        """
        query = (
            select(Invoice)
            .outerjoin(Client, Invoice.client_id == Client.id)
            .outerjoin(FiscalVoucher, Invoice.fiscal_voucher_id == FiscalVoucher.id)
        )

        if client_id is not None:
            query = query.where(Invoice.client_id == client_id)

        if status and status.strip():
            query = query.where(Invoice.status == status.strip())

        if search and search.strip():
            term = f"%{search.strip()}%"
            query = query.where(
                or_(
                    Invoice.invoice_code.ilike(term),
                    Invoice.description.ilike(term),
                    Client.first_name.ilike(term),
                    Client.last_name.ilike(term),
                    Client.company_name.ilike(term),
                    FiscalVoucher.voucher_number.ilike(term),
                )
            )

        query = query.order_by(Invoice.created_at.desc(), Invoice.invoice_number.desc())
        result = await db.execute(query)
        return list(result.scalars().unique().all())

    async def get_by_id(self, db: AsyncSession, invoice_id: uuid.UUID) -> Invoice:
        """
        Recupera una factura con líneas, cobros, cliente y NCF.

        Raises:
            NotFoundError: la factura no existe
        """
        result = await db.execute(
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .execution_options(populate_existing=True)
        )
        invoice = result.scalar_one_or_none()
        if invoice is None:
            logger.warning("Factura no encontrada: %s", invoice_id)
            raise NotFoundError(f"Factura {invoice_id} no encontrada")
        return invoice

    # ------------------------------------------------------------
    # Escritura
    # ------------------------------------------------------------
    async def create_invoice(self, db: AsyncSession, data: InvoiceCreate) -> Invoice:
        """
        Crea una factura.

        Flujo (una transacción):
        1. Valida cabecera, todas las líneas y, si hace falta, que quede
           algún NCF libre, acumulando errores
        2. Genera el siguiente código FACTURA-NNNNNN
        3. Inserta factura y líneas (estado Draft)
        4. Si requires_fiscal_voucher, asigna el menor NCF libre
        5. Recalcula totales y estado (Draft -> Sent)
        6. Commit

        Raises:
            BusinessValidationError: datos inválidos o sin NCF disponible;
                no queda ninguna fila escrita
            ConflictError: violación de integridad concurrente
        """
        errors = await self._validate(db, data)
        if data.requires_fiscal_voucher and not await self.voucher_service.has_available(db):
            errors.append(NO_VOUCHER_AVAILABLE)
        if errors:
            raise BusinessValidationError(errors)

        try:
            invoice_number = await self._next_invoice_number(db)
            invoice = Invoice(
                quote_id=data.quote_id,
                client_id=data.client_id,
                invoice_number=invoice_number,
                invoice_code=format_invoice_code(invoice_number),
                description=data.description,
                issue_date=data.issue_date or datetime.date.today(),
                due_date=data.due_date,
                status=InvoiceStatus.DRAFT.value,
                requires_fiscal_voucher=data.requires_fiscal_voucher,
                lines=[build_line(InvoiceLine, line, position) for position, line in enumerate(data.lines)],
                payments=[],
            )
            db.add(invoice)
            await db.flush()

            if invoice.requires_fiscal_voucher:
                await self.voucher_service.allocate(db, invoice)

            recalculate_totals(invoice)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.error("Error de integridad al crear factura: %s", e)
            raise ConflictError("Error de integridad al crear la factura. Intente de nuevo.")
        except AppException:
            await db.rollback()
            raise

        logger.info(
            "Factura creada: %s (total %s, NCF %s)",
            invoice.invoice_code, invoice.grand_total, invoice.fiscal_voucher_id,
        )
        return await self.get_by_id(db, invoice.id)

    async def update_invoice(
        self,
        db: AsyncSession,
        invoice_id: uuid.UUID,
        data: InvoiceUpdate,
    ) -> Invoice:
        """
        Sustituye cabecera y líneas y recalcula totales y estado.

        No asigna ni libera comprobantes fiscales: requires_fiscal_voucher
        del cuerpo se ignora.

        Raises:
            NotFoundError: la factura no existe
            BusinessValidationError: datos inválidos
        """
        invoice = await self.get_by_id(db, invoice_id)

        errors = await self._validate(db, data)
        if errors:
            raise BusinessValidationError(errors)

        invoice.quote_id = data.quote_id
        invoice.client_id = data.client_id
        invoice.description = data.description
        invoice.issue_date = data.issue_date or invoice.issue_date
        invoice.due_date = data.due_date
        invoice.lines = [build_line(InvoiceLine, line, position) for position, line in enumerate(data.lines)]

        recalculate_totals(invoice)

        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.error("Error de integridad al actualizar factura %s: %s", invoice_id, e)
            raise ConflictError("Error de integridad al actualizar la factura.")

        logger.info("Factura actualizada: %s", invoice.invoice_code)
        return await self.get_by_id(db, invoice_id)

    async def delete(self, db: AsyncSession, invoice_id: uuid.UUID) -> None:
        """
        Borra la factura con sus líneas y cobros y libera su NCF.

        Raises:
            NotFoundError: la factura no existe
        """
        invoice = await self.get_by_id(db, invoice_id)
        code = invoice.invoice_code

        try:
            await self.voucher_service.release(db, invoice)
            await db.delete(invoice)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.error("Error de integridad al borrar factura %s: %s", code, e)
            raise ConflictError("No se pudo borrar la factura.")

        logger.info("Factura borrada: %s", code)

    async def add_payment(
        self,
        db: AsyncSession,
        invoice_id: uuid.UUID,
        data: InvoicePaymentCreate,
    ) -> Invoice:
        """
        Registra un cobro y recalcula cobrado, saldo y estado.

        Raises:
            NotFoundError: la factura no existe
            BusinessValidationError: importe <= 0 tras redondear a céntimos,
                método vacío o factura cancelada (se devuelven todos los
                errores juntos)
            ConflictError: violación de integridad al guardar
        """
        invoice = await self.get_by_id(db, invoice_id)

        amount = round_money(data.amount)

        errors: list[str] = []
        if amount <= 0:
            errors.append("El monto del pago debe ser mayor que 0.")
        if not (data.method or "").strip():
            errors.append("El metodo de pago es obligatorio.")
        if invoice.status == InvoiceStatus.CANCELLED.value:
            errors.append("No se pueden registrar pagos en una factura cancelada.")
        if errors:
            raise BusinessValidationError(errors)

        payment = InvoicePayment(
            payment_date=data.payment_date or datetime.datetime.now(datetime.timezone.utc),
            amount=amount,
            method=data.method.strip(),
            reference=(data.reference or "").strip() or None,
            notes=(data.notes or "").strip() or None,
        )
        invoice.payments.append(payment)
        recalculate_totals(invoice)

        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.error("Error de integridad al registrar cobro en %s: %s", invoice_id, e)
            raise ConflictError("No se pudo registrar el cobro. Intente de nuevo.")

        logger.info(
            "Cobro de %s registrado en %s (saldo %s, estado %s)",
            payment.amount, invoice.invoice_code, invoice.balance_due, invoice.status,
        )
        return await self.get_by_id(db, invoice_id)

    async def cancel(self, db: AsyncSession, invoice_id: uuid.UUID) -> Invoice:
        """
        Cancela la factura. Idempotente: cancelar una factura ya cancelada
        la devuelve sin cambios.

        Libera el NCF y deja la factura sin requisito de comprobante.

        Raises:
            NotFoundError: la factura no existe
        """
        invoice = await self.get_by_id(db, invoice_id)
        if invoice.status == InvoiceStatus.CANCELLED.value:
            return invoice

        invoice.status = InvoiceStatus.CANCELLED.value
        await self.voucher_service.release(db, invoice)
        invoice.fiscal_voucher = None
        invoice.fiscal_voucher_id = None
        invoice.requires_fiscal_voucher = False

        await db.commit()

        logger.info("Factura cancelada: %s", invoice.invoice_code)
        return await self.get_by_id(db, invoice_id)

    # ------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------
    async def _validate(self, db: AsyncSession, data: InvoiceCreate | InvoiceUpdate) -> list[str]:
        errors: list[str] = []

        if data.client_id is None:
            errors.append("Debe seleccionar un cliente.")
        elif await db.get(Client, data.client_id) is None:
            errors.append("El cliente seleccionado no existe.")

        if data.quote_id is not None and await db.get(Quote, data.quote_id) is None:
            errors.append("La cotización base no existe.")

        if not data.lines:
            errors.append("La factura debe tener al menos una línea.")

        errors.extend(validate_lines(data.lines))
        return errors

    async def _next_invoice_number(self, db: AsyncSession) -> int:
        """
        Siguiente secuencial de factura.

        En PostgreSQL se toma un advisory lock de transacción para que dos
        creaciones concurrentes no lean el mismo máximo.
        """
        if db.get_bind().dialect.name == "postgresql":
            await db.execute(
                text("SELECT pg_advisory_xact_lock(:lock_key)"),
                {"lock_key": INVOICE_NUMBER_LOCK_KEY},
            )
        result = await db.execute(select(func.max(Invoice.invoice_number)))
        return (result.scalar() or 0) + 1


def get_invoice_service() -> InvoiceService:
    """Dependency de FastAPI para InvoiceService."""
    return InvoiceService()


__all__ = ["InvoiceService", "get_invoice_service", "format_invoice_code"]
