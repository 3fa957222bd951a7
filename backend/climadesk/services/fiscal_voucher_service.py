"""
Service Layer para los comprobantes fiscales (NCF)
Proyecto: ClimaDesk (Back-office de climatización)

Asignación exclusiva de comprobantes a facturas:
- allocate: toma el menor voucher_number libre, solo al crear la factura
- release: lo devuelve a libre al cancelar o borrar la factura

Las dos operaciones se ejecutan dentro de la transacción de la factura;
el commit lo hace InvoiceService.
"""

import datetime
import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.exceptions import BusinessValidationError, ConflictError, DuplicateError
from climadesk.models import FiscalVoucher, Invoice
from climadesk.schemas.fiscal_voucher import FiscalVoucherCreate

# Logger para este módulo
logger = logging.getLogger(__name__)

# Intentos de reclamar un comprobante cuando otra transacción gana la carrera
MAX_ALLOCATION_ATTEMPTS = 5

NO_VOUCHER_AVAILABLE = "No hay comprobantes fiscales disponibles."


class FiscalVoucherService:
    """
    Service de comprobantes fiscales.

    Invariante: is_used es True si y solo si una factura no cancelada
    apunta al comprobante. invoices.fiscal_voucher_id es único.
    """

    async def get_all(
        self,
        db: AsyncSession,
        only_available: bool = False,
    ) -> list[FiscalVoucher]:
        """
        Lista los comprobantes ordenados por número.

        Args:
            db: sesión de base de datos
            only_available: si True, solo los no usados
        """
        query = select(FiscalVoucher).order_by(FiscalVoucher.voucher_number.asc())
        if only_available:
            query = query.where(FiscalVoucher.is_used == False)  # noqa: E712
        result = await db.execute(query)
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, data: FiscalVoucherCreate) -> FiscalVoucher:
        """
        Registra un comprobante nuevo, libre.

        Raises:
            BusinessValidationError: número vacío
            DuplicateError: el número ya existe
        """
        voucher_number = (data.voucher_number or "").strip()
        if not voucher_number:
            raise BusinessValidationError("VoucherNumber es obligatorio.")

        existing = await db.execute(
            select(FiscalVoucher.id).where(FiscalVoucher.voucher_number == voucher_number)
        )
        if existing.first() is not None:
            raise DuplicateError("Ese comprobante ya existe.")

        voucher_type = (data.voucher_type or "").strip() or None
        voucher = FiscalVoucher(
            voucher_number=voucher_number,
            voucher_type=voucher_type,
            is_used=False,
        )
        db.add(voucher)

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise DuplicateError("Ese comprobante ya existe.")

        await db.refresh(voucher)
        logger.info("Comprobante fiscal creado: %s", voucher.voucher_number)
        return voucher

    async def allocate(self, db: AsyncSession, invoice: Invoice) -> FiscalVoucher:
        """
        Asigna a la factura el menor comprobante libre.

        La fila candidata se bloquea (FOR UPDATE SKIP LOCKED en PostgreSQL)
        y se reclama con un UPDATE condicionado a is_used = false. Si el
        UPDATE no afecta a ninguna fila, otra transacción se la llevó y se
        prueba la siguiente.

        La factura debe tener id (flush previo). No hace commit.

        Raises:
            BusinessValidationError: no quedan comprobantes libres
            ConflictError: se agotaron los reintentos
        """
        for attempt in range(1, MAX_ALLOCATION_ATTEMPTS + 1):
            candidate = await self._next_available(db)
            if candidate is None:
                logger.warning("Sin comprobantes fiscales para la factura %s", invoice.invoice_code)
                raise BusinessValidationError(NO_VOUCHER_AVAILABLE)

            now = datetime.datetime.now(datetime.timezone.utc)
            result = await db.execute(
                update(FiscalVoucher)
                .where(
                    FiscalVoucher.id == candidate.id,
                    FiscalVoucher.is_used == False,  # noqa: E712
                )
                .values(is_used=True, used_at=now, used_in_invoice_id=invoice.id)
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 1:
                await db.refresh(candidate)
                invoice.fiscal_voucher_id = candidate.id
                logger.info(
                    "Comprobante %s asignado a la factura %s",
                    candidate.voucher_number, invoice.invoice_code,
                )
                return candidate

            logger.warning(
                "Comprobante %s tomado por otra transacción (intento %s/%s)",
                candidate.voucher_number, attempt, MAX_ALLOCATION_ATTEMPTS,
            )

        raise ConflictError("No se pudo asignar un comprobante fiscal. Intente de nuevo.")

    async def release(self, db: AsyncSession, invoice: Invoice) -> Optional[FiscalVoucher]:
        """
        Devuelve a libre el comprobante de la factura, si le pertenece.

        No toca los campos de la factura; la cancelación los limpia aparte.
        No hace commit.
        """
        if invoice.fiscal_voucher_id is None:
            return None

        result = await db.execute(
            select(FiscalVoucher)
            .where(FiscalVoucher.id == invoice.fiscal_voucher_id)
            .with_for_update()
        )
        voucher = result.scalar_one_or_none()
        if voucher is None or voucher.used_in_invoice_id != invoice.id:
            return None

        voucher.is_used = False
        voucher.used_at = None
        voucher.used_in_invoice_id = None
        logger.info(
            "Comprobante %s liberado de la factura %s",
            voucher.voucher_number, invoice.invoice_code,
        )
        return voucher

    async def has_available(self, db: AsyncSession) -> bool:
        """Indica si queda algún comprobante libre, sin bloquear filas."""
        result = await db.execute(
            select(FiscalVoucher.id).where(FiscalVoucher.is_used == False).limit(1)  # noqa: E712
        )
        return result.first() is not None

    async def _next_available(self, db: AsyncSession) -> Optional[FiscalVoucher]:
        result = await db.execute(
            select(FiscalVoucher)
            .where(FiscalVoucher.is_used == False)  # noqa: E712
            .order_by(FiscalVoucher.voucher_number.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
        )
        return result.scalar_one_or_none()


def get_fiscal_voucher_service() -> FiscalVoucherService:
    """Dependency de FastAPI para FiscalVoucherService."""
    return FiscalVoucherService()


__all__ = [
    "FiscalVoucherService",
    "get_fiscal_voucher_service",
    "MAX_ALLOCATION_ATTEMPTS",
    "NO_VOUCHER_AVAILABLE",
]
