"""
Service Layer para las cotizaciones
Proyecto: ClimaDesk (Back-office de climatización)

Creación (con cliente existente o nuevo, opcionalmente desde una
cotización plantilla), edición con sustitución de líneas y borrado.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.exceptions import BusinessValidationError, ConflictError, NotFoundError
from climadesk.models import Client, Invoice, Quote, QuoteLine
from climadesk.schemas.quote import QuoteCreate, QuoteUpdate
from climadesk.services.client_service import build_client, collect_client_errors
from climadesk.services.line_calculator import LineAmounts, build_line, compute_totals, validate_lines

# Logger para este módulo
logger = logging.getLogger(__name__)


def apply_quote_totals(quote: Quote) -> None:
    """Totales de cabecera a partir de los importes de cada línea."""
    totals = compute_totals(
        LineAmounts(line.line_subtotal, line.discount_total, line.tax_total, line.line_total)
        for line in quote.lines
    )
    quote.subtotal = totals.subtotal
    quote.discount_total = totals.discount_total
    quote.tax_total = totals.tax_total
    quote.grand_total = totals.grand_total


def copy_line(line: QuoteLine, position: int) -> QuoteLine:
    """Copia una línea de la plantilla con sus importes."""
    return QuoteLine(
        name=line.name,
        description=line.description,
        quantity=line.quantity,
        unit_price=line.unit_price,
        discount_value=line.discount_value,
        discount_total=line.discount_total,
        is_taxable=line.is_taxable,
        tax_rate=line.tax_rate,
        tax_total=line.tax_total,
        line_subtotal=line.line_subtotal,
        line_total=line.line_total,
        position=position,
    )


class QuoteService:
    """Service de cotizaciones."""

    async def get_all(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        client_id: Optional[uuid.UUID] = None,
    ) -> list[Quote]:
        """
        Lista cotizaciones, las más recientes primero.

        Args:
            search: texto sobre nombre, descripción o cliente
            client_id: filtra por cliente
        """
        query = select(Quote).join(Client, Quote.client_id == Client.id)

        if client_id is not None:
            query = query.where(Quote.client_id == client_id)

        if search and search.strip():
            term = f"%{search.strip()}%"
            query = query.where(
                or_(
                    Quote.name.ilike(term),
                    Quote.description.ilike(term),
                    Client.first_name.ilike(term),
                    Client.last_name.ilike(term),
                    Client.company_name.ilike(term),
                )
            )

        result = await db.execute(query.order_by(Quote.created_at.desc()))
        return list(result.scalars().all())

    async def get_by_id(self, db: AsyncSession, quote_id: uuid.UUID) -> Quote:
        """
        Raises:
            NotFoundError: la cotización no existe
        """
        result = await db.execute(
            select(Quote)
            .where(Quote.id == quote_id)
            .execution_options(populate_existing=True)
        )
        quote = result.scalar_one_or_none()
        if quote is None:
            logger.warning("Cotización no encontrada: %s", quote_id)
            raise NotFoundError(f"Cotización {quote_id} no encontrada")
        return quote

    async def create(self, db: AsyncSession, data: QuoteCreate) -> Quote:
        """
        Crea una cotización.

        - client_id: cliente existente; new_client: se crea en la misma
          transacción
        - from_quote_id: copia nombre, descripción y líneas de otra
          cotización; las líneas explícitas sustituyen a las copiadas

        Raises:
            BusinessValidationError: cliente inexistente o inválido, sin
                líneas, o líneas inválidas (todos los errores juntos)
        """
        errors: list[str] = []
        new_client: Optional[Client] = None

        if data.client_id is not None:
            if await db.get(Client, data.client_id) is None:
                errors.append("El cliente seleccionado no existe.")
        elif data.new_client is not None:
            client_errors = collect_client_errors(data.new_client, inline=True)
            if client_errors:
                raise BusinessValidationError(client_errors)
            new_client = build_client(data.new_client)
        else:
            raise BusinessValidationError("Debe seleccionar un cliente existente o crear uno nuevo.")

        quote = Quote(name=data.name, description=data.description, lines=[])

        if data.from_quote_id is not None:
            template = await self._get_template(db, data.from_quote_id)
            if template is not None:
                quote.name = quote.name or template.name
                quote.description = quote.description or template.description
                quote.lines = [copy_line(line, position) for position, line in enumerate(template.lines)]

        if data.lines:
            errors.extend(validate_lines(data.lines))
            quote.lines = [build_line(QuoteLine, line, position) for position, line in enumerate(data.lines)]

        if not quote.lines:
            errors.append("La cotización debe tener al menos una línea.")

        if errors:
            raise BusinessValidationError(errors)

        apply_quote_totals(quote)

        try:
            if new_client is not None:
                db.add(new_client)
                await db.flush()
                quote.client_id = new_client.id
                logger.info("Cliente creado desde cotización: %s", new_client.display_name)
            else:
                quote.client_id = data.client_id

            db.add(quote)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.error("Error de integridad al crear cotización: %s", e)
            raise ConflictError("No se pudo crear la cotización")

        logger.info("Cotización creada: %s (total %s)", quote.id, quote.grand_total)
        return await self.get_by_id(db, quote.id)

    async def update(self, db: AsyncSession, quote_id: uuid.UUID, data: QuoteUpdate) -> Quote:
        """
        Actualiza cabecera y sustituye todas las líneas.

        Raises:
            NotFoundError: la cotización no existe
            BusinessValidationError: cliente inexistente, new_client
                presente, sin líneas o líneas inválidas
        """
        quote = await self.get_by_id(db, quote_id)
        errors: list[str] = []

        if data.client_id is not None and await db.get(Client, data.client_id) is None:
            errors.append("El cliente seleccionado no existe.")

        if data.new_client is not None:
            errors.append(
                "No se permite crear un cliente nuevo en la edición de una cotización. "
                "Cree el cliente antes y selecciónelo."
            )

        if not data.lines:
            errors.append("La cotización debe tener al menos una línea.")

        errors.extend(validate_lines(data.lines))
        if errors:
            raise BusinessValidationError(errors)

        if data.client_id is not None:
            quote.client_id = data.client_id
        quote.name = data.name
        quote.description = data.description
        quote.lines = [build_line(QuoteLine, line, position) for position, line in enumerate(data.lines)]
        apply_quote_totals(quote)

        await db.commit()
        logger.info("Cotización actualizada: %s", quote_id)
        return await self.get_by_id(db, quote_id)

    async def delete(self, db: AsyncSession, quote_id: uuid.UUID) -> None:
        """
        Borra la cotización y sus líneas. Las facturas que la referencian
        quedan sin cotización de origen.

        Raises:
            NotFoundError: la cotización no existe
        """
        quote = await self.get_by_id(db, quote_id)
        await db.execute(
            update(Invoice)
            .where(Invoice.quote_id == quote_id)
            .values(quote_id=None)
            .execution_options(synchronize_session=False)
        )
        await db.delete(quote)
        await db.commit()
        logger.info("Cotización borrada: %s", quote_id)

    async def _get_template(self, db: AsyncSession, quote_id: uuid.UUID) -> Optional[Quote]:
        result = await db.execute(select(Quote).where(Quote.id == quote_id))
        template = result.scalar_one_or_none()
        if template is None:
            logger.warning("Cotización plantilla no encontrada: %s", quote_id)
        return template


def get_quote_service() -> QuoteService:
    """Dependency de FastAPI para QuoteService."""
    return QuoteService()


__all__ = ["QuoteService", "get_quote_service", "apply_quote_totals"]
