"""
Service Layer para la entidad Client
Proyecto: ClimaDesk (Back-office de climatización)

Define la lógica de negocio para la gestión de clientes:
- Validación con todos los mensajes en una sola respuesta
- Búsqueda por nombre, empresa, teléfono o documento
- Borrado protegido: un cliente con cotizaciones o facturas no se borra
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.exceptions import BusinessValidationError, ConflictError, NotFoundError
from climadesk.models import Client, Invoice, Quote
from climadesk.schemas.client import ClientBase, ClientCreate, ClientType, ClientUpdate

# Logger para este módulo
logger = logging.getLogger(__name__)

CLIENT_TYPES = (ClientType.INDIVIDUAL.value, ClientType.COMPANY.value)


def collect_client_errors(data: ClientBase, inline: bool = False) -> list[str]:
    """
    Reglas de obligatoriedad de la ficha de cliente.

    Args:
        data: datos del cliente
        inline: True cuando el cliente se crea desde una cotización (los
            mensajes lo indican)

    Returns:
        Lista de mensajes (vacía si es válido)
    """
    suffix = " para el nuevo cliente." if inline else "."
    errors: list[str] = []

    client_type = (data.client_type or "").strip()
    if not client_type:
        errors.append(f"ClientType es obligatorio{suffix}")
    elif client_type not in CLIENT_TYPES:
        errors.append("ClientType debe ser 'Individual' o 'Company'.")

    if not (data.first_name or "").strip():
        errors.append(f"FirstName es obligatorio{suffix}")

    if client_type == ClientType.COMPANY.value and not (data.company_name or "").strip():
        errors.append("CompanyName es obligatorio cuando el tipo es Company.")

    if not (data.phone or "").strip():
        errors.append(f"Phone es obligatorio{suffix}")

    return errors


def build_client(data: ClientBase) -> Client:
    """Crea la entidad Client (sin añadirla a la sesión)."""
    payload = data.model_dump()
    payload["client_type"] = payload["client_type"].strip()
    payload["first_name"] = payload["first_name"].strip()
    return Client(**payload)


class ClientService:
    """
    Service para las operaciones CRUD sobre clientes.

    Proporciona métodos asíncronos sin dependencias de FastAPI.
    """

    async def get_all(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[Client]:
        """
        Lista clientes ordenados por nombre.

        Args:
            db: sesión de base de datos
            search: texto sobre nombre, apellido, empresa, teléfonos,
                documento o correo
            is_active: filtra por estado (None = todos)
        """
        conditions = []

        if is_active is not None:
            conditions.append(Client.is_active == is_active)

        if search and search.strip():
            search_term = f"%{search.strip()}%"
            conditions.append(
                or_(
                    Client.first_name.ilike(search_term),
                    Client.last_name.ilike(search_term),
                    Client.company_name.ilike(search_term),
                    Client.phone.ilike(search_term),
                    Client.secondary_phone.ilike(search_term),
                    Client.document_number.ilike(search_term),
                    Client.email.ilike(search_term),
                )
            )

        query = select(Client).order_by(Client.first_name.asc(), Client.last_name.asc())
        if conditions:
            query = query.where(*conditions)

        result = await db.execute(query)
        clients = list(result.scalars().all())
        logger.debug("Recuperados %s clientes (search=%r)", len(clients), search)
        return clients

    async def get_by_id(self, db: AsyncSession, client_id: uuid.UUID) -> Client:
        """
        Recupera un cliente por id.

        Raises:
            NotFoundError: el cliente no existe
        """
        result = await db.execute(select(Client).where(Client.id == client_id))
        client = result.scalar_one_or_none()

        if client is None:
            logger.warning("Cliente no encontrado: %s", client_id)
            raise NotFoundError(f"Cliente {client_id} no encontrado")

        return client

    async def create(self, db: AsyncSession, data: ClientCreate) -> Client:
        """
        Crea un cliente.

        Raises:
            BusinessValidationError: faltan campos obligatorios
        """
        errors = collect_client_errors(data)
        if errors:
            raise BusinessValidationError(errors)

        client = build_client(data)
        db.add(client)

        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.error("Error de integridad al crear cliente: %s", e)
            raise ConflictError("No se pudo crear el cliente")

        await db.refresh(client)
        logger.info("Cliente creado: %s - %s", client.id, client.display_name)
        return client

    async def update(self, db: AsyncSession, client_id: uuid.UUID, data: ClientUpdate) -> Client:
        """
        Sustituye los datos del cliente.

        Raises:
            NotFoundError: el cliente no existe
            BusinessValidationError: faltan campos obligatorios
        """
        client = await self.get_by_id(db, client_id)

        errors = collect_client_errors(data)
        if errors:
            raise BusinessValidationError(errors)

        for field, value in data.model_dump().items():
            if isinstance(value, str) and field in ("client_type", "first_name"):
                value = value.strip()
            setattr(client, field, value)

        await db.commit()
        await db.refresh(client)
        logger.info("Cliente actualizado: %s", client.id)
        return client

    async def delete(self, db: AsyncSession, client_id: uuid.UUID) -> None:
        """
        Borra un cliente sin cotizaciones ni facturas.

        Raises:
            NotFoundError: el cliente no existe
            ConflictError: el cliente está referenciado
        """
        client = await self.get_by_id(db, client_id)

        quotes = await db.scalar(select(func.count()).select_from(Quote).where(Quote.client_id == client_id))
        invoices = await db.scalar(
            select(func.count()).select_from(Invoice).where(Invoice.client_id == client_id)
        )
        if quotes or invoices:
            logger.warning(
                "Borrado de cliente %s rechazado: %s cotizaciones, %s facturas",
                client_id, quotes, invoices,
            )
            raise ConflictError(
                "No se puede borrar el cliente porque tiene cotizaciones o facturas asociadas."
            )

        try:
            await db.delete(client)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.error("Error de integridad al borrar cliente %s: %s", client_id, e)
            raise ConflictError(
                "No se puede borrar el cliente porque tiene cotizaciones o facturas asociadas."
            )

        logger.info("Cliente borrado: %s", client_id)


def get_client_service() -> ClientService:
    """Dependency de FastAPI para ClientService."""
    return ClientService()


__all__ = ["ClientService", "get_client_service", "collect_client_errors", "build_client"]
