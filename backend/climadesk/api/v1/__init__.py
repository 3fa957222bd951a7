"""
API v1 Routes
Proyecto: ClimaDesk (Back-office de climatización)

Router versión 1 de la API.
"""

from fastapi import APIRouter

from climadesk.api.v1 import (
    assistant, auth, catalog_items, clients, fiscal_vouchers, invoices, quotes
)

# Router agregado para v1
api_v1_router = APIRouter(prefix="/api/v1")

# Incluye los routers de los módulos
api_v1_router.include_router(auth.router)
api_v1_router.include_router(clients.router)
api_v1_router.include_router(catalog_items.router)
api_v1_router.include_router(quotes.router)
api_v1_router.include_router(invoices.router)
api_v1_router.include_router(fiscal_vouchers.router)
api_v1_router.include_router(assistant.router)

# Exportación
__all__ = ["api_v1_router"]
