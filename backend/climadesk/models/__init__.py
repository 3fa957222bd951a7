"""
Modelos de base de datos SQLAlchemy
Proyecto: ClimaDesk (Back-office de climatización)

Import centralizado de todos los modelos para create_all y uso general.

Modelos:
- Client: ficha de clientes
- CatalogItem: catálogo de servicios y productos
- Quote / QuoteLine: cotizaciones
- Invoice / InvoiceLine / InvoicePayment: facturación y cobros
- FiscalVoucher: comprobantes fiscales (NCF)
- User: usuarios del back-office
"""

# SQLAlchemy 2.0 Base declarativa
# Importada aquí para que esté disponible en todos los modelos
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Clase base de todos los modelos SQLAlchemy."""
    pass


from climadesk.models.client import Client
from climadesk.models.catalog_item import CatalogItem
from climadesk.models.quote import Quote, QuoteLine
from climadesk.models.invoice import Invoice, InvoiceLine, InvoicePayment, InvoiceStatus
from climadesk.models.fiscal_voucher import FiscalVoucher
from climadesk.models.user import User, UserRole

__all__ = [
    "Base",
    "Client",
    "CatalogItem",
    "Quote",
    "QuoteLine",
    "Invoice",
    "InvoiceLine",
    "InvoicePayment",
    "InvoiceStatus",
    "FiscalVoucher",
    "User",
    "UserRole",
]
