"""
Schemas Pydantic del proyecto ClimaDesk

Este módulo contiene todos los schemas Pydantic usados para la validación
y serialización de las peticiones y respuestas de la API.
"""

# Import de los schemas para que estén disponibles directamente
# ej: from climadesk.schemas import ClientRead, InvoiceRead, etc.

from climadesk.schemas.client import ClientCreate, ClientRead, ClientSummary, ClientType, ClientUpdate
from climadesk.schemas.catalog_item import (
    CatalogItemCreate,
    CatalogItemRead,
    CatalogItemType,
    CatalogItemUpdate,
)
from climadesk.schemas.line import LineInput, LineRead
from climadesk.schemas.quote import QuoteCreate, QuoteRead, QuoteUpdate
from climadesk.schemas.invoice import (
    InvoiceCreate,
    InvoicePaymentCreate,
    InvoicePaymentRead,
    InvoiceRead,
    InvoiceUpdate,
)
from climadesk.schemas.fiscal_voucher import FiscalVoucherCreate, FiscalVoucherRead
from climadesk.schemas.user import UserLogin, UserResponse
from climadesk.schemas.token import TokenPayload, TokenRefresh, TokenResponse
from climadesk.schemas.assistant import (
    AssistantInterpretRequest,
    AssistantInterpretResponse,
    ProviderInterpretation,
    QuoteCatalogPrefillLine,
    QuotePrefill,
)

__all__ = [
    # Client
    "ClientCreate",
    "ClientRead",
    "ClientSummary",
    "ClientType",
    "ClientUpdate",
    # Catalog
    "CatalogItemCreate",
    "CatalogItemRead",
    "CatalogItemType",
    "CatalogItemUpdate",
    # Lines
    "LineInput",
    "LineRead",
    # Quote
    "QuoteCreate",
    "QuoteRead",
    "QuoteUpdate",
    # Invoice
    "InvoiceCreate",
    "InvoicePaymentCreate",
    "InvoicePaymentRead",
    "InvoiceRead",
    "InvoiceUpdate",
    # Fiscal voucher
    "FiscalVoucherCreate",
    "FiscalVoucherRead",
    # Auth
    "UserLogin",
    "UserResponse",
    "TokenPayload",
    "TokenRefresh",
    "TokenResponse",
    # Assistant
    "AssistantInterpretRequest",
    "AssistantInterpretResponse",
    "ProviderInterpretation",
    "QuoteCatalogPrefillLine",
    "QuotePrefill",
]
