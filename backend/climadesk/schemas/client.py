"""
Schemas Pydantic para la entidad Client
Proyecto: ClimaDesk (Back-office de climatización)
"""
# Las reglas de obligatoriedad se validan en ClientService para devolver
# todos los mensajes en una sola respuesta.

import datetime
import re
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field, field_validator


class ClientType(str, Enum):
    """Tipo de cliente."""
    INDIVIDUAL = "Individual"
    COMPANY = "Company"


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normaliza el teléfono: quita espacios en los extremos y colapsa los
    espacios internos.

    Raises:
        ValueError: si contiene caracteres distintos de dígitos, +, -, (, ) o espacios
    """
    if phone is None:
        return None
    normalized = " ".join(phone.split())
    if normalized and not re.match(r"^\+?[\d\s\-()]+$", normalized):
        raise ValueError("Número de teléfono no válido")
    return normalized


def empty_to_none(value):
    """Convierte cadenas vacías en None."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ClientBase(BaseModel):
    """Campos comunes de creación y actualización."""

    client_type: str = Field(default=ClientType.INDIVIDUAL.value, description="'Individual' o 'Company'")
    first_name: str = Field(default="", max_length=200)
    last_name: Optional[str] = Field(None, max_length=200)
    company_name: Optional[str] = Field(None, max_length=300)
    document_number: Optional[str] = Field(None, max_length=100, description="Cédula o RNC")
    phone: str = Field(default="", max_length=50)
    secondary_phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, max_length=500)
    sector: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = None
    preferred_payment_method: Optional[str] = Field(None, max_length=100)
    is_active: bool = True

    _normalize_phone = field_validator("phone", "secondary_phone", mode="before")(normalize_phone)

    _empty_optional = field_validator(
        "email", "last_name", "company_name", "document_number", "address", "sector", "city",
        mode="before",
    )(empty_to_none)


class ClientCreate(ClientBase):
    """Creación de cliente."""
    pass


class ClientUpdate(ClientBase):
    """Actualización completa (PUT) de cliente."""
    pass


class ClientRead(BaseModel):
    """Cliente devuelto por la API."""

    id: uuid.UUID
    client_type: str
    first_name: str
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    document_number: Optional[str] = None
    phone: str
    secondary_phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    sector: Optional[str] = None
    city: Optional[str] = None
    notes: Optional[str] = None
    preferred_payment_method: Optional[str] = None
    is_active: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime

    @computed_field
    @property
    def display_name(self) -> str:
        """Razón social para empresas, nombre completo para personas."""
        if self.client_type == ClientType.COMPANY.value and self.company_name:
            return self.company_name
        return f"{self.first_name} {self.last_name or ''}".strip()

    model_config = ConfigDict(from_attributes=True)


class ClientSummary(BaseModel):
    """Versión reducida embebida en cotizaciones y facturas."""

    id: uuid.UUID
    client_type: str
    first_name: str
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    phone: str

    model_config = ConfigDict(from_attributes=True)


__all__ = [
    "ClientType",
    "ClientBase",
    "ClientCreate",
    "ClientUpdate",
    "ClientRead",
    "ClientSummary",
]
