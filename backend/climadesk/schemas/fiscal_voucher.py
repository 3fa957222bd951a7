"""
Schemas Pydantic para los comprobantes fiscales
Proyecto: ClimaDesk (Back-office de climatización)
"""

import datetime
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FiscalVoucherCreate(BaseModel):
    voucher_number: str = Field(default="", max_length=50, description="Ej. B0100000001")
    voucher_type: Optional[str] = Field(None, max_length=20, description="Ej. B01")


class FiscalVoucherRead(BaseModel):
    id: uuid.UUID
    voucher_number: str
    voucher_type: Optional[str] = None
    is_used: bool
    used_at: Optional[datetime.datetime] = None
    used_in_invoice_id: Optional[uuid.UUID] = None
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


__all__ = ["FiscalVoucherCreate", "FiscalVoucherRead"]
