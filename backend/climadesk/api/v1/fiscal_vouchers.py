"""
Router FastAPI para los comprobantes fiscales (NCF)
Proyecto: ClimaDesk (Back-office de climatización)
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from climadesk.core.database import get_db
from climadesk.core.deps import AdminUser, CurrentUser
from climadesk.schemas.fiscal_voucher import FiscalVoucherCreate, FiscalVoucherRead
from climadesk.services.fiscal_voucher_service import FiscalVoucherService, get_fiscal_voucher_service

router = APIRouter(
    prefix="/fiscal-vouchers",
    tags=["Comprobantes fiscales"],
)


@router.get(
    "",
    name="ncf_lista",
    summary="Lista comprobantes fiscales",
    response_model=list[FiscalVoucherRead],
)
async def get_fiscal_vouchers(
    _: CurrentUser,
    only_available: bool = Query(False, description="Solo los no usados"),
    db: AsyncSession = Depends(get_db),
    service: FiscalVoucherService = Depends(get_fiscal_voucher_service),
) -> list[FiscalVoucherRead]:
    vouchers = await service.get_all(db, only_available=only_available)
    return [FiscalVoucherRead.model_validate(v) for v in vouchers]


@router.post(
    "",
    name="ncf_crear",
    summary="Registra un comprobante fiscal",
    response_model=FiscalVoucherRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_fiscal_voucher(
    data: FiscalVoucherCreate,
    _: AdminUser,
    db: AsyncSession = Depends(get_db),
    service: FiscalVoucherService = Depends(get_fiscal_voucher_service),
) -> FiscalVoucherRead:
    """
    Raises:
        BusinessValidationError: número vacío
        DuplicateError: el número ya existe
    """
    return FiscalVoucherRead.model_validate(await service.create(db, data))
