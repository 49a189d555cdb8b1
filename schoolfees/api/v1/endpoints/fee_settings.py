from typing import Any
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.api import deps
from schoolfees.services.fee_settings_service import FeeSettingsService
from schoolfees.services.late_fine import explain_late_fine
from schoolfees.schemas.fee_settings import (
    DueDaySetting,
    LateFineBreakdown,
    LateFineConfig,
    LateFineConfigUpdate,
)
from schoolfees.schemas.responses import SuccessResponse

router = APIRouter()


@router.get("/late-fine", response_model=SuccessResponse[LateFineConfig])
async def get_late_fine_config(
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    config = await FeeSettingsService.get_late_fine_config(db)
    return SuccessResponse(data=config)


@router.put("/late-fine", response_model=SuccessResponse[LateFineConfig])
async def update_late_fine_config(
    config_in: LateFineConfigUpdate,
    principal: deps.Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Replace the late fine policy.

    Applies to invoices generated from now on; existing invoices keep the
    fine they were created with.
    """
    config = await FeeSettingsService.update_late_fine_config(
        db,
        config_in.model_dump(),
        updated_by=principal.id,
    )
    return SuccessResponse(data=config, message="Late fine settings saved")


@router.get("/late-fine/preview", response_model=SuccessResponse[LateFineBreakdown])
async def preview_late_fine(
    days_late: int = Query(15, ge=0, le=3650),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Worked example of the current policy for a bill paid ``days_late`` days late.
    """
    config = await FeeSettingsService.get_late_fine_config(db)
    return SuccessResponse(data=explain_late_fine(config, days_late))


@router.get("/due-day", response_model=SuccessResponse[DueDaySetting])
async def get_due_day(
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    day = await FeeSettingsService.get_due_day(db)
    return SuccessResponse(data=DueDaySetting(day=day))


@router.put("/due-day", response_model=SuccessResponse[DueDaySetting])
async def update_due_day(
    setting_in: DueDaySetting,
    principal: deps.Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    day = await FeeSettingsService.update_due_day(db, setting_in.day, updated_by=principal.id)
    return SuccessResponse(data=DueDaySetting(day=day), message="Due day saved")
