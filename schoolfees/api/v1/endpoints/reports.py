from typing import Any, List
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from schoolfees.api import deps
from schoolfees.services.report_service import ReportService
from schoolfees.schemas.reports import (
    CollectionSummary,
    DefaulterRow,
    MonthlyCollectionRow,
    StudentLedger,
)
from schoolfees.schemas.responses import SuccessResponse

router = APIRouter()


@router.get("/defaulters", response_model=SuccessResponse[List[DefaulterRow]])
async def list_defaulters(
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Past-due invoices with money owed, largest balance first.
    """
    rows = await ReportService.defaulters(db)
    return SuccessResponse(data=rows)


@router.get("/monthly", response_model=SuccessResponse[List[MonthlyCollectionRow]])
async def monthly_report(
    year: int = Query(..., ge=2000, le=2100),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Due vs collected for each month of the year.
    """
    rows = await ReportService.monthly_report(db, year)
    return SuccessResponse(data=rows)


@router.get("/monthly.csv")
async def monthly_report_csv(
    year: int = Query(..., ge=2000, le=2100),
    db: AsyncSession = Depends(deps.get_db),
) -> Response:
    content = await ReportService.monthly_report_csv(db, year)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="fee-collection-{year}.csv"'},
    )


@router.get("/summary", response_model=SuccessResponse[CollectionSummary])
async def collection_summary(
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    summary = await ReportService.collection_summary(db)
    return SuccessResponse(data=summary)


@router.get("/ledger/{student_id}", response_model=SuccessResponse[StudentLedger])
@deps.self_service
async def student_ledger(
    student_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    All invoices and payments of one student with the outstanding balance.
    Students may read their own ledger.
    """
    ledger = await ReportService.student_ledger(db, student_id)
    return SuccessResponse(data=ledger)
