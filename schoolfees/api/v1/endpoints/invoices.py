from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from schoolfees.api import deps
from schoolfees.models.enums import InvoiceStatus
from schoolfees.services.document_service import DocumentService
from schoolfees.services.invoice_service import InvoiceService
from schoolfees.services.payment_service import PaymentService
from schoolfees.schemas.documents import InvoiceSnapshot
from schoolfees.schemas.invoices import (
    GenerationResult,
    InvoiceDetailResponse,
    InvoiceGenerateRequest,
    InvoiceResponse,
    OverdueSweepResult,
)
from schoolfees.schemas.responses import SuccessResponse, PaginatedResponse

router = APIRouter()


@router.post("/generate", response_model=SuccessResponse[GenerationResult])
async def generate_invoices(
    request_in: InvoiceGenerateRequest,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Generate invoices for a billing period.

    Safe to repeat: students already billed for the period come back under
    `skipped` with reason "duplicate".
    """
    result = await InvoiceService.generate(
        db,
        request_in.period,
        selector=request_in.students,
        as_of_date=request_in.as_of_date,
    )
    return SuccessResponse(
        data=result,
        message=f"Generated {len(result.created)} invoices, skipped {len(result.skipped)}",
    )


@router.get("", response_model=PaginatedResponse[InvoiceResponse])
async def list_invoices(
    student_id: Optional[UUID] = None,
    period: Optional[str] = None,
    status: Optional[InvoiceStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    invoices, total = await InvoiceService.list_invoices(
        db, student_id=student_id, period=period, status=status, page=page, page_size=limit
    )
    return PaginatedResponse.page_of(
        [InvoiceResponse.model_validate(i) for i in invoices], page, limit, total
    )


@router.get("/pending", response_model=SuccessResponse[List[InvoiceResponse]])
async def list_pending_invoices(
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Invoices still awaiting money, earliest due date first.
    """
    invoices = await InvoiceService.list_pending_invoices(db)
    return SuccessResponse(data=[InvoiceResponse.model_validate(i) for i in invoices])


@router.post("/refresh-overdue", response_model=SuccessResponse[OverdueSweepResult])
async def refresh_overdue(
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Move unpaid invoices past their due date to overdue.
    """
    checked, updated = await PaymentService.refresh_overdue(db)
    return SuccessResponse(
        data=OverdueSweepResult(checked=checked, updated=updated),
        message=f"{updated} invoices updated",
    )


@router.get("/{invoice_id}", response_model=SuccessResponse[InvoiceDetailResponse])
async def get_invoice(
    invoice_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    invoice = await InvoiceService.get_invoice(db, invoice_id, with_payments=True)
    return SuccessResponse(data=InvoiceDetailResponse.model_validate(invoice))


@router.get("/{invoice_id}/snapshot", response_model=SuccessResponse[InvoiceSnapshot])
async def get_invoice_snapshot(
    invoice_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Frozen view of an invoice for printing an invoice slip.
    """
    snapshot = await DocumentService.invoice_snapshot(db, invoice_id)
    return SuccessResponse(data=snapshot)
