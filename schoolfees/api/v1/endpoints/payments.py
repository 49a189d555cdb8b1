from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from schoolfees.api import deps
from schoolfees.services.document_service import DocumentService
from schoolfees.services.payment_service import PaymentService
from schoolfees.schemas.documents import PaymentSnapshot
from schoolfees.schemas.invoices import InvoiceResponse
from schoolfees.schemas.payments import PaymentCreate, PaymentReceipt, PaymentResponse
from schoolfees.schemas.responses import SuccessResponse, PaginatedResponse

router = APIRouter()


@router.get("", response_model=PaginatedResponse[PaymentResponse])
async def list_payments(
    student_id: Optional[UUID] = None,
    invoice_id: Optional[UUID] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Payment history, newest first.
    """
    payments, total = await PaymentService.list_payments(
        db, student_id=student_id, invoice_id=invoice_id, page=page, page_size=limit
    )
    return PaginatedResponse.page_of(
        [PaymentResponse.model_validate(p) for p in payments], page, limit, total
    )


@router.post("", response_model=SuccessResponse[PaymentReceipt])
async def record_payment(
    payment_in: PaymentCreate,
    principal: deps.Principal = Depends(deps.get_current_principal),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Receive money against an invoice.

    Rejected with reason "non_positive_amount" or "overpayment" before
    anything is stored.
    """
    payment, invoice = await PaymentService.record_payment(
        db,
        payment_in.invoice_id,
        payment_in.amount,
        payment_date=payment_in.payment_date,
        payment_mode=payment_in.payment_mode,
        reference_number=payment_in.reference_number,
        received_by=principal.id,
        notes=payment_in.notes,
    )
    return SuccessResponse(
        data=PaymentReceipt(
            payment=PaymentResponse.model_validate(payment),
            invoice=InvoiceResponse.model_validate(invoice),
        ),
        message="Payment recorded successfully",
    )


@router.get("/{payment_id}/snapshot", response_model=SuccessResponse[PaymentSnapshot])
async def get_payment_snapshot(
    payment_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Frozen view of a payment for printing a receipt.
    """
    snapshot = await DocumentService.payment_snapshot(db, payment_id)
    return SuccessResponse(data=snapshot)
