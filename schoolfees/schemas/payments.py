from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import date, datetime
from decimal import Decimal

from schoolfees.models.enums import PaymentMode
from schoolfees.schemas.invoices import InvoiceResponse


class PaymentCreate(BaseModel):
    """Amount rules (positive, within balance) are checked by the ledger, not here."""
    invoice_id: UUID
    amount: Decimal
    payment_date: Optional[date] = None
    payment_mode: PaymentMode = PaymentMode.CASH
    reference_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    id: UUID
    invoice_id: UUID
    student_id: UUID
    amount: Decimal
    payment_date: date
    payment_mode: PaymentMode
    reference_number: Optional[str] = None
    received_by: Optional[UUID] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentReceipt(BaseModel):
    """What the cashier screen shows after a payment: the entry and the updated invoice"""
    payment: PaymentResponse
    invoice: InvoiceResponse
