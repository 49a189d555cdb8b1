"""Read-only snapshots handed to document renderers (invoice slips, receipts)"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from uuid import UUID
from datetime import date
from decimal import Decimal

from schoolfees.models.enums import InvoiceStatus, PaymentMode


class PaymentSnapshot(BaseModel):
    payment_id: UUID
    invoice_id: UUID
    amount: Decimal
    payment_date: date
    payment_mode: PaymentMode
    reference_number: Optional[str] = None
    currency: str

    model_config = ConfigDict(frozen=True)


class InvoiceSnapshot(BaseModel):
    """Everything printed on an invoice slip, frozen at the moment it was taken"""
    school_name: str
    currency: str
    invoice_id: UUID
    billing_period: str
    due_date: date
    status: InvoiceStatus
    student_id: UUID
    student_name: str
    admission_no: Optional[str] = None
    father_name: Optional[str] = None
    class_name: Optional[str] = None
    base_amount: Decimal
    arrears: Decimal
    late_fine: Decimal
    discount: Decimal
    total_due: Decimal
    amount_paid: Decimal
    balance: Decimal
    payments: List[PaymentSnapshot]

    model_config = ConfigDict(frozen=True)
