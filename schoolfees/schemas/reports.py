from typing import List, Optional
from pydantic import BaseModel
from uuid import UUID
from datetime import date
from decimal import Decimal

from schoolfees.models.enums import InvoiceStatus
from schoolfees.schemas.invoices import InvoiceResponse
from schoolfees.schemas.payments import PaymentResponse


class DefaulterRow(BaseModel):
    """A past-due invoice with money still owed, with the student's display fields"""
    invoice_id: UUID
    student_id: UUID
    admission_no: Optional[str] = None
    full_name: Optional[str] = None
    father_name: Optional[str] = None
    class_name: Optional[str] = None
    billing_period: str
    due_date: date
    total_due: Decimal
    amount_paid: Decimal
    balance: Decimal
    status: InvoiceStatus


class MonthlyCollectionRow(BaseModel):
    """
    due is matched on billing period, collected on payment date.
    The two keys differ on purpose; see ReportService.monthly_report.
    """
    month: str
    period: str
    due: Decimal
    collected: Decimal
    rate: Decimal


class StudentLedger(BaseModel):
    student_id: UUID
    invoices: List[InvoiceResponse]
    payments: List[PaymentResponse]
    total_charged: Decimal
    total_paid: Decimal
    balance: Decimal


class CollectionSummary(BaseModel):
    period: str
    total_due_this_month: Decimal
    total_collected_this_month: Decimal
    pending_dues: Decimal
    overdue_count: int
    collection_rate: int
