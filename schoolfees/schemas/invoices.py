from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator
from uuid import UUID
from datetime import date, datetime
from decimal import Decimal

from schoolfees.models.enums import InvoiceStatus, PaymentMode
from schoolfees.utils.periods import parse_period


class StudentSelector(BaseModel):
    """Which students a generation run covers. Empty selects every active student."""
    student_ids: List[UUID] = Field(default_factory=list)
    class_id: Optional[UUID] = None


class InvoiceGenerateRequest(BaseModel):
    period: str = Field(..., description="Billing period, YYYY-MM")
    students: StudentSelector = Field(default_factory=StudentSelector)
    as_of_date: Optional[date] = None

    @field_validator("period")
    @classmethod
    def check_period(cls, v: str) -> str:
        parse_period(v)
        return v


class SkippedStudent(BaseModel):
    student_id: UUID
    reason: str


class GenerationResult(BaseModel):
    period: str
    created: List[UUID] = Field(default_factory=list)
    skipped: List[SkippedStudent] = Field(default_factory=list)


class InvoiceResponse(BaseModel):
    id: UUID
    student_id: UUID
    billing_period: str
    base_amount: Decimal
    arrears: Decimal
    late_fine: Decimal
    discount: Decimal
    total_due: Decimal
    amount_paid: Decimal
    balance: Decimal
    due_date: date
    status: InvoiceStatus
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvoicePaymentLine(BaseModel):
    id: UUID
    amount: Decimal
    payment_date: date
    payment_mode: PaymentMode
    reference_number: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class InvoiceDetailResponse(InvoiceResponse):
    payments: List[InvoicePaymentLine] = Field(default_factory=list)


class OverdueSweepResult(BaseModel):
    checked: int
    updated: int
