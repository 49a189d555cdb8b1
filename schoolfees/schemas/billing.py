from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime
from decimal import Decimal

from schoolfees.models.enums import AssignmentStatus, FeeCategory, FeeFrequency


class FeeStructureBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    amount: Decimal
    frequency: FeeFrequency = FeeFrequency.MONTHLY
    applicable_classes: List[UUID] = Field(default_factory=list)
    category: FeeCategory = FeeCategory.NORMAL
    description: Optional[str] = None


class FeeStructureCreate(FeeStructureBase):
    pass


class FeeStructureUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[Decimal] = None
    frequency: Optional[FeeFrequency] = None
    applicable_classes: Optional[List[UUID]] = None
    category: Optional[FeeCategory] = None
    description: Optional[str] = None


class FeeStructureResponse(FeeStructureBase):
    id: UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StudentFeeAssign(BaseModel):
    """Percent and fixed discounts are mutually exclusive; final amount is computed server-side."""
    student_id: UUID
    fee_structure_id: UUID
    assigned_amount: Optional[Decimal] = None  # defaults to the catalog amount
    discount_percent: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    discount_reason: Optional[str] = None


class StudentFeeUpdate(BaseModel):
    assigned_amount: Optional[Decimal] = None
    discount_percent: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    discount_reason: Optional[str] = None
    status: Optional[AssignmentStatus] = None


class StudentFeeResponse(BaseModel):
    id: UUID
    student_id: UUID
    fee_structure_id: UUID
    assigned_amount: Decimal
    discount_percent: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    discount_reason: Optional[str] = None
    final_amount: Decimal
    status: AssignmentStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
