"""Models Package - Export all models for easy imports"""

from schoolfees.models.base import BaseModel, StatusMixin
from schoolfees.models.enums import *
from schoolfees.models.student import Student
from schoolfees.models.billing import (
    FeeStructure,
    StudentFeeAssignment,
    FeeInvoice,
    FeePayment,
    FeeSetting,
)


__all__ = [
    # Base classes
    "BaseModel",
    "StatusMixin",

    # Students
    "Student",

    # Billing
    "FeeStructure",
    "StudentFeeAssignment",
    "FeeInvoice",
    "FeePayment",
    "FeeSetting",
]
