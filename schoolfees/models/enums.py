"""Centralized Enum Definitions"""

import enum


# Identity (claims issued by the identity service)
class UserRole(str, enum.Enum):
    """User roles for RBAC"""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


# Fee catalog
class FeeFrequency(str, enum.Enum):
    """How often a fee head is billed"""
    ONE_TIME = "one-time"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class FeeCategory(str, enum.Enum):
    """Fee head category labels"""
    NORMAL = "Normal"
    STAFF = "Staff"
    SIBLING = "Sibling"
    SCHOLARSHIP = "Scholarship"


class AssignmentStatus(str, enum.Enum):
    """Student fee assignment status"""
    ACTIVE = "active"
    INACTIVE = "inactive"


# Invoices & payments
class InvoiceStatus(str, enum.Enum):
    """Derived invoice status"""
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


UNSETTLED_STATUSES = (InvoiceStatus.PENDING, InvoiceStatus.PARTIAL, InvoiceStatus.OVERDUE)


class PaymentMode(str, enum.Enum):
    """Accepted payment channels"""
    CASH = "Cash"
    BANK = "Bank"
    EASYPAISA = "EasyPaisa"
    JAZZCASH = "JazzCash"
    CARD = "Card"
    CHEQUE = "Cheque"


# Settings keys stored in fee_settings
class FeeSettingKey(str, enum.Enum):
    LATE_FINE_CONFIG = "late_fine_config"
    DUE_DAY = "due_day"
