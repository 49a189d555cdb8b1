"""Fee Billing Models: catalog, per-student assignments, invoices, payments, settings"""

from decimal import Decimal

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship

from schoolfees.models.base import BaseModel, enum_column_type
from schoolfees.models.enums import (
    AssignmentStatus,
    FeeCategory,
    FeeFrequency,
    InvoiceStatus,
    PaymentMode,
)

MONEY = Numeric(10, 2)


class FeeStructure(BaseModel):
    """
    A priced fee head (tuition, transport, lab...).
    An empty applicable_classes list means the fee applies to every class.
    """
    __tablename__ = "fee_structures"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_fee_structures_amount_non_negative"),
    )

    name = Column(String(255), nullable=False)
    amount = Column(MONEY, nullable=False)
    frequency = Column(
        enum_column_type(FeeFrequency, "fee_frequency"),
        default=FeeFrequency.MONTHLY,
        nullable=False,
        index=True,
    )
    applicable_classes = Column(JSON, default=list, nullable=False)
    category = Column(
        enum_column_type(FeeCategory, "fee_category"),
        default=FeeCategory.NORMAL,
        nullable=False,
    )
    description = Column(Text, nullable=True)

    # Relationships
    assignments = relationship(
        "StudentFeeAssignment",
        back_populates="fee_structure",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<FeeStructure {self.name} {self.amount} ({self.frequency})>"


class StudentFeeAssignment(BaseModel):
    """
    Per-student override of a catalog fee: custom amount and/or discount.
    final_amount is always assigned_amount minus the discount and never negative.
    """
    __tablename__ = "student_fees"
    __table_args__ = (
        UniqueConstraint("student_id", "fee_structure_id", name="uq_student_fees_student_structure"),
        CheckConstraint("final_amount >= 0", name="ck_student_fees_final_non_negative"),
    )

    student_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    fee_structure_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("fee_structures.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assigned_amount = Column(MONEY, nullable=False)
    discount_percent = Column(Numeric(5, 2), nullable=True)
    discount_amount = Column(MONEY, nullable=True)
    discount_reason = Column(Text, nullable=True)
    final_amount = Column(MONEY, nullable=False)
    status = Column(
        enum_column_type(AssignmentStatus, "student_fee_status"),
        default=AssignmentStatus.ACTIVE,
        nullable=False,
    )

    # Relationships
    student = relationship("Student", back_populates="fee_assignments")
    fee_structure = relationship("FeeStructure", back_populates="assignments")

    @property
    def discount_value(self) -> Decimal:
        return Decimal(self.assigned_amount) - Decimal(self.final_amount)

    def __repr__(self) -> str:
        return f"<StudentFeeAssignment {self.student_id} -> {self.final_amount}>"


class FeeInvoice(BaseModel):
    """
    One bill per student per billing period ("YYYY-MM").

    total_due is fixed at creation; only amount_paid and status change
    afterwards, and only through the payment ledger or the overdue sweep.
    """
    __tablename__ = "fee_invoices"
    __table_args__ = (
        UniqueConstraint("student_id", "billing_period", name="uq_fee_invoices_student_period"),
        CheckConstraint("amount_paid >= 0", name="ck_fee_invoices_paid_non_negative"),
        CheckConstraint("amount_paid <= total_due", name="ck_fee_invoices_no_overpayment"),
    )

    student_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("students.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    billing_period = Column(String(7), nullable=False, index=True)
    base_amount = Column(MONEY, nullable=False)
    arrears = Column(MONEY, default=Decimal("0"), nullable=False)
    late_fine = Column(MONEY, default=Decimal("0"), nullable=False)
    discount = Column(MONEY, default=Decimal("0"), nullable=False)
    total_due = Column(MONEY, nullable=False)
    amount_paid = Column(MONEY, default=Decimal("0"), nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    status = Column(
        enum_column_type(InvoiceStatus, "invoice_status"),
        default=InvoiceStatus.PENDING,
        nullable=False,
        index=True,
    )
    notes = Column(Text, nullable=True)

    # Relationships
    student = relationship("Student", back_populates="invoices")
    payments = relationship(
        "FeePayment",
        back_populates="invoice",
        order_by="FeePayment.payment_date",
    )

    @hybrid_property
    def balance(self):
        return self.total_due - self.amount_paid

    def __repr__(self) -> str:
        return f"<FeeInvoice {self.student_id} {self.billing_period} {self.status}>"


class FeePayment(BaseModel):
    """Append-only payment entry; corrections are new rows, never edits"""
    __tablename__ = "fee_payments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_fee_payments_amount_positive"),
    )

    invoice_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("fee_invoices.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    student_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("students.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    amount = Column(MONEY, nullable=False)
    payment_date = Column(Date, nullable=False, index=True)
    payment_mode = Column(enum_column_type(PaymentMode, "payment_mode"), nullable=False)
    reference_number = Column(String(100), nullable=True)
    received_by = Column(Uuid(as_uuid=True), nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    invoice = relationship("FeeInvoice", back_populates="payments")

    def __repr__(self) -> str:
        return f"<FeePayment {self.amount} on {self.payment_date} ({self.payment_mode})>"


class FeeSetting(BaseModel):
    """Key/value fee configuration (late fine policy, due day)"""
    __tablename__ = "fee_settings"

    setting_key = Column(String(100), nullable=False, unique=True, index=True)
    setting_value = Column(JSON, nullable=False)
    description = Column(Text, nullable=True)
    updated_by = Column(Uuid(as_uuid=True), nullable=True)

    def __repr__(self) -> str:
        return f"<FeeSetting {self.setting_key}>"
