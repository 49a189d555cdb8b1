"""create students, fee catalog, invoices, payments and fee settings

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-18

One invoice per student per billing period is enforced by
uq_fee_invoices_student_period; generation relies on it for idempotency.
"""
import uuid
from datetime import datetime

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "a1b2c3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None

SEEDED_AT = datetime(2026, 10, 18)

ENUM_TYPES = {
    "fee_frequency": ("one-time", "monthly", "quarterly", "yearly"),
    "fee_category": ("Normal", "Staff", "Sibling", "Scholarship"),
    "student_fee_status": ("active", "inactive"),
    "invoice_status": ("pending", "partial", "paid", "overdue"),
    "payment_mode": ("Cash", "Bank", "EasyPaisa", "JazzCash", "Card", "Cheque"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUM_TYPES[name], name=name, create_type=False)


def _timestamps() -> list:
    return [
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    for name, values in ENUM_TYPES.items():
        labels = ", ".join(f"'{v}'" for v in values)
        op.execute(f"CREATE TYPE {name} AS ENUM ({labels})")

    op.create_table(
        "students",
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("admission_no", sa.String(50), nullable=True),
        sa.Column("father_name", sa.String(255), nullable=True),
        sa.Column("class_id", sa.UUID(), nullable=True),
        sa.Column("class_name", sa.String(100), nullable=True),
        sa.Column("fee_category", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("admission_no"),
    )
    op.create_index(op.f("ix_students_id"), "students", ["id"], unique=False)
    op.create_index(op.f("ix_students_class_id"), "students", ["class_id"], unique=False)
    op.create_index(op.f("ix_students_is_active"), "students", ["is_active"], unique=False)

    op.create_table(
        "fee_structures",
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("frequency", _enum("fee_frequency"), nullable=False),
        sa.Column("applicable_classes", sa.JSON(), nullable=False),
        sa.Column("category", _enum("fee_category"), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount >= 0", name="ck_fee_structures_amount_non_negative"),
    )
    op.create_index(op.f("ix_fee_structures_id"), "fee_structures", ["id"], unique=False)
    op.create_index(op.f("ix_fee_structures_frequency"), "fee_structures", ["frequency"], unique=False)

    op.create_table(
        "student_fees",
        sa.Column("student_id", sa.UUID(), nullable=False),
        sa.Column("fee_structure_id", sa.UUID(), nullable=False),
        sa.Column("assigned_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount_percent", sa.Numeric(5, 2), nullable=True),
        sa.Column("discount_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("discount_reason", sa.Text(), nullable=True),
        sa.Column("final_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", _enum("student_fee_status"), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["fee_structure_id"], ["fee_structures.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("student_id", "fee_structure_id", name="uq_student_fees_student_structure"),
        sa.CheckConstraint("final_amount >= 0", name="ck_student_fees_final_non_negative"),
    )
    op.create_index(op.f("ix_student_fees_id"), "student_fees", ["id"], unique=False)
    op.create_index(op.f("ix_student_fees_student_id"), "student_fees", ["student_id"], unique=False)
    op.create_index(op.f("ix_student_fees_fee_structure_id"), "student_fees", ["fee_structure_id"], unique=False)

    op.create_table(
        "fee_invoices",
        sa.Column("student_id", sa.UUID(), nullable=False),
        sa.Column("billing_period", sa.String(7), nullable=False),
        sa.Column("base_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("arrears", sa.Numeric(10, 2), nullable=False),
        sa.Column("late_fine", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_due", sa.Numeric(10, 2), nullable=False),
        sa.Column("amount_paid", sa.Numeric(10, 2), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", _enum("invoice_status"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("student_id", "billing_period", name="uq_fee_invoices_student_period"),
        sa.CheckConstraint("amount_paid >= 0", name="ck_fee_invoices_paid_non_negative"),
        sa.CheckConstraint("amount_paid <= total_due", name="ck_fee_invoices_no_overpayment"),
    )
    op.create_index(op.f("ix_fee_invoices_id"), "fee_invoices", ["id"], unique=False)
    op.create_index(op.f("ix_fee_invoices_student_id"), "fee_invoices", ["student_id"], unique=False)
    op.create_index(op.f("ix_fee_invoices_billing_period"), "fee_invoices", ["billing_period"], unique=False)
    op.create_index(op.f("ix_fee_invoices_due_date"), "fee_invoices", ["due_date"], unique=False)
    op.create_index(op.f("ix_fee_invoices_status"), "fee_invoices", ["status"], unique=False)

    op.create_table(
        "fee_payments",
        sa.Column("invoice_id", sa.UUID(), nullable=False),
        sa.Column("student_id", sa.UUID(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("payment_mode", _enum("payment_mode"), nullable=False),
        sa.Column("reference_number", sa.String(100), nullable=True),
        sa.Column("received_by", sa.UUID(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["invoice_id"], ["fee_invoices.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount > 0", name="ck_fee_payments_amount_positive"),
    )
    op.create_index(op.f("ix_fee_payments_id"), "fee_payments", ["id"], unique=False)
    op.create_index(op.f("ix_fee_payments_invoice_id"), "fee_payments", ["invoice_id"], unique=False)
    op.create_index(op.f("ix_fee_payments_student_id"), "fee_payments", ["student_id"], unique=False)
    op.create_index(op.f("ix_fee_payments_payment_date"), "fee_payments", ["payment_date"], unique=False)

    fee_settings = op.create_table(
        "fee_settings",
        sa.Column("setting_key", sa.String(100), nullable=False),
        sa.Column("setting_value", sa.JSON(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("updated_by", sa.UUID(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_fee_settings_id"), "fee_settings", ["id"], unique=False)
    op.create_index(op.f("ix_fee_settings_setting_key"), "fee_settings", ["setting_key"], unique=True)

    op.bulk_insert(
        fee_settings,
        [
            {
                "id": uuid.UUID("5b0d7f8e-2f43-4b7a-9a51-3f1c2d9e0a01"),
                "setting_key": "late_fine_config",
                "setting_value": {"enabled": True, "perDayAmount": 50, "maxCap": 500, "graceDays": 7},
                "description": "Late fine policy applied to newly generated invoices",
                "created_at": SEEDED_AT,
                "updated_at": SEEDED_AT,
            },
            {
                "id": uuid.UUID("5b0d7f8e-2f43-4b7a-9a51-3f1c2d9e0a02"),
                "setting_key": "due_day",
                "setting_value": {"day": 10},
                "description": "Day of the month invoices fall due",
                "created_at": SEEDED_AT,
                "updated_at": SEEDED_AT,
            },
        ],
    )


def downgrade() -> None:
    op.drop_table("fee_settings")
    op.drop_table("fee_payments")
    op.drop_table("fee_invoices")
    op.drop_table("student_fees")
    op.drop_table("fee_structures")
    op.drop_table("students")
    for name in reversed(list(ENUM_TYPES)):
        op.execute(f"DROP TYPE IF EXISTS {name}")
