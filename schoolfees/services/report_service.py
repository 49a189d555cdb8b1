"""Report Service - read-only collection and defaulter views"""

import calendar
import csv
import io
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.exceptions import NotFound
from schoolfees.core.logging import get_logger
from schoolfees.models.billing import FeeInvoice, FeePayment
from schoolfees.models.enums import UNSETTLED_STATUSES, InvoiceStatus
from schoolfees.models.student import Student
from schoolfees.schemas.invoices import InvoiceResponse
from schoolfees.schemas.payments import PaymentResponse
from schoolfees.schemas.reports import (
    CollectionSummary,
    DefaulterRow,
    MonthlyCollectionRow,
    StudentLedger,
)
from schoolfees.services.billing_rules import own_charges
from schoolfees.utils.money import ZERO, round_money, sum_money, to_decimal
from schoolfees.utils.periods import format_period, period_of
from schoolfees.utils.time import get_utc_today

logger = get_logger(__name__)

RATE_PLACES = Decimal("0.0001")

MONTHLY_CSV_HEADER = ("month", "period", "due", "collected", "rate")


def collection_rate(collected, due) -> Decimal:
    """collected / due as a fraction; 0 when nothing was due."""
    due = to_decimal(due)
    if due <= 0:
        return Decimal("0")
    return (to_decimal(collected) / due).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def is_defaulting(invoice, today: date) -> bool:
    return (
        invoice.status in UNSETTLED_STATUSES
        and round_money(invoice.total_due - invoice.amount_paid) > 0
        and invoice.due_date < today
    )


def build_monthly_rows(
    year: int,
    invoice_totals: Iterable[Tuple[str, Decimal]],
    payment_amounts: Iterable[Tuple[date, Decimal]],
) -> List[MonthlyCollectionRow]:
    """
    Twelve rows for ``year``.

    invoice_totals are (billing_period, total_due) pairs and payment_amounts
    are (payment_date, amount) pairs. Money due is keyed by billing period,
    money collected by the day it arrived, so a January invoice paid in
    February counts as due in January and collected in February.
    """
    due = {format_period(year, m): ZERO for m in range(1, 13)}
    collected = dict(due)
    for period, total in invoice_totals:
        if period in due:
            due[period] += to_decimal(total)
    for paid_on, amount in payment_amounts:
        period = period_of(paid_on)
        if period in collected:
            collected[period] += to_decimal(amount)

    rows = []
    for month in range(1, 13):
        period = format_period(year, month)
        rows.append(
            MonthlyCollectionRow(
                month=calendar.month_abbr[month],
                period=period,
                due=round_money(due[period]),
                collected=round_money(collected[period]),
                rate=collection_rate(collected[period], due[period]),
            )
        )
    return rows


def monthly_rows_to_csv(rows: Iterable[MonthlyCollectionRow]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(MONTHLY_CSV_HEADER)
    for row in rows:
        writer.writerow([row.month, row.period, str(row.due), str(row.collected), str(row.rate)])
    return buffer.getvalue()


class ReportService:
    """Plain reads; no locks are taken, so figures may trail in-flight payments"""

    @staticmethod
    async def defaulters(db: AsyncSession, today: Optional[date] = None) -> List[DefaulterRow]:
        """
        Past-due invoices with a positive balance, largest balance first.
        Ties go to the invoice that fell due earliest.
        """
        today = today or get_utc_today()
        result = await db.execute(
            select(FeeInvoice, Student)
            .join(Student, Student.id == FeeInvoice.student_id)
            .where(
                FeeInvoice.status.in_(UNSETTLED_STATUSES),
                FeeInvoice.due_date < today,
            )
        )
        rows = []
        for invoice, student in result.all():
            if not is_defaulting(invoice, today):
                continue
            rows.append(
                DefaulterRow(
                    invoice_id=invoice.id,
                    student_id=student.id,
                    admission_no=student.admission_no,
                    full_name=student.full_name,
                    father_name=student.father_name,
                    class_name=student.class_name,
                    billing_period=invoice.billing_period,
                    due_date=invoice.due_date,
                    total_due=round_money(invoice.total_due),
                    amount_paid=round_money(invoice.amount_paid),
                    balance=round_money(invoice.total_due - invoice.amount_paid),
                    status=invoice.status,
                )
            )
        rows.sort(key=lambda r: (-r.balance, r.due_date))
        return rows

    @staticmethod
    async def monthly_report(db: AsyncSession, year: int) -> List[MonthlyCollectionRow]:
        invoices = await db.execute(
            select(FeeInvoice.billing_period, FeeInvoice.total_due).where(
                FeeInvoice.billing_period.like(f"{year:04d}-%")
            )
        )
        payments = await db.execute(
            select(FeePayment.payment_date, FeePayment.amount).where(
                FeePayment.payment_date >= date(year, 1, 1),
                FeePayment.payment_date <= date(year, 12, 31),
            )
        )
        return build_monthly_rows(
            year,
            [(row.billing_period, row.total_due) for row in invoices.all()],
            [(row.payment_date, row.amount) for row in payments.all()],
        )

    @staticmethod
    async def monthly_report_csv(db: AsyncSession, year: int) -> str:
        rows = await ReportService.monthly_report(db, year)
        return monthly_rows_to_csv(rows)

    @staticmethod
    async def student_ledger(db: AsyncSession, student_id: UUID) -> StudentLedger:
        """
        Every invoice and payment of one student.

        balance = own charges of all invoices - all payments. Carried arrears
        are left out of the charges because they repeat older invoices.
        """
        student = await db.get(Student, student_id)
        if student is None:
            raise NotFound(f"Student {student_id} not found")

        invoices = (
            await db.execute(
                select(FeeInvoice)
                .where(FeeInvoice.student_id == student_id)
                .order_by(FeeInvoice.billing_period.asc())
            )
        ).scalars().all()
        payments = (
            await db.execute(
                select(FeePayment)
                .where(FeePayment.student_id == student_id)
                .order_by(FeePayment.payment_date.asc(), FeePayment.created_at.asc())
            )
        ).scalars().all()

        total_charged = sum_money(own_charges(i.total_due, i.arrears) for i in invoices)
        total_paid = sum_money(p.amount for p in payments)
        return StudentLedger(
            student_id=student_id,
            invoices=[InvoiceResponse.model_validate(i) for i in invoices],
            payments=[PaymentResponse.model_validate(p) for p in payments],
            total_charged=total_charged,
            total_paid=total_paid,
            balance=round_money(total_charged - total_paid),
        )

    @staticmethod
    async def collection_summary(db: AsyncSession, today: Optional[date] = None) -> CollectionSummary:
        """Dashboard figures for the current month."""
        today = today or get_utc_today()
        period = period_of(today)

        invoices = (
            await db.execute(select(FeeInvoice).where(FeeInvoice.billing_period >= period))
        ).scalars().all()
        collected = sum_money(
            (
                await db.execute(
                    select(FeePayment.amount).where(FeePayment.payment_date >= today.replace(day=1))
                )
            ).scalars().all()
        )

        total_due = sum_money(i.total_due for i in invoices)
        pending = sum_money(
            i.total_due - i.amount_paid for i in invoices if i.status != InvoiceStatus.PAID
        )
        overdue = sum(1 for i in invoices if is_defaulting(i, today))
        rate = collection_rate(collected, total_due) * 100
        return CollectionSummary(
            period=period,
            total_due_this_month=total_due,
            total_collected_this_month=collected,
            pending_dues=pending,
            overdue_count=overdue,
            collection_rate=int(rate.quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
        )
