"""Integration tests: collection and defaulter reports against the in-memory database."""

import pytest
from datetime import date
from decimal import Decimal

from schoolfees.core.exceptions import NotFound
from schoolfees.services.invoice_service import InvoiceService
from schoolfees.services.payment_service import PaymentService
from schoolfees.services.report_service import ReportService
from uuid import uuid4

TODAY = date(2024, 3, 15)


@pytest.mark.asyncio
async def test_defaulters_sorted_by_balance_then_due_date(db, add_student, add_invoice):
    ali = await add_student(db, "Ali", father_name="Raza", class_name="Class 5")
    sara = await add_student(db, "Sara")
    omar = await add_student(db, "Omar")
    small = await add_invoice(db, ali.id, "2024-02", total_due="500", due_date=date(2024, 2, 10))
    big = await add_invoice(db, sara.id, "2024-02", total_due="3000", amount_paid="1000",
                            due_date=date(2024, 2, 10))
    tie_late = await add_invoice(db, omar.id, "2024-02", total_due="500", due_date=date(2024, 2, 10))
    tie_early = await add_invoice(db, omar.id, "2024-01", total_due="500", due_date=date(2024, 1, 10))
    # not defaulters: settled, or not yet due
    await add_invoice(db, sara.id, "2024-01", total_due="1000", amount_paid="1000")
    await add_invoice(db, ali.id, "2024-03", total_due="800", due_date=date(2024, 3, 20))
    await db.commit()

    rows = await ReportService.defaulters(db, today=TODAY)

    assert [r.invoice_id for r in rows][0] == big.id
    assert rows[0].balance == Decimal("2000.00")
    assert rows[1].invoice_id == tie_early.id
    assert {r.invoice_id for r in rows[2:]} == {small.id, tie_late.id}
    assert len(rows) == 4
    ali_row = next(r for r in rows if r.invoice_id == small.id)
    assert ali_row.full_name == "Ali"
    assert ali_row.father_name == "Raza"
    assert ali_row.class_name == "Class 5"


@pytest.mark.asyncio
async def test_no_defaulters_on_the_due_date(db, add_student, add_invoice):
    student = await add_student(db)
    await add_invoice(db, student.id, "2024-03", total_due="500", due_date=TODAY)
    await db.commit()

    assert await ReportService.defaulters(db, today=TODAY) == []


@pytest.mark.asyncio
async def test_monthly_report_mixes_period_and_payment_date(db, add_student, add_invoice):
    student = await add_student(db)
    jan = await add_invoice(db, student.id, "2024-01", total_due="1000")
    await db.commit()
    await PaymentService.record_payment(db, jan.id, Decimal("300"), payment_date=date(2024, 3, 2))
    await PaymentService.record_payment(db, jan.id, Decimal("200"), payment_date=date(2024, 3, 28))

    rows = await ReportService.monthly_report(db, 2024)

    assert rows[0].due == Decimal("1000.00")
    assert rows[0].collected == Decimal("0.00")
    assert rows[2].due == Decimal("0.00")
    assert rows[2].collected == Decimal("500.00")
    assert rows[2].rate == Decimal("0")

    csv_text = await ReportService.monthly_report_csv(db, 2024)
    assert "Mar,2024-03,0.00,500.00,0" in csv_text


@pytest.mark.asyncio
async def test_student_ledger_counts_carried_debt_once(db, add_student, add_invoice):
    student = await add_student(db)
    jan = await add_invoice(db, student.id, "2024-01", total_due="1000")
    feb = await add_invoice(db, student.id, "2024-02", total_due="2000", arrears="1000",
                            due_date=date(2024, 2, 10))
    await db.commit()
    await PaymentService.record_payment(db, feb.id, Decimal("1500"), payment_date=date(2024, 2, 5))

    ledger = await ReportService.student_ledger(db, student.id)

    assert [i.billing_period for i in ledger.invoices] == ["2024-01", "2024-02"]
    assert len(ledger.payments) == 1
    assert ledger.total_charged == Decimal("2000.00")
    assert ledger.total_paid == Decimal("1500.00")
    assert ledger.balance == Decimal("500.00")
    assert jan.id in {i.id for i in ledger.invoices}


@pytest.mark.asyncio
async def test_student_ledger_unknown_student(db):
    with pytest.raises(NotFound):
        await ReportService.student_ledger(db, uuid4())


@pytest.mark.asyncio
async def test_pending_invoices_earliest_due_first(db, add_student, add_invoice):
    student = await add_student(db)
    later = await add_invoice(db, student.id, "2024-02", total_due="500", due_date=date(2024, 2, 10))
    earlier = await add_invoice(db, student.id, "2024-01", total_due="500", due_date=date(2024, 1, 10))
    await add_invoice(db, student.id, "2023-12", total_due="500", amount_paid="500",
                      due_date=date(2023, 12, 10))
    await db.commit()

    pending = await InvoiceService.list_pending_invoices(db)

    assert [i.id for i in pending] == [earlier.id, later.id]


@pytest.mark.asyncio
async def test_collection_summary(db, add_student, add_invoice):
    student = await add_student(db)
    other = await add_student(db, "Other")
    march = await add_invoice(db, student.id, "2024-03", total_due="1000", due_date=date(2024, 3, 10))
    await add_invoice(db, other.id, "2024-03", total_due="1000", due_date=date(2024, 3, 20))
    await add_invoice(db, other.id, "2024-02", total_due="700", due_date=date(2024, 2, 10))
    await db.commit()
    await PaymentService.record_payment(db, march.id, Decimal("500"), payment_date=date(2024, 3, 5),
                                        today=date(2024, 3, 5))

    summary = await ReportService.collection_summary(db, today=TODAY)

    assert summary.period == "2024-03"
    assert summary.total_due_this_month == Decimal("2000.00")
    assert summary.total_collected_this_month == Decimal("500.00")
    assert summary.pending_dues == Decimal("1500.00")
    assert summary.overdue_count == 1
    assert summary.collection_rate == 25
