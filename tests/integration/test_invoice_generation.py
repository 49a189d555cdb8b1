"""Integration tests: invoice generation against the in-memory database."""

import logging
import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4
from sqlalchemy import func, select

from schoolfees.core.exceptions import ValidationFailed
from schoolfees.models.billing import FeeInvoice
from schoolfees.models.enums import FeeFrequency, InvoiceStatus
from schoolfees.schemas.billing import StudentFeeAssign
from schoolfees.schemas.fee_settings import LateFineConfig
from schoolfees.schemas.invoices import StudentSelector
from schoolfees.services.fee_catalog_service import FeeCatalogService
from schoolfees.services.invoice_service import InvoiceService

CONFIG = LateFineConfig(enabled=True, per_day_amount=Decimal("50"), max_cap=Decimal("500"), grace_days=7)


async def _generate(db, period, selector=None, as_of=date(2024, 1, 1)):
    return await InvoiceService.generate(
        db, period, selector=selector, as_of_date=as_of, late_fine_config=CONFIG, due_day=10
    )


async def _invoice_for(db, student_id, period) -> FeeInvoice:
    result = await db.execute(
        select(FeeInvoice).where(FeeInvoice.student_id == student_id, FeeInvoice.billing_period == period)
    )
    return result.scalar_one()


async def _invoice_count(db) -> int:
    return await db.scalar(select(func.count()).select_from(FeeInvoice))


@pytest.mark.asyncio
async def test_generates_one_invoice_per_student_with_class_fees(db, add_student, add_structure):
    class_a = uuid4()
    in_class = await add_student(db, "In Class", class_id=class_a)
    other = await add_student(db, "Other Class", class_id=uuid4())
    await add_structure(db, "Tuition", "1000")
    await add_structure(db, "Transport", "500", applicable_classes=[class_a])
    await db.commit()

    result = await _generate(db, "2024-01")

    assert sorted(result.created) == sorted([
        (await _invoice_for(db, in_class.id, "2024-01")).id,
        (await _invoice_for(db, other.id, "2024-01")).id,
    ])
    assert result.skipped == []
    invoice = await _invoice_for(db, in_class.id, "2024-01")
    assert invoice.base_amount == Decimal("1500.00")
    assert invoice.total_due == Decimal("1500.00")
    assert invoice.due_date == date(2024, 1, 10)
    assert invoice.status == InvoiceStatus.PENDING
    assert (await _invoice_for(db, other.id, "2024-01")).total_due == Decimal("1000.00")


@pytest.mark.asyncio
async def test_rerun_creates_nothing_and_reports_duplicates(db, add_student, add_structure):
    first = await add_student(db, "First")
    second = await add_student(db, "Second")
    await add_structure(db)
    await db.commit()

    await _generate(db, "2024-01")
    again = await _generate(db, "2024-01")

    assert again.created == []
    assert {s.student_id for s in again.skipped} == {first.id, second.id}
    assert {s.reason for s in again.skipped} == {"duplicate"}
    assert await _invoice_count(db) == 2


@pytest.mark.asyncio
async def test_rerun_after_partial_success_fills_the_gap(db, add_student, add_structure):
    first = await add_student(db, "First")
    second = await add_student(db, "Second")
    await add_structure(db)
    await db.commit()

    await _generate(db, "2024-01", selector=StudentSelector(student_ids=[first.id]))
    result = await _generate(db, "2024-01")

    assert result.created == [(await _invoice_for(db, second.id, "2024-01")).id]
    assert [(s.student_id, s.reason) for s in result.skipped] == [(first.id, "duplicate")]
    assert await _invoice_count(db) == 2


@pytest.mark.asyncio
async def test_arrears_and_late_fine_from_unpaid_previous_invoice(db, add_student, add_structure):
    student = await add_student(db)
    await add_structure(db, "Tuition", "1000")
    await db.commit()
    await _generate(db, "2024-01")

    await _generate(db, "2024-02", as_of=date(2024, 1, 25))

    feb = await _invoice_for(db, student.id, "2024-02")
    assert feb.base_amount == Decimal("1000.00")
    assert feb.arrears == Decimal("1000.00")
    assert feb.late_fine == Decimal("400.00")
    assert feb.total_due == Decimal("2400.00")
    assert feb.total_due == feb.base_amount + feb.arrears + feb.late_fine - feb.discount


@pytest.mark.asyncio
async def test_no_arrears_when_previous_invoice_paid(db, add_student, add_structure, add_invoice):
    student = await add_student(db)
    await add_structure(db, "Tuition", "1000")
    await add_invoice(db, student.id, "2024-01", total_due="1000", amount_paid="1000")
    await db.commit()

    await _generate(db, "2024-02", as_of=date(2024, 2, 1))

    feb = await _invoice_for(db, student.id, "2024-02")
    assert feb.arrears == Decimal("0.00")
    assert feb.late_fine == Decimal("0.00")
    assert feb.total_due == Decimal("1000.00")


@pytest.mark.asyncio
async def test_student_without_fees_gets_a_settled_invoice(db, add_student):
    student = await add_student(db)
    await db.commit()

    result = await _generate(db, "2024-01")
    invoice = await _invoice_for(db, student.id, "2024-01")
    assert result.created == [invoice.id]
    assert invoice.total_due == Decimal("0.00")
    assert invoice.status == InvoiceStatus.PAID

    again = await _generate(db, "2024-01")
    assert [s.reason for s in again.skipped] == ["duplicate"]


@pytest.mark.asyncio
async def test_unknown_and_inactive_students_are_skipped(db, add_student, add_structure):
    active = await add_student(db, "Active")
    inactive = await add_student(db, "Left School", is_active=False)
    await add_structure(db)
    await db.commit()
    unknown = uuid4()

    result = await _generate(
        db, "2024-01", selector=StudentSelector(student_ids=[active.id, inactive.id, unknown])
    )

    assert len(result.created) == 1
    assert {(s.student_id, s.reason) for s in result.skipped} == {
        (inactive.id, "student_not_found"),
        (unknown, "student_not_found"),
    }


@pytest.mark.asyncio
async def test_class_selector(db, add_student, add_structure):
    class_a = uuid4()
    await add_student(db, "A1", class_id=class_a)
    await add_student(db, "A2", class_id=class_a)
    await add_student(db, "B1", class_id=uuid4())
    await add_structure(db)
    await db.commit()

    result = await _generate(db, "2024-01", selector=StudentSelector(class_id=class_a))

    assert len(result.created) == 2
    assert result.skipped == []


@pytest.mark.asyncio
async def test_requested_ids_outside_the_class_are_reported(db, add_student, add_structure):
    class_a = uuid4()
    in_class = await add_student(db, "A1", class_id=class_a)
    elsewhere = await add_student(db, "B1", class_id=uuid4())
    await add_structure(db)
    await db.commit()
    unknown = uuid4()

    result = await _generate(
        db, "2024-01",
        selector=StudentSelector(student_ids=[in_class.id, elsewhere.id, unknown], class_id=class_a),
    )

    assert result.created == [(await _invoice_for(db, in_class.id, "2024-01")).id]
    assert {(s.student_id, s.reason) for s in result.skipped} == {
        (elsewhere.id, "not_in_class"),
        (unknown, "student_not_found"),
    }
    assert await _invoice_count(db) == 1


@pytest.mark.asyncio
async def test_run_summary_is_logged(db, add_student, add_structure, caplog):
    await add_student(db)
    await add_structure(db)
    await db.commit()

    with caplog.at_level(logging.INFO, logger="schoolfees.services.invoice_service"):
        result = await _generate(db, "2024-01")

    assert len(result.created) == 1
    summary = [r for r in caplog.records if r.getMessage() == "Invoice generation finished"]
    assert len(summary) == 1
    assert summary[0].period == "2024-01"
    assert summary[0].created_count == 1
    assert summary[0].skipped_count == 0


@pytest.mark.asyncio
async def test_frequencies(db, add_student, add_structure):
    student = await add_student(db)
    await add_structure(db, "Tuition", "1000", FeeFrequency.MONTHLY)
    await add_structure(db, "Exam", "300", FeeFrequency.QUARTERLY)
    await add_structure(db, "Annual", "2000", FeeFrequency.YEARLY)
    await add_structure(db, "Admission", "5000", FeeFrequency.ONE_TIME)
    await db.commit()

    await _generate(db, "2024-01")
    await _generate(db, "2024-02")
    await _generate(db, "2024-04")

    jan = await _invoice_for(db, student.id, "2024-01")
    feb = await _invoice_for(db, student.id, "2024-02")
    apr = await _invoice_for(db, student.id, "2024-04")
    assert jan.base_amount == Decimal("8300.00")
    assert feb.base_amount == Decimal("1000.00")
    assert apr.base_amount == Decimal("1300.00")


@pytest.mark.asyncio
async def test_assignment_override_and_discount(db, add_student, add_structure):
    student = await add_student(db)
    structure = await add_structure(db, "Tuition", "1000")
    await db.commit()
    await FeeCatalogService.assign_student_fee(
        db,
        StudentFeeAssign(
            student_id=student.id,
            fee_structure_id=structure.id,
            assigned_amount=Decimal("1200"),
            discount_percent=Decimal("25"),
            discount_reason="Sibling",
        ),
    )

    await _generate(db, "2024-01")

    invoice = await _invoice_for(db, student.id, "2024-01")
    assert invoice.base_amount == Decimal("1200.00")
    assert invoice.discount == Decimal("300.00")
    assert invoice.total_due == Decimal("900.00")


@pytest.mark.asyncio
async def test_invalid_period(db):
    with pytest.raises(ValidationFailed) as exc:
        await _generate(db, "2024-13")
    assert exc.value.reason == ValidationFailed.INVALID_PERIOD
