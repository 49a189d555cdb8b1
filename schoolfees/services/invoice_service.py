"""Invoice Service - periodic invoice generation and invoice queries"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, NamedTuple, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from schoolfees.config import settings
from schoolfees.core.exceptions import NotFound, ValidationFailed
from schoolfees.core.logging import get_logger
from schoolfees.models.billing import FeeInvoice, FeeStructure, StudentFeeAssignment
from schoolfees.models.enums import UNSETTLED_STATUSES, AssignmentStatus, FeeFrequency, InvoiceStatus
from schoolfees.models.student import Student
from schoolfees.schemas.fee_settings import LateFineConfig
from schoolfees.schemas.invoices import GenerationResult, SkippedStudent, StudentSelector
from schoolfees.services.billing_rules import (
    PriorInvoice,
    arrears_due_date,
    bills_in_period,
    carried_arrears,
    derive_status,
    total_due,
)
from schoolfees.services.fee_settings_service import FeeSettingsService
from schoolfees.services.late_fine import late_fine
from schoolfees.utils.money import ZERO, round_money
from schoolfees.utils.periods import due_date_for, parse_period
from schoolfees.utils.time import get_utc_today

logger = get_logger(__name__)

SKIP_DUPLICATE = "duplicate"
SKIP_STUDENT_NOT_FOUND = "student_not_found"
SKIP_NOT_IN_CLASS = "not_in_class"


class CatalogEntry(NamedTuple):
    structure_id: UUID
    amount: Decimal
    frequency: FeeFrequency
    applicable_classes: Tuple[str, ...]

    def applies_to_class(self, class_id: Optional[UUID]) -> bool:
        return not self.applicable_classes or (
            class_id is not None and str(class_id) in self.applicable_classes
        )


class Override(NamedTuple):
    assigned_amount: Decimal
    discount: Decimal


@dataclass(frozen=True)
class BillingRun:
    """Everything a generation run needs, resolved once before the first student."""
    period: str
    month: int
    as_of_date: date
    due_date: date
    late_fine_config: LateFineConfig
    yearly_billing_month: int
    catalog: Tuple[CatalogEntry, ...]
    overrides: Dict[Tuple[UUID, UUID], Override] = field(default_factory=dict)


@dataclass
class InvoiceDraft:
    base_amount: Decimal
    arrears: Decimal
    late_fine: Decimal
    discount: Decimal
    total_due: Decimal


def draft_invoice(
    run: BillingRun,
    student_id: UUID,
    class_id: Optional[UUID],
    prior: List[PriorInvoice],
    has_other_invoices: bool,
) -> InvoiceDraft:
    """Compute one student's invoice amounts; no I/O."""
    base = ZERO
    discount = ZERO
    for entry in run.catalog:
        if not entry.applies_to_class(class_id):
            continue
        if not bills_in_period(entry.frequency, run.month, run.yearly_billing_month, has_other_invoices):
            continue
        override = run.overrides.get((student_id, entry.structure_id))
        if override is not None:
            base += override.assigned_amount
            discount += override.discount
        else:
            base += entry.amount

    arrears = carried_arrears(prior)
    fine = ZERO
    if arrears > 0:
        previous_due = arrears_due_date(prior)
        if previous_due is not None:
            fine = late_fine(previous_due, run.as_of_date, run.late_fine_config)

    base = round_money(base)
    discount = round_money(discount)
    return InvoiceDraft(
        base_amount=base,
        arrears=arrears,
        late_fine=fine,
        discount=discount,
        total_due=total_due(base, arrears, fine, discount),
    )


def _check_period(period: str) -> int:
    try:
        _, month = parse_period(period)
    except ValueError as exc:
        raise ValidationFailed(str(exc), reason=ValidationFailed.INVALID_PERIOD) from exc
    return month


class InvoiceService:
    """Generates invoices and answers invoice queries"""

    @staticmethod
    async def prepare_run(
        db: AsyncSession,
        period: str,
        as_of_date: Optional[date] = None,
        late_fine_config: Optional[LateFineConfig] = None,
        due_day: Optional[int] = None,
        student_ids: Optional[List[UUID]] = None,
    ) -> BillingRun:
        """Load configuration and the fee catalog once for a whole run."""
        month = _check_period(period)

        if late_fine_config is None:
            late_fine_config = await FeeSettingsService.get_late_fine_config(db)
        if due_day is None:
            due_day = await FeeSettingsService.get_due_day(db)

        result = await db.execute(select(FeeStructure).order_by(FeeStructure.name))
        catalog = tuple(
            CatalogEntry(
                structure_id=s.id,
                amount=round_money(s.amount),
                frequency=FeeFrequency(s.frequency),
                applicable_classes=tuple(str(c) for c in (s.applicable_classes or [])),
            )
            for s in result.scalars().all()
        )

        query = select(StudentFeeAssignment).where(
            StudentFeeAssignment.status == AssignmentStatus.ACTIVE
        )
        if student_ids is not None:
            query = query.where(StudentFeeAssignment.student_id.in_(student_ids))
        overrides = {
            (a.student_id, a.fee_structure_id): Override(
                assigned_amount=round_money(a.assigned_amount),
                discount=round_money(a.discount_value),
            )
            for a in (await db.execute(query)).scalars().all()
        }

        return BillingRun(
            period=period,
            month=month,
            as_of_date=as_of_date or get_utc_today(),
            due_date=due_date_for(period, due_day),
            late_fine_config=late_fine_config,
            yearly_billing_month=settings.FEE_YEARLY_BILLING_MONTH,
            catalog=catalog,
            overrides=overrides,
        )

    @staticmethod
    async def _select_students(
        db: AsyncSession,
        selector: StudentSelector,
    ) -> Tuple[List[Tuple[UUID, Optional[UUID]]], List[SkippedStudent]]:
        """
        Resolve the selector into (id, class_id) pairs.

        Requested ids that are unknown or inactive come back as skipped with
        "student_not_found"; ids outside the requested class as "not_in_class".
        """
        query = select(Student.id, Student.class_id).where(Student.is_active.is_(True))
        if selector.student_ids:
            query = query.where(Student.id.in_(selector.student_ids))
        elif selector.class_id is not None:
            query = query.where(Student.class_id == selector.class_id)
        rows = (await db.execute(query.order_by(Student.full_name))).all()
        students = [(row.id, row.class_id) for row in rows]
        if not selector.student_ids:
            return students, []

        classes = dict(students)
        skipped: List[SkippedStudent] = []
        for sid in dict.fromkeys(selector.student_ids):
            if sid not in classes:
                skipped.append(SkippedStudent(student_id=sid, reason=SKIP_STUDENT_NOT_FOUND))
            elif selector.class_id is not None and classes[sid] != selector.class_id:
                skipped.append(SkippedStudent(student_id=sid, reason=SKIP_NOT_IN_CLASS))
        excluded = {s.student_id for s in skipped}
        return [s for s in students if s[0] not in excluded], skipped

    @staticmethod
    async def _invoice_history(
        db: AsyncSession,
        student_ids: List[UUID],
        period: str,
    ) -> Tuple[Dict[UUID, List[PriorInvoice]], set]:
        """Earlier invoices per student, and the students billed in any other period."""
        prior: Dict[UUID, List[PriorInvoice]] = {sid: [] for sid in student_ids}
        billed_elsewhere: set = set()
        if not student_ids:
            return prior, billed_elsewhere
        result = await db.execute(
            select(FeeInvoice).where(
                FeeInvoice.student_id.in_(student_ids),
                FeeInvoice.billing_period != period,
            )
        )
        for inv in result.scalars().all():
            billed_elsewhere.add(inv.student_id)
            if inv.billing_period < period:
                prior[inv.student_id].append(
                    PriorInvoice(
                        billing_period=inv.billing_period,
                        total_due=round_money(inv.total_due),
                        arrears=round_money(inv.arrears),
                        amount_paid=round_money(inv.amount_paid),
                        due_date=inv.due_date,
                    )
                )
        return prior, billed_elsewhere

    @staticmethod
    async def generate(
        db: AsyncSession,
        period: str,
        selector: Optional[StudentSelector] = None,
        as_of_date: Optional[date] = None,
        late_fine_config: Optional[LateFineConfig] = None,
        due_day: Optional[int] = None,
    ) -> GenerationResult:
        """
        Create one invoice per selected student for ``period``.

        Each insert runs in its own savepoint and relies on the
        (student_id, billing_period) unique constraint: a conflict skips that
        student as "duplicate" and the batch carries on. Running the same
        request again therefore creates nothing new.
        """
        _check_period(period)
        selector = selector or StudentSelector()
        students, unselected = await InvoiceService._select_students(db, selector)
        student_ids = [sid for sid, _ in students]

        run = await InvoiceService.prepare_run(
            db,
            period,
            as_of_date=as_of_date,
            late_fine_config=late_fine_config,
            due_day=due_day,
            student_ids=student_ids,
        )
        prior, billed_elsewhere = await InvoiceService._invoice_history(db, student_ids, period)

        result = GenerationResult(period=period, skipped=unselected)

        for student_id, class_id in students:
            draft = draft_invoice(
                run,
                student_id,
                class_id,
                prior.get(student_id, []),
                has_other_invoices=student_id in billed_elsewhere,
            )
            invoice = FeeInvoice(
                student_id=student_id,
                billing_period=run.period,
                base_amount=draft.base_amount,
                arrears=draft.arrears,
                late_fine=draft.late_fine,
                discount=draft.discount,
                total_due=draft.total_due,
                amount_paid=ZERO,
                due_date=run.due_date,
                status=derive_status(draft.total_due, ZERO, run.due_date, run.as_of_date),
            )
            try:
                async with db.begin_nested():
                    db.add(invoice)
                    await db.flush()
            except IntegrityError:
                logger.debug(
                    "Invoice already exists, skipping",
                    extra={"student_id": str(student_id), "period": run.period},
                )
                result.skipped.append(SkippedStudent(student_id=student_id, reason=SKIP_DUPLICATE))
                continue
            result.created.append(invoice.id)

        await db.commit()
        logger.info(
            "Invoice generation finished",
            extra={
                "period": run.period,
                "created_count": len(result.created),
                "skipped_count": len(result.skipped),
            },
        )
        return result

    @staticmethod
    async def get_invoice(db: AsyncSession, invoice_id: UUID, with_payments: bool = False) -> FeeInvoice:
        query = select(FeeInvoice).where(FeeInvoice.id == invoice_id)
        if with_payments:
            query = query.options(selectinload(FeeInvoice.payments))
        invoice = (await db.execute(query)).scalar_one_or_none()
        if invoice is None:
            raise NotFound(f"Invoice {invoice_id} not found")
        return invoice

    @staticmethod
    async def list_invoices(
        db: AsyncSession,
        student_id: Optional[UUID] = None,
        period: Optional[str] = None,
        status: Optional[InvoiceStatus] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Tuple[List[FeeInvoice], int]:
        filters = []
        if student_id is not None:
            filters.append(FeeInvoice.student_id == student_id)
        if period is not None:
            filters.append(FeeInvoice.billing_period == period)
        if status is not None:
            filters.append(FeeInvoice.status == status)

        total = await db.scalar(select(func.count()).select_from(FeeInvoice).where(*filters))
        result = await db.execute(
            select(FeeInvoice)
            .where(*filters)
            .order_by(FeeInvoice.billing_period.desc(), FeeInvoice.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def list_pending_invoices(db: AsyncSession) -> List[FeeInvoice]:
        """Invoices still awaiting money, earliest due first."""
        result = await db.execute(
            select(FeeInvoice)
            .where(FeeInvoice.status.in_(UNSETTLED_STATUSES))
            .order_by(FeeInvoice.due_date.asc())
        )
        return list(result.scalars().all())
