"""Payment Ledger - append-only payments that settle invoices"""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.exceptions import NotFound, PaymentInconsistency, ValidationFailed
from schoolfees.core.logging import get_logger
from schoolfees.models.billing import FeeInvoice, FeePayment
from schoolfees.models.enums import UNSETTLED_STATUSES, PaymentMode
from schoolfees.services.billing_rules import derive_status
from schoolfees.utils.money import round_money, to_decimal
from schoolfees.utils.time import get_utc_today

logger = get_logger(__name__)


class PaymentService:
    """Records payments and keeps invoice paid amount and status in step with them"""

    @staticmethod
    async def _lock_invoice(db: AsyncSession, invoice_id: UUID) -> Optional[FeeInvoice]:
        # Row lock held until commit/rollback serializes payments on one invoice
        result = await db.execute(
            select(FeeInvoice)
            .where(FeeInvoice.id == invoice_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def record_payment(
        db: AsyncSession,
        invoice_id: UUID,
        amount: Decimal,
        payment_date: Optional[date] = None,
        payment_mode: PaymentMode = PaymentMode.CASH,
        reference_number: Optional[str] = None,
        received_by: Optional[UUID] = None,
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Tuple[FeePayment, FeeInvoice]:
        """
        Append a payment and update the invoice in one transaction.

        Args:
            db: Database session
            invoice_id: Invoice being paid
            amount: Must be positive and no more than the current balance
            payment_date: Defaults to today
            received_by: Principal that took the money

        Returns:
            (payment, invoice) after commit

        Raises:
            ValidationFailed: non-positive amount or overpayment; nothing is written
            NotFound: unknown invoice
            PaymentInconsistency: the commit failed; both writes were rolled back
        """
        # Compared at cent precision, the precision it is stored at
        amount = round_money(to_decimal(amount))
        if amount <= 0:
            raise ValidationFailed(
                "Payment amount must be greater than zero",
                reason=ValidationFailed.NON_POSITIVE_AMOUNT,
            )
        today = today or get_utc_today()

        invoice = await PaymentService._lock_invoice(db, invoice_id)
        if invoice is None:
            await db.rollback()
            raise NotFound(f"Invoice {invoice_id} not found")

        balance = round_money(invoice.total_due - invoice.amount_paid)
        if amount > balance:
            await db.rollback()
            logger.warning(
                "Payment rejected: exceeds balance",
                extra={"invoice_id": str(invoice_id), "amount": str(amount), "balance": str(balance)},
            )
            raise ValidationFailed(
                f"Amount {amount} exceeds the invoice balance of {balance}",
                reason=ValidationFailed.OVERPAYMENT,
            )

        payment = FeePayment(
            invoice_id=invoice.id,
            student_id=invoice.student_id,
            amount=amount,
            payment_date=payment_date or today,
            payment_mode=payment_mode,
            reference_number=reference_number,
            received_by=received_by,
            notes=notes,
        )
        db.add(payment)

        previous_status = invoice.status
        invoice.amount_paid = round_money(invoice.amount_paid + amount)
        invoice.status = derive_status(invoice.total_due, invoice.amount_paid, invoice.due_date, today)

        try:
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error(
                "Payment not recorded: storage failure, changes rolled back",
                extra={"invoice_id": str(invoice_id), "amount": str(amount)},
                exc_info=True,
            )
            raise PaymentInconsistency(
                "The payment could not be stored; no changes were kept. Please retry."
            ) from exc

        logger.info(
            "Payment recorded",
            extra={
                "invoice_id": str(invoice.id),
                "payment_id": str(payment.id),
                "amount": str(amount),
                "status_from": getattr(previous_status, "value", previous_status),
                "status_to": invoice.status.value,
                "actor_id": received_by,
            },
        )
        return payment, invoice

    @staticmethod
    async def refresh_overdue(db: AsyncSession, today: Optional[date] = None) -> Tuple[int, int]:
        """
        Re-derive the status of every unsettled invoice.

        Uses derive_status, the same function payments use, under the same row
        lock, so the sweep and a concurrent payment always converge.

        Returns:
            (unsettled invoices checked, invoices whose status changed)
        """
        today = today or get_utc_today()
        result = await db.execute(
            select(FeeInvoice)
            .where(FeeInvoice.status.in_(UNSETTLED_STATUSES))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        invoices = list(result.scalars().all())

        updated = 0
        for invoice in invoices:
            status = derive_status(invoice.total_due, invoice.amount_paid, invoice.due_date, today)
            if status != invoice.status:
                invoice.status = status
                updated += 1

        await db.commit()
        logger.info("Overdue sweep finished", extra={"checked": len(invoices), "updated": updated})
        return len(invoices), updated

    @staticmethod
    async def list_payments(
        db: AsyncSession,
        student_id: Optional[UUID] = None,
        invoice_id: Optional[UUID] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Tuple[List[FeePayment], int]:
        filters = []
        if student_id is not None:
            filters.append(FeePayment.student_id == student_id)
        if invoice_id is not None:
            filters.append(FeePayment.invoice_id == invoice_id)

        total = await db.scalar(select(func.count()).select_from(FeePayment).where(*filters))
        result = await db.execute(
            select(FeePayment)
            .where(*filters)
            .order_by(FeePayment.payment_date.desc(), FeePayment.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total or 0
