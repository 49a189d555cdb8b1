"""Document Service - builds invoice and payment snapshots for renderers"""

from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from schoolfees.config import settings
from schoolfees.core.exceptions import NotFound
from schoolfees.models.billing import FeeInvoice, FeePayment
from schoolfees.schemas.documents import InvoiceSnapshot, PaymentSnapshot
from schoolfees.utils.money import round_money


class DocumentRenderer(Protocol):
    """
    Turns snapshots into a printable document (PDF, HTML...).
    Renderers live outside this service; they only ever see snapshots.
    """

    def render_invoice(self, snapshot: InvoiceSnapshot) -> bytes:
        ...

    def render_receipt(self, snapshot: PaymentSnapshot) -> bytes:
        ...


def payment_snapshot(payment: FeePayment) -> PaymentSnapshot:
    return PaymentSnapshot(
        payment_id=payment.id,
        invoice_id=payment.invoice_id,
        amount=round_money(payment.amount),
        payment_date=payment.payment_date,
        payment_mode=payment.payment_mode,
        reference_number=payment.reference_number,
        currency=settings.CURRENCY_LABEL,
    )


class DocumentService:
    @staticmethod
    async def invoice_snapshot(db: AsyncSession, invoice_id: UUID) -> InvoiceSnapshot:
        result = await db.execute(
            select(FeeInvoice)
            .options(selectinload(FeeInvoice.student), selectinload(FeeInvoice.payments))
            .where(FeeInvoice.id == invoice_id)
        )
        invoice = result.scalar_one_or_none()
        if invoice is None:
            raise NotFound(f"Invoice {invoice_id} not found")

        student = invoice.student
        return InvoiceSnapshot(
            school_name=settings.APP_NAME,
            currency=settings.CURRENCY_LABEL,
            invoice_id=invoice.id,
            billing_period=invoice.billing_period,
            due_date=invoice.due_date,
            status=invoice.status,
            student_id=student.id,
            student_name=student.full_name,
            admission_no=student.admission_no,
            father_name=student.father_name,
            class_name=student.class_name,
            base_amount=round_money(invoice.base_amount),
            arrears=round_money(invoice.arrears),
            late_fine=round_money(invoice.late_fine),
            discount=round_money(invoice.discount),
            total_due=round_money(invoice.total_due),
            amount_paid=round_money(invoice.amount_paid),
            balance=round_money(invoice.total_due - invoice.amount_paid),
            payments=[payment_snapshot(p) for p in invoice.payments],
        )

    @staticmethod
    async def render_invoice(db: AsyncSession, invoice_id: UUID, renderer: DocumentRenderer) -> bytes:
        snapshot = await DocumentService.invoice_snapshot(db, invoice_id)
        return renderer.render_invoice(snapshot)

    @staticmethod
    async def payment_snapshot(db: AsyncSession, payment_id: UUID) -> PaymentSnapshot:
        payment = await db.get(FeePayment, payment_id)
        if payment is None:
            raise NotFound(f"Payment {payment_id} not found")
        return payment_snapshot(payment)
