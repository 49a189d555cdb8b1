"""Pure billing rules shared by the generator, the ledger and the reports"""

from datetime import date
from decimal import Decimal
from typing import Iterable, NamedTuple, Optional

from schoolfees.models.enums import FeeFrequency, InvoiceStatus
from schoolfees.utils.money import ZERO, round_money, to_decimal
from schoolfees.utils.periods import QUARTER_START_MONTHS


class PriorInvoice(NamedTuple):
    """Snapshot of an earlier invoice, enough to carry its debt forward"""
    billing_period: str
    total_due: Decimal
    arrears: Decimal
    amount_paid: Decimal
    due_date: date

    @property
    def balance(self) -> Decimal:
        return round_money(self.total_due - self.amount_paid)


def derive_status(total_due, amount_paid, due_date: date, today: date) -> InvoiceStatus:
    """
    The single source of invoice status. Payments and the overdue sweep both
    call this, so they always agree.
    """
    total = to_decimal(total_due)
    paid = to_decimal(amount_paid)
    if paid >= total:
        return InvoiceStatus.PAID
    if due_date < today:
        return InvoiceStatus.OVERDUE
    if paid > 0:
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.PENDING


def bills_in_period(
    frequency: FeeFrequency,
    month: int,
    yearly_billing_month: int,
    has_other_invoices: bool,
) -> bool:
    """Whether a fee head with this frequency is charged on an invoice for ``month``."""
    if frequency == FeeFrequency.MONTHLY:
        return True
    if frequency == FeeFrequency.QUARTERLY:
        return month in QUARTER_START_MONTHS
    if frequency == FeeFrequency.YEARLY:
        return month == yearly_billing_month
    if frequency == FeeFrequency.ONE_TIME:
        return not has_other_invoices
    return False


def total_due(base_amount, arrears, late_fine, discount) -> Decimal:
    return round_money(
        to_decimal(base_amount) + to_decimal(arrears) + to_decimal(late_fine) - to_decimal(discount)
    )


def own_charges(total_due, arrears) -> Decimal:
    """What an invoice billed for its own period, without the debt it carried in."""
    return max(round_money(to_decimal(total_due) - to_decimal(arrears)), ZERO)


def carried_arrears(prior: Iterable[PriorInvoice]) -> Decimal:
    """
    Unpaid debt from earlier periods.

    Own charges of every earlier invoice minus everything paid against them.
    Arrears on an invoice are a copy of older debt, so a January balance that
    was settled through February's invoice is not charged again in March.
    """
    charged = ZERO
    paid = ZERO
    for invoice in prior:
        charged += own_charges(invoice.total_due, invoice.arrears)
        paid += to_decimal(invoice.amount_paid)
    return max(round_money(charged - paid), ZERO)


def arrears_due_date(prior: Iterable[PriorInvoice]) -> Optional[date]:
    """Due date of the most recent earlier invoice still carrying a balance."""
    unpaid = [p for p in prior if p.balance > 0]
    if not unpaid:
        return None
    return max(unpaid, key=lambda p: p.billing_period).due_date
