"""Unit tests for invoice status, frequency and arrears rules."""

from datetime import date
from decimal import Decimal

import pytest

from schoolfees.models.enums import FeeFrequency, InvoiceStatus
from schoolfees.services.billing_rules import (
    PriorInvoice,
    arrears_due_date,
    bills_in_period,
    carried_arrears,
    derive_status,
    own_charges,
    total_due,
)

DUE = date(2024, 1, 10)


# ---------------------------------------------------------------------------
# derive_status
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "paid, today, expected",
    [
        ("0", date(2024, 1, 5), InvoiceStatus.PENDING),
        ("400", date(2024, 1, 5), InvoiceStatus.PARTIAL),
        ("1000", date(2024, 1, 5), InvoiceStatus.PAID),
        ("0", date(2024, 1, 11), InvoiceStatus.OVERDUE),
        ("400", date(2024, 1, 11), InvoiceStatus.OVERDUE),
        ("1000", date(2024, 1, 11), InvoiceStatus.PAID),
        ("0", DUE, InvoiceStatus.PENDING),
    ],
)
def test_derive_status(paid, today, expected):
    assert derive_status(Decimal("1000"), Decimal(paid), DUE, today) == expected


def test_zero_total_is_paid_immediately():
    assert derive_status(Decimal("0"), Decimal("0"), DUE, date(2024, 2, 1)) == InvoiceStatus.PAID


# ---------------------------------------------------------------------------
# bills_in_period
# ---------------------------------------------------------------------------

def test_monthly_bills_every_month():
    assert all(bills_in_period(FeeFrequency.MONTHLY, m, 1, True) for m in range(1, 13))


def test_quarterly_bills_on_quarter_starts():
    months = [m for m in range(1, 13) if bills_in_period(FeeFrequency.QUARTERLY, m, 1, True)]
    assert months == [1, 4, 7, 10]


def test_yearly_bills_in_configured_month():
    months = [m for m in range(1, 13) if bills_in_period(FeeFrequency.YEARLY, m, 4, True)]
    assert months == [4]


def test_one_time_only_on_first_invoice():
    assert bills_in_period(FeeFrequency.ONE_TIME, 5, 1, has_other_invoices=False) is True
    assert bills_in_period(FeeFrequency.ONE_TIME, 5, 1, has_other_invoices=True) is False


# ---------------------------------------------------------------------------
# totals and arrears
# ---------------------------------------------------------------------------

def test_total_due_formula():
    assert total_due("1000", "500", "400", "100") == Decimal("1800.00")


def test_own_charges_excludes_carried_debt():
    assert own_charges(Decimal("2000"), Decimal("1000")) == Decimal("1000.00")


def _prior(period, total, paid, arrears="0", due=DUE):
    return PriorInvoice(
        billing_period=period,
        total_due=Decimal(total),
        arrears=Decimal(arrears),
        amount_paid=Decimal(paid),
        due_date=due,
    )


def test_no_prior_invoices_means_no_arrears():
    assert carried_arrears([]) == Decimal("0")
    assert arrears_due_date([]) is None


def test_unpaid_balances_are_carried():
    prior = [_prior("2024-01", "1000", "300")]
    assert carried_arrears(prior) == Decimal("700.00")


def test_debt_carried_twice_is_counted_once():
    # Jan unpaid; Feb carried Jan's 1000 and is also unpaid
    prior = [
        _prior("2024-01", "1000", "0"),
        _prior("2024-02", "2000", "0", arrears="1000"),
    ]
    assert carried_arrears(prior) == Decimal("2000.00")


def test_debt_settled_through_a_later_invoice_is_not_charged_again():
    # Feb paid in full, including the 1000 it carried from Jan
    prior = [
        _prior("2024-01", "1000", "0"),
        _prior("2024-02", "2000", "2000", arrears="1000"),
    ]
    assert carried_arrears(prior) == Decimal("0")


def test_arrears_due_date_uses_latest_unpaid_invoice():
    prior = [
        _prior("2024-01", "1000", "0", due=date(2024, 1, 10)),
        _prior("2024-02", "2000", "500", arrears="1000", due=date(2024, 2, 10)),
        _prior("2023-12", "1000", "1000", due=date(2023, 12, 10)),
    ]
    assert arrears_due_date(prior) == date(2024, 2, 10)


def test_prior_invoice_balance():
    assert _prior("2024-01", "1000", "250").balance == Decimal("750.00")
