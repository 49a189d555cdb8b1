"""Unit tests for the late fine calculation (pure, no DB)."""

from datetime import date, timedelta
from decimal import Decimal

from schoolfees.schemas.fee_settings import LateFineConfig
from schoolfees.services.late_fine import chargeable_days, explain_late_fine, late_fine

DEFAULT = LateFineConfig(enabled=True, per_day_amount=Decimal("50"), max_cap=Decimal("500"), grace_days=7)


def test_fifteen_days_late_with_seven_grace_days():
    """Due 10 Jan, paid 25 Jan: 15 days late, 8 chargeable, 8 x 50."""
    assert late_fine(date(2024, 1, 10), date(2024, 1, 25), DEFAULT) == Decimal("400.00")


def test_no_fine_inside_grace_period():
    assert late_fine(date(2024, 1, 10), date(2024, 1, 17), DEFAULT) == Decimal("0")
    assert late_fine(date(2024, 1, 10), date(2024, 1, 18), DEFAULT) == Decimal("50.00")


def test_no_fine_before_due_date():
    assert late_fine(date(2024, 1, 10), date(2024, 1, 1), DEFAULT) == Decimal("0")


def test_fine_is_capped():
    assert late_fine(date(2024, 1, 10), date(2024, 6, 30), DEFAULT) == Decimal("500.00")


def test_disabled_policy_charges_nothing():
    disabled = DEFAULT.model_copy(update={"enabled": False})
    assert late_fine(date(2024, 1, 10), date(2024, 6, 30), disabled) == Decimal("0")


def test_fine_never_decreases_as_time_passes():
    due = date(2024, 1, 10)
    previous = Decimal("0")
    for offset in range(0, 40):
        fine = late_fine(due, due + timedelta(days=offset), DEFAULT)
        assert fine >= previous
        assert fine <= DEFAULT.max_cap
        previous = fine


def test_chargeable_days_never_negative():
    assert chargeable_days(3, 7) == 0
    assert chargeable_days(-5, 0) == 0
    assert chargeable_days(10, 7) == 3


def test_explain_default_example():
    breakdown = explain_late_fine(DEFAULT)
    assert breakdown.days_late == 15
    assert breakdown.grace_days == 7
    assert breakdown.chargeable_days == 8
    assert breakdown.raw_fine == Decimal("400.00")
    assert breakdown.applied_fine == Decimal("400.00")
    assert breakdown.capped is False


def test_explain_reports_capping():
    breakdown = explain_late_fine(DEFAULT, days_late=30)
    assert breakdown.raw_fine == Decimal("1150.00")
    assert breakdown.applied_fine == Decimal("500.00")
    assert breakdown.capped is True


def test_explain_when_disabled():
    breakdown = explain_late_fine(DEFAULT.model_copy(update={"enabled": False}), days_late=30)
    assert breakdown.applied_fine == Decimal("0")
    assert breakdown.capped is False
