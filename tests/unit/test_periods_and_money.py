"""Unit tests for billing period and money helpers."""

from datetime import date
from decimal import Decimal

import pytest

from schoolfees.utils.money import round_money, sum_money, to_decimal
from schoolfees.utils.periods import due_date_for, format_period, parse_period, period_of


def test_parse_period():
    assert parse_period("2024-03") == (2024, 3)


@pytest.mark.parametrize("bad", ["2024-13", "2024-00", "24-03", "2024/03", "", "2024-3"])
def test_parse_period_rejects_malformed(bad):
    with pytest.raises(ValueError):
        parse_period(bad)


def test_format_and_period_of():
    assert format_period(2024, 7) == "2024-07"
    assert period_of(date(2024, 7, 31)) == "2024-07"


def test_due_date_is_clamped_to_month_end():
    assert due_date_for("2024-02", 10) == date(2024, 2, 10)
    assert due_date_for("2024-02", 31) == date(2024, 2, 29)
    assert due_date_for("2023-02", 31) == date(2023, 2, 28)


def test_money_rounding_is_half_up():
    assert round_money("10.005") == Decimal("10.01")
    assert round_money(None) == Decimal("0.00")


def test_float_input_keeps_its_decimal_text():
    assert to_decimal(0.1) == Decimal("0.1")


def test_sum_money():
    assert sum_money(["100.10", Decimal("0.20"), None, 3]) == Decimal("103.30")
