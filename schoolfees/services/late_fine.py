"""Late Fine Policy - pure calculation over a validated LateFineConfig"""

from datetime import date
from decimal import Decimal

from schoolfees.schemas.fee_settings import LateFineBreakdown, LateFineConfig
from schoolfees.utils.money import ZERO, round_money


def chargeable_days(days_late: int, grace_days: int) -> int:
    return max(0, max(0, days_late) - grace_days)


def late_fine(due_date: date, as_of_date: date, config: LateFineConfig) -> Decimal:
    """
    Fine owed on a bill due on ``due_date`` when settled on ``as_of_date``.

    Non-decreasing in ``as_of_date``, never above ``config.max_cap`` and
    always zero while the policy is disabled.
    """
    if not config.enabled:
        return ZERO
    days_late = max(0, (as_of_date - due_date).days)
    raw = chargeable_days(days_late, config.grace_days) * config.per_day_amount
    return round_money(min(raw, config.max_cap))


def explain_late_fine(config: LateFineConfig, days_late: int = 15) -> LateFineBreakdown:
    """Worked example for the settings screen, e.g. "15 days late, 7 grace, 8 x 50 = 400"."""
    days_late = max(0, days_late)
    chargeable = chargeable_days(days_late, config.grace_days)
    raw = round_money(chargeable * config.per_day_amount)
    applied = round_money(min(raw, config.max_cap)) if config.enabled else ZERO
    return LateFineBreakdown(
        enabled=config.enabled,
        days_late=days_late,
        grace_days=config.grace_days,
        chargeable_days=chargeable,
        raw_fine=raw,
        applied_fine=applied,
        capped=config.enabled and raw > config.max_cap,
    )
