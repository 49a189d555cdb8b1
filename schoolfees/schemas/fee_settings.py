"""Fee settings schemas: the late fine policy and the invoice due day"""

from decimal import Decimal
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic_core import PydanticCustomError

from schoolfees.core.exceptions import ValidationFailed


class LateFineConfig(BaseModel):
    """
    Validated late fine policy.

    Built once per billing run and passed explicitly to the generator and the
    fine calculation. Stored in fee_settings with camelCase keys, which is
    what the dashboard reads and writes.

    Invariants: no field is negative and per_day_amount never exceeds max_cap.
    """
    enabled: bool = True
    per_day_amount: Decimal = Field(default=Decimal("50"), alias="perDayAmount")
    max_cap: Decimal = Field(default=Decimal("500"), alias="maxCap")
    grace_days: int = Field(default=7, alias="graceDays")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @model_validator(mode="after")
    def check_policy(self) -> "LateFineConfig":
        if self.per_day_amount < 0 or self.max_cap < 0 or self.grace_days < 0:
            raise PydanticCustomError(
                ValidationFailed.NEGATIVE_VALUE,
                "Late fine values cannot be negative",
            )
        if self.per_day_amount > self.max_cap:
            raise PydanticCustomError(
                ValidationFailed.PER_DAY_EXCEEDS_CAP,
                "Per-day amount cannot exceed maximum cap",
            )
        return self

    @classmethod
    def parse_checked(cls, data: Dict[str, Any]) -> "LateFineConfig":
        """Build a config, turning pydantic errors into a ValidationFailed with the rule's reason."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            first = exc.errors()[0]
            raise ValidationFailed(first["msg"], reason=first["type"]) from exc

    def to_setting_value(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "perDayAmount": float(self.per_day_amount),
            "maxCap": float(self.max_cap),
            "graceDays": self.grace_days,
        }


class LateFineConfigUpdate(BaseModel):
    """Request body; rules are enforced when the service builds a LateFineConfig"""
    enabled: bool
    per_day_amount: Decimal = Field(alias="perDayAmount")
    max_cap: Decimal = Field(alias="maxCap")
    grace_days: int = Field(alias="graceDays")

    model_config = ConfigDict(populate_by_name=True)


class LateFineBreakdown(BaseModel):
    """Worked example shown next to the settings form"""
    enabled: bool
    days_late: int
    grace_days: int
    chargeable_days: int
    raw_fine: Decimal
    applied_fine: Decimal
    capped: bool


class DueDaySetting(BaseModel):
    day: int

