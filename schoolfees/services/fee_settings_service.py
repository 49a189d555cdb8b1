"""Fee Settings Service - late fine policy and due day stored in fee_settings"""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.config import settings
from schoolfees.core.exceptions import ValidationFailed
from schoolfees.core.logging import get_logger
from schoolfees.models.billing import FeeSetting
from schoolfees.models.enums import FeeSettingKey
from schoolfees.schemas.fee_settings import LateFineConfig

logger = get_logger(__name__)


def default_late_fine_config() -> LateFineConfig:
    return LateFineConfig(
        enabled=settings.LATE_FINE_ENABLED,
        per_day_amount=settings.LATE_FINE_PER_DAY,
        max_cap=settings.LATE_FINE_MAX_CAP,
        grace_days=settings.LATE_FINE_GRACE_DAYS,
    )


class FeeSettingsService:
    """Reads and writes fee configuration; writes are validated before they are stored"""

    @staticmethod
    async def _get_setting(db: AsyncSession, key: FeeSettingKey) -> Optional[FeeSetting]:
        result = await db.execute(
            select(FeeSetting).where(FeeSetting.setting_key == key.value)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def _put_setting(
        db: AsyncSession,
        key: FeeSettingKey,
        value: Dict[str, Any],
        updated_by: Optional[UUID],
        description: str,
    ) -> FeeSetting:
        setting = await FeeSettingsService._get_setting(db, key)
        if setting is None:
            setting = FeeSetting(setting_key=key.value, description=description)
            db.add(setting)
        setting.setting_value = value
        setting.updated_by = updated_by
        await db.commit()
        await db.refresh(setting)
        return setting

    @staticmethod
    async def get_late_fine_config(db: AsyncSession) -> LateFineConfig:
        """Stored policy, or the environment defaults when none was saved yet."""
        setting = await FeeSettingsService._get_setting(db, FeeSettingKey.LATE_FINE_CONFIG)
        if setting is None:
            return default_late_fine_config()
        defaults = default_late_fine_config().to_setting_value()
        return LateFineConfig.parse_checked({**defaults, **(setting.setting_value or {})})

    @staticmethod
    async def update_late_fine_config(
        db: AsyncSession,
        values: Dict[str, Any],
        updated_by: Optional[UUID] = None,
    ) -> LateFineConfig:
        """
        Validate and store a new policy.

        Raises:
            ValidationFailed: negative values or per-day amount above the cap
        """
        config = LateFineConfig.parse_checked(values)
        await FeeSettingsService._put_setting(
            db,
            FeeSettingKey.LATE_FINE_CONFIG,
            config.to_setting_value(),
            updated_by,
            "Late fine policy applied to newly generated invoices",
        )
        logger.info(
            "Late fine policy updated",
            extra={"actor_id": updated_by, "config": config.to_setting_value()},
        )
        return config

    @staticmethod
    async def get_due_day(db: AsyncSession) -> int:
        setting = await FeeSettingsService._get_setting(db, FeeSettingKey.DUE_DAY)
        if setting is None:
            return settings.FEE_DEFAULT_DUE_DAY
        day = (setting.setting_value or {}).get("day")
        return int(day) if day else settings.FEE_DEFAULT_DUE_DAY

    @staticmethod
    async def update_due_day(
        db: AsyncSession,
        day: int,
        updated_by: Optional[UUID] = None,
    ) -> int:
        if not 1 <= day <= 31:
            raise ValidationFailed(
                "Due day must be between 1 and 31",
                reason=ValidationFailed.INVALID_DUE_DAY,
            )
        await FeeSettingsService._put_setting(
            db,
            FeeSettingKey.DUE_DAY,
            {"day": day},
            updated_by,
            "Day of the month invoices fall due",
        )
        logger.info("Invoice due day updated", extra={"actor_id": updated_by, "day": day})
        return day
