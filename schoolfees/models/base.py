"""Base Models and Mixins for DRY principles"""

import enum
import uuid
from typing import Type

from sqlalchemy import Boolean, Column, DateTime, Enum, Uuid

from schoolfees.database import Base
from schoolfees.utils.time import get_utc_now


class BaseModel(Base):
    """
    Base model class with common fields for all models.

    Provides:
    - UUID primary key
    - created_at timestamp
    - updated_at timestamp
    """
    __abstract__ = True

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    created_at = Column(DateTime, default=get_utc_now, nullable=False)
    updated_at = Column(DateTime, default=get_utc_now, onupdate=get_utc_now, nullable=False)


class StatusMixin:
    """
    Mixin for models with active/inactive status.

    Provides:
    - is_active boolean flag
    """
    is_active = Column(Boolean, default=True, nullable=False, index=True)


def enum_column_type(enum_cls: Type[enum.Enum], name: str) -> Enum:
    """Enum column type persisting the member values (e.g. "one-time"), not the names."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
