"""Base Models and Mixins for DRY principles"""

import enum
import uuid
from typing import Type

from sqlalchemy import Column, DateTime, Enum, Uuid, ForeignKey
from sqlalchemy.orm import declared_attr

from app.database import Base
from app.utils.time import get_utc_now


def enum_column_type(enum_cls: Type[enum.Enum], name: str) -> Enum:
    """Store enums by value (e.g. "pending"), not by member name."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


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


class SeasonScopedMixin:
    """
    Mixin for records that belong to a season.

    Provides:
    - season_id foreign key
    """

    @declared_attr
    def season_id(cls):
        return Column(
            Uuid(as_uuid=True),
            ForeignKey("seasons.id", ondelete="CASCADE"),
            nullable=False,
            index=True
        )


class CreatedByMixin:
    """
    Mixin for admin-created records.

    Provides:
    - created_by admin id (kept after the admin is deleted)
    """
    created_by = Column(Uuid(as_uuid=True), nullable=True)
