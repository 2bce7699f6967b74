"""
Base model classes and mixins for SQLAlchemy ORM.
Provides common functionality for all database models.
"""
import enum
import uuid
from datetime import datetime
from typing import Type

from sqlalchemy import DateTime, String, Enum as SQLEnum
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from chat_server.utils.datetime_utils import utc_now


class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Includes AsyncAttrs mixin for async relationship access.
    All models should inherit from this class.
    """
    pass


def generate_id() -> str:
    """Generate a new opaque identifier (UUID v4 string)."""
    return str(uuid.uuid4())


class UUIDMixin:
    """Mixin for a store-assigned string primary key."""

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_id,
        doc="Opaque, globally unique identifier"
    )


class CreatedAtMixin:
    """Mixin for an application-stamped creation timestamp."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        doc="Timestamp when the record was created"
    )


def enum_type(enum_cls: Type[enum.Enum], name: str) -> SQLEnum:
    """
    Column type storing enum *values* ("pending", "text", ...) as VARCHAR.

    Values rather than member names keep raw SQL (partial index predicates,
    migrations) readable.
    """
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda members: [member.value for member in members],
        length=32,
    )
