"""
Declarative base, shared mixins & column helpers.

Every table gets a UUID primary key and UTC `created_at` / `updated_at`
timestamps.  Permission sets and tags are stored as JSON string lists
(see `string_list_column`) rather than join tables: identifiers come from
an in-process catalog, not from a `permissions` table.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, MappedColumn, mapped_column


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class UUIDPrimaryKeyMixin:
    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )


def string_list_column() -> MappedColumn:
    """A non-null JSON list of strings, empty by default.

    The ORM does not track in-place mutation of JSON values, so callers
    always assign a new list (`role.permissions = [*role.permissions, p]`).
    """
    return mapped_column(JSON, default=list, nullable=False)
