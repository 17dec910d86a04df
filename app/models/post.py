from __future__ import annotations

"""
Post model.

The author is the post's owner: ownership-conditioned permissions
(`post.update.own`, `post.delete.own`) are checked against `author_id`.
"""

import enum
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, string_list_column

if TYPE_CHECKING:
    from app.models.user import User


class PostStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Post(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "posts"

    title: Mapped[str] = mapped_column(String(256), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[PostStatus] = mapped_column(
        Enum(PostStatus, name="post_status", values_callable=lambda e: [m.value for m in e]),
        default=PostStatus.PUBLISHED,
        nullable=False,
    )
    tags: Mapped[list[str]] = string_list_column()
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # ── Relationships ────────────────────────────────────────────────
    author: Mapped["User"] = relationship(  # noqa: F821
        foreign_keys=[author_id],
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Post {self.title!r}>"
