"""
Models package: import every model so SQLAlchemy's Base.metadata
knows about all tables (critical for `create_all` / Alembic).
"""

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.role import Role, user_roles
from app.models.user import User
from app.models.post import Post, PostStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Role",
    "user_roles",
    "User",
    "Post",
    "PostStatus",
]
