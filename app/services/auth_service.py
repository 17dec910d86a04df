"""
Authentication service.

Handles:
- Self-registration (new accounts get the default role)
- Login with email + password, returning a bearer token

Token verification itself lives in `app.rbac.dependencies`
(`get_current_principal`); everything downstream only sees a `User`
or None.
"""

import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import Conflict
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User
from app.services import role_service, user_service

logger = logging.getLogger(__name__)


def _token_for(user: User) -> dict:
    return {
        "access_token": create_access_token({"sub": str(user.id)}),
        "token_type": "bearer",
        "user_id": str(user.id),
        "roles": [r.name for r in user.roles],
    }


async def register_user(
    name: str,
    email: str,
    password: str,
    db: AsyncSession,
    age: int | None = None,
) -> dict:
    if await user_service.get_user_by_email(email, db) is not None:
        raise Conflict("User with this email already exists")

    default_role = await role_service.get_role_by_name(settings.DEFAULT_ROLE_NAME, db)
    if default_role is None:
        logger.error("Default role %r is missing; was the seed run?", settings.DEFAULT_ROLE_NAME)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Default user role not found",
        )

    user = User(
        id=uuid.uuid4(),
        name=name,
        email=email.strip().lower(),
        password_hash=hash_password(password),
        age=age,
        roles=[default_role],
    )
    db.add(user)
    await db.flush()
    logger.info("Registered user %s", user.email)
    return _token_for(user)


async def authenticate_user(email: str, password: str, db: AsyncSession) -> dict:
    user = await user_service.get_user_by_email(email, db)

    if user is None or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    user.last_login_at = datetime.now(timezone.utc)
    await db.flush()
    return _token_for(user)


async def change_password(user: User, current_password: str, new_password: str, db: AsyncSession) -> None:
    if not verify_password(current_password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect",
        )

    user.password_hash = hash_password(new_password)
    await db.flush()
    logger.info("Password changed for user %s", user.id)
