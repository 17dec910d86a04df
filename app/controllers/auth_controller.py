"""
Auth controller: registration, login & "who am I".

Register and login are PUBLIC (no permission dependency).
`/me` routes and `/change-password` only require authentication.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.rbac.dependencies import require_authenticated
from app.rbac.resolver import collect_effective_permissions
from app.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    PermissionsOut,
    RegisterRequest,
    TokenResponse,
    UserOut,
)
from app.services import auth_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    return await auth_service.register_user(
        name=body.name,
        email=body.email,
        password=body.password,
        age=body.age,
        db=db,
    )


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Authenticate with email + password and receive a bearer token."""
    return await auth_service.authenticate_user(body.email, body.password, db)


@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(require_authenticated)):
    return UserOut.model_validate(user)


@router.get("/me/permissions", response_model=PermissionsOut)
async def my_permissions(user: User = Depends(require_authenticated)):
    """Effective permissions of the caller (empty when deactivated)."""
    permissions = sorted(collect_effective_permissions(user)) if user.is_active else []
    return PermissionsOut(user_id=user.id, permissions=permissions)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.change_password(user, body.current_password, body.new_password, db)
    return MessageResponse(detail="Password changed successfully")
