"""
Post controller.

Ownership-conditioned routes pass the post's author to the guard:
    PATCH  /posts/{id}   post.update.own  (author, or post.update holder)
    DELETE /posts/{id}   post.delete.own  (author, or post.delete holder)
`post.manage` satisfies both.  Listing and reading published public
posts needs no login at all.
"""

import uuid

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import NotFound
from app.models.user import User
from app.rbac.dependencies import get_current_principal, require_authenticated, require_permission
from app.schemas import (
    CreatePostRequest,
    MessageResponse,
    ModeratePostRequest,
    PostOut,
    UpdatePostRequest,
)
from app.services import post_service

router = APIRouter(prefix="/api/posts", tags=["Posts"])


async def _post_author(request: Request, db: AsyncSession) -> uuid.UUID:
    """Owner extractor: a post is owned by its author."""
    try:
        post_id = uuid.UUID(str(request.path_params["post_id"]))
    except (KeyError, ValueError):
        raise NotFound("Post")
    post = await post_service.get_post_by_id(post_id, db)
    return post.author_id


@router.post("", response_model=PostOut, status_code=201)
async def create_post(
    body: CreatePostRequest,
    user: User = Depends(require_permission("post.create")),
    db: AsyncSession = Depends(get_db),
):
    post = await post_service.create_post(
        author=user,
        title=body.title,
        content=body.content,
        status=body.status,
        tags=body.tags,
        is_public=body.is_public,
        author_id=body.author_id,
        db=db,
    )
    return PostOut.model_validate(post)


@router.get("", response_model=list[PostOut])
async def list_posts(
    db: AsyncSession = Depends(get_db),
    tag: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    posts = await post_service.list_public_posts(db, skip, limit, tag=tag)
    return [PostOut.model_validate(p) for p in posts]


@router.get("/mine", response_model=list[PostOut])
async def list_my_posts(
    user: User = Depends(require_authenticated),
    db: AsyncSession = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    posts = await post_service.list_own_posts(user, db, skip, limit)
    return [PostOut.model_validate(p) for p in posts]


@router.get("/{post_id}", response_model=PostOut)
async def get_post(
    post_id: uuid.UUID,
    viewer: User | None = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    post = await post_service.get_visible_post(post_id, viewer, db)
    return PostOut.model_validate(post)


@router.patch("/{post_id}", response_model=PostOut)
async def update_post(
    post_id: uuid.UUID,
    body: UpdatePostRequest,
    user: User = Depends(require_permission("post.update.own", owner_id=_post_author)),
    db: AsyncSession = Depends(get_db),
):
    post = await post_service.update_post(
        post_id,
        db,
        title=body.title,
        content=body.content,
        status=body.status,
        tags=body.tags,
        is_public=body.is_public,
    )
    return PostOut.model_validate(post)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: uuid.UUID,
    user: User = Depends(require_permission("post.delete.own", owner_id=_post_author)),
    db: AsyncSession = Depends(get_db),
):
    await post_service.delete_post(post_id, db)
    return MessageResponse(detail="Post deleted successfully")


@router.post("/{post_id}/moderate", response_model=PostOut)
async def moderate_post(
    post_id: uuid.UUID,
    body: ModeratePostRequest,
    user: User = Depends(require_permission("post.moderate")),
    db: AsyncSession = Depends(get_db),
):
    post = await post_service.moderate_post(post_id, body.status, db)
    return PostOut.model_validate(post)
