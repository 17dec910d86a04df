"""
Post service.

Permission checks happen in the controller (via `require_permission`,
with the post's author as owner).  The only check left here is
visibility: drafts, archived and private posts are shown to their
author and to holders of `post.moderate` only.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequest, NotFound, PermissionDenied
from app.models.post import Post, PostStatus
from app.models.user import User
from app.rbac.resolver import check_permission


async def get_post_by_id(post_id: uuid.UUID, db: AsyncSession) -> Post:
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFound("Post", post_id)
    return post


def is_publicly_visible(post: Post) -> bool:
    return post.status == PostStatus.PUBLISHED and post.is_public


async def get_visible_post(post_id: uuid.UUID, viewer: User | None, db: AsyncSession) -> Post:
    post = await get_post_by_id(post_id, db)
    if is_publicly_visible(post):
        return post
    if viewer is not None:
        if viewer.id == post.author_id:
            return post
        if await check_permission(viewer.id, "post.moderate", None, db):
            return post
    # Hidden posts look exactly like missing ones.
    raise NotFound("Post", post_id)


async def create_post(
    author: User,
    title: str,
    content: str,
    db: AsyncSession,
    status: PostStatus = PostStatus.PUBLISHED,
    tags: list[str] | None = None,
    is_public: bool = True,
    author_id: uuid.UUID | None = None,
) -> Post:
    """Create a post.  Posting on someone else's behalf needs `post.manage`."""
    owner_id = author_id or author.id
    if owner_id != author.id:
        if not await check_permission(author.id, "post.manage", None, db):
            raise PermissionDenied("post.manage")
        target = await db.get(User, owner_id)
        if target is None or not target.is_active:
            raise BadRequest("Invalid or inactive author")

    post = Post(
        id=uuid.uuid4(),
        title=title,
        content=content,
        author_id=owner_id,
        status=status,
        tags=list(tags or []),
        is_public=is_public,
    )
    db.add(post)
    await db.flush()
    return post


async def list_public_posts(
    db: AsyncSession,
    skip: int = 0,
    limit: int = 50,
    tag: str | None = None,
) -> list[Post]:
    stmt = (
        select(Post)
        .where(Post.status == PostStatus.PUBLISHED, Post.is_public == True)  # noqa: E712
        .order_by(Post.created_at.desc(), Post.id)
    )
    if tag is None:
        result = await db.execute(stmt.offset(skip).limit(limit))
        return list(result.scalars().all())

    # Tags are a JSON list; membership is not portable SQL, so filter here.
    result = await db.execute(stmt)
    posts = [p for p in result.scalars().all() if tag in (p.tags or [])]
    return posts[skip : skip + limit]


async def list_own_posts(author: User, db: AsyncSession, skip: int = 0, limit: int = 50) -> list[Post]:
    stmt = (
        select(Post)
        .where(Post.author_id == author.id)
        .order_by(Post.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_post(
    post_id: uuid.UUID,
    db: AsyncSession,
    title: str | None = None,
    content: str | None = None,
    status: PostStatus | None = None,
    tags: list[str] | None = None,
    is_public: bool | None = None,
) -> Post:
    post = await get_post_by_id(post_id, db)
    if title is not None:
        post.title = title
    if content is not None:
        post.content = content
    if status is not None:
        post.status = status
    if tags is not None:
        post.tags = list(tags)
    if is_public is not None:
        post.is_public = is_public
    await db.flush()
    return post


async def delete_post(post_id: uuid.UUID, db: AsyncSession) -> None:
    post = await get_post_by_id(post_id, db)
    await db.delete(post)
    await db.flush()


async def moderate_post(post_id: uuid.UUID, status: PostStatus, db: AsyncSession) -> Post:
    post = await get_post_by_id(post_id, db)
    post.status = status
    await db.flush()
    return post
