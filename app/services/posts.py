from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import EmptyContent
from app.models.post import Post
from app.services.friends import are_friends

logger = logging.getLogger(__name__)


async def create_post(db: AsyncSession, author_id: int, content: str) -> Post:
    if not isinstance(content, str) or not content.strip():
        raise EmptyContent()

    post = Post(author_id=author_id, content=content)
    db.add(post)
    await db.flush()

    logger.info("User %s created post id=%s", author_id, post.id)
    return post


async def can_view(db: AsyncSession, viewer_id: int, subject_id: int) -> bool:
    """Own posts are always visible; otherwise an accepted friendship in
    either direction is required."""
    if viewer_id == subject_id:
        return True
    return await are_friends(db, viewer_id, subject_id)


async def list_visible_posts(db: AsyncSession, viewer_id: int, subject_id: int) -> list[Post]:
    if not await can_view(db, viewer_id, subject_id):
        return []

    q = select(Post).where(Post.author_id == subject_id).order_by(Post.id.asc())
    rows = (await db.execute(q)).scalars().all()
    return list(rows)
