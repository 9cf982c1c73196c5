from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_identity, get_db
from app.api.http_errors import value_error
from app.core.errors import ValidationError
from app.core.security import TokenIdentity
from app.schemas.posts import PostCreateRequest, PostCreateResponse, PostListResponse, PostOut
from app.services.posts import create_post, list_visible_posts

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", response_model=PostCreateResponse)
async def create(
    payload: PostCreateRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    try:
        post = await create_post(db, identity.user_id, payload.content)
        await db.commit()
    except ValidationError as e:
        await db.rollback()
        raise value_error(
            e,
            code_statuses={"empty_content": 400},
            detail_overrides={"empty_content": "Post content must not be empty"},
            default_detail="Failed to create post",
        ) from e

    return PostCreateResponse(message="Post created successfully", id=post.id)


@router.get("/user/{user_id}", response_model=PostListResponse)
async def visible_posts(
    user_id: int,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    posts = await list_visible_posts(db, viewer_id=identity.user_id, subject_id=user_id)
    return PostListResponse(
        posts=[
            PostOut(id=p.id, author_id=p.author_id, content=p.content, created_at=p.created_at)
            for p in posts
        ]
    )
