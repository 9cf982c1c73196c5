from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class PostCreateRequest(BaseModel):
    # Blank content is rejected by the service with a 400, not here.
    content: str = Field(max_length=10_000)


class PostCreateResponse(BaseModel):
    message: str
    id: int


class PostOut(BaseModel):
    id: int
    author_id: int
    content: str
    created_at: datetime | None = None


class PostListResponse(BaseModel):
    posts: list[PostOut]
