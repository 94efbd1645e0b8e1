"""Pydantic schemas for post requests and responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.core.config import settings
from app.schemas.user import AuthorProfile


class PostCreate(BaseModel):
    """Input of the posts.create procedure."""

    model_config = ConfigDict(extra="forbid")

    content: str = Field(
        ...,
        description="Post text, 1 to 255 characters.",
        examples=["Hello world"],
    )

    @field_validator("content")
    @classmethod
    def _check_length(cls, value: str) -> str:
        if len(value) < 1:
            raise ValueError("Can't create empty post")
        if len(value) > settings.app.post_max_chars:
            raise ValueError("Post too long")
        return value


class PostsByUserQuery(BaseModel):
    """Input of the posts.getPostsByUserId procedure."""

    id: str = Field(..., description="Identity provider user id of the author.")


class PostRead(BaseModel):
    """A persisted post."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    content: str
    author_id: str
    created_at: datetime


class FullPost(BaseModel):
    """A post paired with its author's public profile."""

    post: PostRead
    author: AuthorProfile
