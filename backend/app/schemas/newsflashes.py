"""Schemas for newsflash and comment endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, constr


class NewsflashCreate(BaseModel):
    """Payload for publishing a newsflash.

    With neither ``recipients`` nor ``groups`` the post goes to all of the
    author's friends.
    """

    content: constr(strip_whitespace=True, min_length=1, max_length=5000) = Field(
        ..., description="Text of the newsflash"
    )
    image: str | None = Field(default=None, max_length=512, description="Optional image URL")
    sections: list[constr(strip_whitespace=True, min_length=1, max_length=64)] = Field(
        default_factory=list, description="Section names the post is filed under"
    )
    recipients: list[int] = Field(default_factory=list, description="Explicit recipient ids")
    groups: list[int] = Field(default_factory=list, description="Groups whose members receive the post")


class NewsflashRead(BaseModel):
    """Representation of a newsflash returned from the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    author_id: int
    content: str
    image: str | None = None
    sections: list[str] = Field(default_factory=list)
    recipients: list[int] = Field(default_factory=list)
    groups: list[int] = Field(default_factory=list)
    created_at: datetime


class CommentCreate(BaseModel):
    """Payload for commenting on a newsflash."""

    content: constr(strip_whitespace=True, min_length=1, max_length=2000) = Field(
        ..., description="Text of the comment"
    )


class CommentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    newsflash_id: int
    author_id: int
    content: str
    created_at: datetime
