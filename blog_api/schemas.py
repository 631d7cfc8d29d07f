from datetime import datetime, timezone
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, field_validator

from blog_api.models import (
    SLUG_MAX_LENGTH,
    TAG_NAME_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    USERNAME_MAX_LENGTH,
)

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"

TagName = Annotated[str, Field(min_length=1, max_length=TAG_NAME_MAX_LENGTH)]


# --- User ---

class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=USERNAME_MAX_LENGTH)
    email: EmailStr
    password: str = Field(min_length=8)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    token: str


class UserResponse(BaseModel):
    username: str
    email: str


# --- Article ---

class ArticleCreate(BaseModel):
    slug: str = Field(min_length=1, max_length=SLUG_MAX_LENGTH, pattern=SLUG_PATTERN)
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    body: str = Field(min_length=1)
    tags: list[TagName] = []


class AuthorResponse(BaseModel):
    username: str
    following: bool


class ArticleResponse(BaseModel):
    """Wire shape of an article as seen by one viewer."""

    slug: str
    title: str
    body: str
    created_at: datetime = Field(serialization_alias="createdAt")
    favorited: bool
    tags: list[str]
    author: AuthorResponse

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes; stored values are always UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_articles: int
    total_users: int
    total_tags: int
    cache_info: dict = {}
