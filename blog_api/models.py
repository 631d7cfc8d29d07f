"""
Storage schema and row types.

Tables are plain SQLAlchemy Core ``Table`` objects; rows leave the store as
frozen dataclasses so nothing outside the store module holds a live,
mutable ORM object.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)

from blog_api.database import metadata

USERNAME_MAX_LENGTH = 30
EMAIL_MAX_LENGTH = 255
SLUG_MAX_LENGTH = 255
TITLE_MAX_LENGTH = 255
TAG_NAME_MAX_LENGTH = 100

# Unique constraint names; services map violations of these to field errors
UQ_USERS_USERNAME = "uq_users_username"
UQ_USERS_EMAIL = "uq_users_email"
UQ_ARTICLES_SLUG = "uq_articles_slug"
UQ_TAGS_NAME = "uq_tags_name"

# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(USERNAME_MAX_LENGTH), nullable=False),
    Column("email", String(EMAIL_MAX_LENGTH), nullable=False),
    Column("password", String(255), nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    UniqueConstraint("username", name=UQ_USERS_USERNAME),
    UniqueConstraint("email", name=UQ_USERS_EMAIL),
)

articles = Table(
    "articles",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("slug", String(SLUG_MAX_LENGTH), nullable=False),
    Column("title", String(TITLE_MAX_LENGTH), nullable=False),
    Column("body", Text, nullable=False),
    Column(
        "author_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("created_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("slug", name=UQ_ARTICLES_SLUG),
    # Author page and feed listings, newest first
    Index("ix_articles_author_id_created_at", "author_id", "created_at"),
    Index("ix_articles_created_at_id", "created_at", "id"),
)

tags = Table(
    "tags",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(TAG_NAME_MAX_LENGTH), nullable=False),
    UniqueConstraint("name", name=UQ_TAGS_NAME),
)

article_tags = Table(
    "article_tags",
    metadata,
    Column("article_id", Integer, ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    Index("ix_article_tags_tag_id", "tag_id"),
)

favorites = Table(
    "favorites",
    metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("article_id", Integer, ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True),
    Index("ix_favorites_article_id", "article_id"),
)

follows = Table(
    "follows",
    metadata,
    Column("follower_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("following_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Index("ix_follows_following_id", "following_id"),
)


# ---------------------------------------------------------------------------
# Row types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UserRow:
    id: int
    username: str
    email: str
    password: str


@dataclass(frozen=True)
class TagRow:
    id: int
    name: str


@dataclass(frozen=True)
class ArticleRow:
    """An article joined to its author's username."""

    id: int
    slug: str
    title: str
    body: str
    created_at: datetime
    author_id: int
    author_username: str


@dataclass(frozen=True)
class Viewer:
    """The authenticated caller of a request."""

    id: int
    username: str
