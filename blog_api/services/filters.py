"""
Filter composer: query parameters + viewer -> ``ArticleQuery``.

The result is a plain value (criteria and order keys).  It carries no SQL;
``article_store`` is the only place that translates it for the database,
so the composition rules can be tested without one.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from blog_api.errors import Unauthorized


@dataclass(frozen=True)
class ArticleFilters:
    """Validated listing parameters; every field is optional."""

    author: Optional[str] = None
    tag: Optional[str] = None
    feed: bool = False
    favorite: bool = False


# ---------------------------------------------------------------------------
# Criteria (combined with AND)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AuthorIs:
    username: str


@dataclass(frozen=True)
class HasTag:
    name: str


@dataclass(frozen=True)
class AuthorFollowedBy:
    user_id: int


@dataclass(frozen=True)
class FavoritedBy:
    user_id: int


@dataclass(frozen=True)
class SlugIs:
    slug: str


Criterion = Union[AuthorIs, HasTag, AuthorFollowedBy, FavoritedBy, SlugIs]


@dataclass(frozen=True)
class OrderKey:
    column: str
    descending: bool = True


# Newest first; id breaks created_at ties so repeated calls agree.
NEWEST_FIRST: tuple[OrderKey, ...] = (OrderKey("created_at"), OrderKey("id"))


@dataclass(frozen=True)
class ArticleQuery:
    criteria: tuple[Criterion, ...] = ()
    order: tuple[OrderKey, ...] = NEWEST_FIRST


def compose(filters: ArticleFilters, viewer_id: Optional[int] = None) -> ArticleQuery:
    """
    Build the listing query for *filters* as seen by *viewer_id*.

    Raises ``Unauthorized`` when ``feed`` or ``favorite`` is requested
    without a viewer.
    """
    if (filters.feed or filters.favorite) and viewer_id is None:
        raise Unauthorized()

    criteria: list[Criterion] = []
    if filters.author is not None:
        criteria.append(AuthorIs(filters.author))
    if filters.tag is not None:
        criteria.append(HasTag(filters.tag))
    if filters.feed:
        criteria.append(AuthorFollowedBy(viewer_id))
    if filters.favorite:
        criteria.append(FavoritedBy(viewer_id))
    return ArticleQuery(criteria=tuple(criteria))


def by_slug(slug: str) -> ArticleQuery:
    return ArticleQuery(criteria=(SlugIs(slug),))
