"""
Article store: executes ``ArticleQuery`` values and writes article rows.

Every function takes the caller's session first; none of them commits.
"""
from datetime import datetime
from functools import singledispatch

from sqlalchemy import Select, and_, asc, desc, exists, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.database import violated_constraint
from blog_api.errors import ValidationError
from blog_api.models import (
    UQ_ARTICLES_SLUG,
    ArticleRow,
    article_tags,
    articles,
    favorites,
    follows,
    tags,
    users,
)
from blog_api.services.filters import (
    ArticleQuery,
    AuthorFollowedBy,
    AuthorIs,
    FavoritedBy,
    HasTag,
    OrderKey,
    SlugIs,
)

# ---------------------------------------------------------------------------
# Criterion -> SQL
# ---------------------------------------------------------------------------

@singledispatch
def criterion_clause(criterion):
    raise TypeError(f"unsupported article criterion: {criterion!r}")


@criterion_clause.register
def _(criterion: AuthorIs):
    return users.c.username == criterion.username


@criterion_clause.register
def _(criterion: SlugIs):
    return articles.c.slug == criterion.slug


@criterion_clause.register
def _(criterion: HasTag):
    return exists(
        select(article_tags.c.article_id)
        .join(tags, tags.c.id == article_tags.c.tag_id)
        .where(article_tags.c.article_id == articles.c.id, tags.c.name == criterion.name)
    )


@criterion_clause.register
def _(criterion: AuthorFollowedBy):
    return exists(
        select(follows.c.following_id).where(
            follows.c.follower_id == criterion.user_id,
            follows.c.following_id == articles.c.author_id,
        )
    )


@criterion_clause.register
def _(criterion: FavoritedBy):
    return exists(
        select(favorites.c.article_id).where(
            favorites.c.user_id == criterion.user_id,
            favorites.c.article_id == articles.c.id,
        )
    )


def _order_clause(key: OrderKey):
    column = articles.c[key.column]
    return desc(column) if key.descending else asc(column)


def build_select(query: ArticleQuery) -> Select:
    """Return the single SELECT that answers *query* (articles joined to authors)."""
    stmt = (
        select(
            articles.c.id,
            articles.c.slug,
            articles.c.title,
            articles.c.body,
            articles.c.created_at,
            articles.c.author_id,
            users.c.username.label("author_username"),
        )
        .join(users, users.c.id == articles.c.author_id)
        .order_by(*(_order_clause(key) for key in query.order))
    )
    if query.criteria:
        stmt = stmt.where(and_(*(criterion_clause(c) for c in query.criteria)))
    return stmt


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def select_articles(db: AsyncSession, query: ArticleQuery) -> list[ArticleRow]:
    result = await db.execute(build_select(query))
    return [ArticleRow(**row) for row in result.mappings()]


async def fetch_tag_names(db: AsyncSession, article_ids: list[int]) -> dict[int, list[str]]:
    """
    Return the attached tag names for each of *article_ids* in one query.

    Names come back sorted; articles without tags are absent from the map.
    """
    if not article_ids:
        return {}
    q = (
        select(article_tags.c.article_id, tags.c.name)
        .join(tags, tags.c.id == article_tags.c.tag_id)
        .where(article_tags.c.article_id.in_(article_ids))
        .order_by(tags.c.name)
    )
    names: dict[int, list[str]] = {}
    for article_id, name in (await db.execute(q)).all():
        names.setdefault(article_id, []).append(name)
    return names


async def slug_exists(db: AsyncSession, slug: str) -> bool:
    q = select(exists().where(articles.c.slug == slug))
    return bool((await db.execute(q)).scalar())


async def count_articles(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(articles))).scalar_one()


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def insert_article(
    db: AsyncSession,
    *,
    slug: str,
    title: str,
    body: str,
    author_id: int,
    created_at: datetime,
) -> int:
    """
    Insert one article row and return its id.

    A unique violation on ``slug`` becomes ``ValidationError("slug", ...)``;
    any other integrity error propagates unchanged.
    """
    stmt = insert(articles).values(
        slug=slug,
        title=title,
        body=body,
        author_id=author_id,
        created_at=created_at,
    )
    try:
        result = await db.execute(stmt)
    except IntegrityError as exc:
        if violated_constraint(exc) == UQ_ARTICLES_SLUG:
            raise ValidationError("slug", "has already been taken") from exc
        raise
    return result.inserted_primary_key[0]


async def insert_article_tags(db: AsyncSession, article_id: int, tag_ids: list[int]) -> None:
    if not tag_ids:
        return
    await db.execute(
        insert(article_tags),
        [{"article_id": article_id, "tag_id": tag_id} for tag_id in tag_ids],
    )
