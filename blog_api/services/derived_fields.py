"""
Viewer-relative article fields: ``favorited`` and ``author.following``.

A page of articles costs at most two extra queries (one per field), each a
membership check against the whole page.  Anonymous viewers cost none.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.models import ArticleRow, favorites, follows


@dataclass(frozen=True)
class DerivedFields:
    favorited: bool = False
    author_following: bool = False


ANONYMOUS = DerivedFields()


async def favorited_article_ids(db: AsyncSession, viewer_id: int, article_ids: Iterable[int]) -> set[int]:
    """Subset of *article_ids* the viewer has favorited."""
    article_ids = set(article_ids)
    if not article_ids:
        return set()
    q = select(favorites.c.article_id).where(
        favorites.c.user_id == viewer_id,
        favorites.c.article_id.in_(article_ids),
    )
    return set((await db.scalars(q)).all())


async def followed_author_ids(db: AsyncSession, viewer_id: int, author_ids: Iterable[int]) -> set[int]:
    """
    Subset of *author_ids* the viewer follows.

    A viewer's own id is only included when a self-follow row exists.
    """
    author_ids = set(author_ids)
    if not author_ids:
        return set()
    q = select(follows.c.following_id).where(
        follows.c.follower_id == viewer_id,
        follows.c.following_id.in_(author_ids),
    )
    return set((await db.scalars(q)).all())


async def resolve(
    db: AsyncSession,
    rows: list[ArticleRow],
    viewer_id: Optional[int] = None,
) -> dict[int, DerivedFields]:
    """Map each article id in *rows* to its fields as seen by *viewer_id*."""
    if viewer_id is None or not rows:
        return {row.id: ANONYMOUS for row in rows}

    favorited = await favorited_article_ids(db, viewer_id, (row.id for row in rows))
    followed = await followed_author_ids(db, viewer_id, (row.author_id for row in rows))
    return {
        row.id: DerivedFields(
            favorited=row.id in favorited,
            author_following=row.author_id in followed,
        )
        for row in rows
    }
