"""
Article service: listing and creation of articles.

Design notes
------------
- A listing is one SELECT for the page (articles joined to authors), one
  for the page's tags and, for a signed-in viewer, two membership checks
  for ``favorited`` / ``author.following``.  The count does not depend on
  the number of rows returned.
- ``create_article`` owns its transaction: tag reconciliation, the article
  insert and the tag links commit together or not at all.  Any exception,
  including cancellation, rolls the whole unit back.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.cache import cache
from blog_api.errors import NotFound, Unauthorized, ValidationError
from blog_api.models import ArticleRow, Viewer
from blog_api.schemas import ArticleCreate, ArticleResponse
from blog_api.services import article_store, derived_fields, tag_service
from blog_api.services.derived_fields import DerivedFields
from blog_api.services.filters import ArticleFilters, by_slug, compose
from blog_api.services.mapper import TagOrder, to_article_response

logger = logging.getLogger(__name__)


def _viewer_id(viewer: Optional[Viewer]) -> Optional[int]:
    return viewer.id if viewer is not None else None


async def _present(
    db: AsyncSession,
    rows: list[ArticleRow],
    viewer: Optional[Viewer],
) -> list[ArticleResponse]:
    derived = await derived_fields.resolve(db, rows, _viewer_id(viewer))
    tag_names = await article_store.fetch_tag_names(db, [row.id for row in rows])
    return [
        to_article_response(row, derived[row.id], tag_names.get(row.id, []), TagOrder.NAME)
        for row in rows
    ]


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def list_articles(
    db: AsyncSession,
    filters: ArticleFilters,
    viewer: Optional[Viewer] = None,
) -> list[ArticleResponse]:
    """
    Return the articles matching *filters*, newest first.

    Raises ``Unauthorized`` for ``feed`` / ``favorite`` without a viewer.
    """
    query = compose(filters, _viewer_id(viewer))
    rows = await article_store.select_articles(db, query)
    return await _present(db, rows, viewer)


async def get_article(
    db: AsyncSession,
    slug: str,
    viewer: Optional[Viewer] = None,
) -> ArticleResponse:
    rows = await article_store.select_articles(db, by_slug(slug))
    if not rows:
        raise NotFound("Article not found")
    return (await _present(db, rows, viewer))[0]


async def create_article(
    db: AsyncSession,
    data: ArticleCreate,
    viewer: Optional[Viewer],
) -> ArticleResponse:
    """
    Create an article authored by *viewer* and return it.

    The response lists tags in request order.  ``favorited`` is always
    false for a new article; ``author.following`` reflects the follows
    table, so it is false unless the viewer follows themselves.
    """
    if viewer is None:
        raise Unauthorized()

    created_at = datetime.now(timezone.utc)
    try:
        # Friendlier than waiting for the constraint; the constraint still
        # decides when two requests race for the same slug.
        if await article_store.slug_exists(db, data.slug):
            raise ValidationError("slug", "has already been taken")

        tag_ids = await tag_service.reconcile(db, data.tags)
        article_id = await article_store.insert_article(
            db,
            slug=data.slug,
            title=data.title,
            body=data.body,
            author_id=viewer.id,
            created_at=created_at,
        )
        await article_store.insert_article_tags(db, article_id, tag_ids)
        following = viewer.id in await derived_fields.followed_author_ids(db, viewer.id, [viewer.id])
        await db.commit()
    except BaseException:
        await db.rollback()
        raise

    logger.info("Article %r created by %s with %d tag(s)", data.slug, viewer.username, len(tag_ids))
    await cache.invalidate_tags()

    row = ArticleRow(
        id=article_id,
        slug=data.slug,
        title=data.title,
        body=data.body,
        created_at=created_at,
        author_id=viewer.id,
        author_username=viewer.username,
    )
    return to_article_response(
        row,
        DerivedFields(favorited=False, author_following=following),
        list(dict.fromkeys(data.tags)),
        TagOrder.GIVEN,
    )
