"""Projection of article rows into ``ArticleResponse``."""
from enum import Enum
from typing import Sequence

from blog_api.models import ArticleRow
from blog_api.schemas import ArticleResponse, AuthorResponse
from blog_api.services.derived_fields import DerivedFields


class TagOrder(str, Enum):
    # names exactly as the caller passed them (creation echoes the request)
    GIVEN = "given"
    # alphabetical (listings, single-article reads)
    NAME = "name"


def to_article_response(
    row: ArticleRow,
    derived: DerivedFields,
    tag_names: Sequence[str],
    tag_order: TagOrder,
) -> ArticleResponse:
    names = sorted(tag_names) if tag_order is TagOrder.NAME else list(tag_names)
    return ArticleResponse(
        slug=row.slug,
        title=row.title,
        body=row.body,
        created_at=row.created_at,
        favorited=derived.favorited,
        tags=names,
        author=AuthorResponse(username=row.author_username, following=derived.author_following),
    )
