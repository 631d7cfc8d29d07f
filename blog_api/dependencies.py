import logging
from typing import Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.database import get_db
from blog_api.errors import Unauthorized
from blog_api.models import Viewer
from blog_api.security import decode_token
from blog_api.services import user_service
from blog_api.services.filters import ArticleFilters

logger = logging.getLogger(__name__)

# auto_error=False: a missing header means "anonymous", not 403.
bearer_scheme = HTTPBearer(auto_error=False)


class ArticleListParams:
    """
    Query parameters of ``GET /articles``.

    All are optional and combine with AND.  ``feed`` and ``favorite``
    need an authenticated viewer; that check belongs to the filter
    composer, not to parsing.
    """

    def __init__(
        self,
        author: Optional[str] = Query(None, description="Author username (exact match)."),
        tag: Optional[str] = Query(None, description="Tag name (exact match)."),
        feed: bool = Query(False, description="Only authors the viewer follows."),
        favorite: bool = Query(False, description="Only articles the viewer favorited."),
    ) -> None:
        self.author = author
        self.tag = tag
        self.feed = feed
        self.favorite = favorite

    def to_filters(self) -> ArticleFilters:
        return ArticleFilters(author=self.author, tag=self.tag, feed=self.feed, favorite=self.favorite)


async def get_optional_viewer(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[Viewer]:
    """
    Resolve the bearer token to a ``Viewer``; no token means anonymous.

    A token that is present but invalid, expired or for an unknown user is
    rejected rather than silently downgraded to anonymous.
    """
    if credentials is None:
        return None
    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        logger.warning("Access token invalid or expired")
        raise Unauthorized()
    if payload.get("type") != "access" or not str(payload.get("sub", "")).isdigit():
        logger.warning("Access token with unexpected claims")
        raise Unauthorized()

    viewer = await user_service.get_viewer(db, int(payload["sub"]))
    if viewer is None:
        logger.warning("Access token for unknown user %s", payload["sub"])
        raise Unauthorized()
    return viewer


async def require_viewer(viewer: Optional[Viewer] = Depends(get_optional_viewer)) -> Viewer:
    if viewer is None:
        raise Unauthorized()
    return viewer
