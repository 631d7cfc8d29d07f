from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.database import get_db
from blog_api.dependencies import ArticleListParams, get_optional_viewer, require_viewer
from blog_api.models import Viewer
from blog_api.schemas import ArticleCreate, ArticleResponse
from blog_api.services import article_service

router = APIRouter(prefix="/articles", tags=["articles"])


@router.get("", response_model=list[ArticleResponse])
async def list_articles(
    params: ArticleListParams = Depends(),
    viewer: Optional[Viewer] = Depends(get_optional_viewer),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.list_articles(db, params.to_filters(), viewer)


@router.get("/{slug}", response_model=ArticleResponse)
async def get_article(
    slug: str,
    viewer: Optional[Viewer] = Depends(get_optional_viewer),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.get_article(db, slug, viewer)


@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(
    data: ArticleCreate,
    viewer: Viewer = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.create_article(db, data, viewer)
