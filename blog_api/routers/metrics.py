from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.cache import cache
from blog_api.database import get_db
from blog_api.schemas import MetricsResponse
from blog_api.services import article_store, tag_service, user_service

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("", response_model=MetricsResponse)
async def get_metrics(db: AsyncSession = Depends(get_db)):
    return MetricsResponse(
        total_articles=await article_store.count_articles(db),
        total_users=await user_service.count_users(db),
        total_tags=await tag_service.count_tags(db),
        cache_info=cache.stats,
    )
