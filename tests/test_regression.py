"""
Regression tests for cross-cutting behaviour.

1. Listing cost must not grow with the number of rows (X-Query-Count)
2. The validation schema must stay in step with the storage schema
3. CORS must not set allow_credentials=true with allow_origins=*
4. Every response carries the timing headers
"""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

import factories
from blog_api.models import articles, tags, users
from blog_api.schemas import ArticleCreate, UserCreate


# ---------------------------------------------------------------------------
# 1. Bounded query count for listings
# ---------------------------------------------------------------------------

async def _listing_query_count(client: AsyncClient, headers: dict | None = None) -> int:
    resp = await client.get("/articles", headers=headers or {})
    assert resp.status_code == 200
    return int(resp.headers["x-query-count"])


@pytest.mark.asyncio
async def test_listing_query_count_constant_for_viewer(async_client: AsyncClient, db_session: AsyncSession):
    viewer = await factories.create_user(db_session)
    author = await factories.create_user(db_session)
    await factories.follow(db_session, viewer, author)
    headers = factories.auth_headers(viewer)

    slug = await factories.create_article(db_session, author, tag_names=("t1",))
    await factories.favorite(db_session, viewer, slug)
    small = await _listing_query_count(async_client, headers)

    for i in range(10):
        slug = await factories.create_article(db_session, author, tag_names=(f"t{i}", "shared"))
        await factories.favorite(db_session, viewer, slug)
    large = await _listing_query_count(async_client, headers)

    assert small == large


@pytest.mark.asyncio
async def test_anonymous_listing_skips_viewer_lookups(async_client: AsyncClient, db_session: AsyncSession):
    viewer = await factories.create_user(db_session)
    author = await factories.create_user(db_session)
    await factories.create_article(db_session, author)

    anonymous = await _listing_query_count(async_client)
    signed_in = await _listing_query_count(async_client, factories.auth_headers(viewer))
    # viewer lookup + favorites + follows
    assert signed_in - anonymous == 3


# ---------------------------------------------------------------------------
# 2. Validation schema vs storage schema
# ---------------------------------------------------------------------------

def _max_length(metadata) -> int | None:
    for meta in metadata:
        if getattr(meta, "max_length", None) is not None:
            return meta.max_length
    return None


def test_article_create_fields_match_articles_table():
    storage = set(articles.c.keys()) - {"id", "author_id", "created_at"}
    validation = set(ArticleCreate.model_fields) - {"tags"}
    assert validation == storage


def test_user_create_fields_match_users_table():
    storage = set(users.c.keys()) - {"id", "created_at", "updated_at"}
    assert set(UserCreate.model_fields) == storage


@pytest.mark.parametrize(
    "model, field, column",
    [
        (ArticleCreate, "slug", articles.c.slug),
        (ArticleCreate, "title", articles.c.title),
        (UserCreate, "username", users.c.username),
    ],
)
def test_validation_lengths_match_columns(model, field, column):
    assert _max_length(model.model_fields[field].metadata) == column.type.length


def test_tag_name_length_matches_column():
    # tags: list[Annotated[str, Field(...)]]
    item_field = ArticleCreate.model_fields["tags"].annotation.__args__[0].__metadata__[0]
    assert _max_length(item_field.metadata) == tags.c.name.type.length


# ---------------------------------------------------------------------------
# 3. CORS headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cors_no_credentials_with_wildcard_origin(async_client: AsyncClient):
    resp = await async_client.options(
        "/articles",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert resp.headers.get("access-control-allow-credentials", "").lower() != "true"


# ---------------------------------------------------------------------------
# 4. Timing headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_response_timing_headers(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert "x-response-time-ms" in resp.headers
    assert int(resp.headers["x-query-count"]) == 0
