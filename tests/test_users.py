"""
User, tag-vocabulary and metrics endpoint tests.

Users exist here mainly to obtain identities: registration, login, and
the bearer token round trip through ``GET /user``.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

import factories
from blog_api.models import Viewer, users

NEW_USER = {"username": "jake", "email": "jake@example.com", "password": "jakejakejake"}


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_user(async_client: AsyncClient, db_session: AsyncSession):
    resp = await async_client.post("/users", json=NEW_USER)
    assert resp.status_code == 201
    assert resp.json() == {"username": "jake", "email": "jake@example.com"}

    stored = (await db_session.execute(select(users.c.password).where(users.c.username == "jake"))).scalar_one()
    await db_session.commit()
    assert stored != NEW_USER["password"]


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["username", "email"])
async def test_create_user_duplicate_field(async_client: AsyncClient, field: str):
    assert (await async_client.post("/users", json=NEW_USER)).status_code == 201

    clash = {"username": "other", "email": "other@example.com", "password": "otherother"}
    clash[field] = NEW_USER[field]
    resp = await async_client.post("/users", json=clash)
    assert resp.status_code == 400
    assert resp.json()["errors"] == {field: ["has already been taken"]}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"username": "x" * 31}, "username"),
        ({"email": "not-an-email"}, "email"),
        ({"password": "short"}, "password"),
    ],
)
async def test_create_user_validation(async_client: AsyncClient, overrides, field):
    resp = await async_client.post("/users", json={**NEW_USER, **overrides})
    assert resp.status_code == 400
    assert field in resp.json()["errors"]


# ---------------------------------------------------------------------------
# Login / current user
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login_and_current_user(async_client: AsyncClient):
    await async_client.post("/users", json=NEW_USER)

    resp = await async_client.post("/users/login", json={"email": NEW_USER["email"], "password": NEW_USER["password"]})
    assert resp.status_code == 200
    token = resp.json()["token"]

    resp = await async_client.get("/user", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["username"] == "jake"


@pytest.mark.asyncio
async def test_login_wrong_password(async_client: AsyncClient):
    await async_client.post("/users", json=NEW_USER)

    resp = await async_client.post("/users/login", json={"email": NEW_USER["email"], "password": "wrong-password"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "Unauthorized"}


@pytest.mark.asyncio
async def test_current_user_requires_auth(async_client: AsyncClient):
    resp = await async_client.get("/user")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_token_for_unknown_user_is_unauthorized(async_client: AsyncClient):
    ghost = Viewer(id=99999, username="ghost")
    resp = await async_client.get("/articles", headers=factories.auth_headers(ghost))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_logged_in_user_can_create_article(async_client: AsyncClient):
    await async_client.post("/users", json=NEW_USER)
    token = (
        await async_client.post("/users/login", json={"email": NEW_USER["email"], "password": NEW_USER["password"]})
    ).json()["token"]

    resp = await async_client.post(
        "/articles",
        json={"slug": "first-post", "title": "First", "body": "Hello", "tags": ["intro"]},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert resp.status_code == 201
    assert resp.json()["author"] == {"username": "jake", "following": False}


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_tags_sorted(async_client: AsyncClient, db_session: AsyncSession):
    author = await factories.create_user(db_session)
    await factories.create_article(db_session, author, tag_names=("zeta", "alpha"))
    await factories.create_tag(db_session, "unused")

    resp = await async_client.get("/tags")
    assert resp.status_code == 200
    # tags outlive their articles' links; unlinked tags are still listed
    assert resp.json() == ["alpha", "unused", "zeta"]


@pytest.mark.asyncio
async def test_list_tags_empty(async_client: AsyncClient):
    resp = await async_client.get("/tags")
    assert resp.json() == []


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_metrics_endpoint_empty(async_client: AsyncClient):
    resp = await async_client.get("/metrics")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_articles"] == 0
    assert data["total_users"] == 0
    assert data["total_tags"] == 0
    assert {"hits", "misses", "hit_rate"} <= set(data["cache_info"])


@pytest.mark.asyncio
async def test_metrics_endpoint(async_client: AsyncClient, db_session: AsyncSession):
    author = await factories.create_user(db_session)
    await factories.create_article(db_session, author, tag_names=("a", "b"))
    await factories.create_article(db_session, author, tag_names=("b",))

    data = (await async_client.get("/metrics")).json()
    assert data["total_articles"] == 2
    assert data["total_users"] == 1
    assert data["total_tags"] == 2
