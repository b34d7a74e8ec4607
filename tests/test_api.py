"""
HTTP surface tests: routing, status codes, camelCase envelopes, the
``{"errors": ...}`` body and the response headers added by middleware.

Identity travels in the ``X-Username`` header; these tests never touch
the database directly.
"""
import pytest
from httpx import AsyncClient

from conduit.config import settings


def _as(username: str) -> dict[str, str]:
    return {settings.IDENTITY_HEADER: username}


async def _register(client: AsyncClient, username: str, **extra) -> None:
    resp = await client.post("/api/users", json={"user": {"username": username, **extra}})
    assert resp.status_code == 201


async def _post_article(client: AsyncClient, username: str, title: str, tags: list[str] | None = None) -> dict:
    resp = await client.post(
        "/api/articles",
        json={
            "article": {
                "title": title,
                "description": "Description",
                "body": "Body",
                "tagList": tags or [],
            }
        },
        headers=_as(username),
    )
    assert resp.status_code == 201
    return resp.json()["article"]


# ---------------------------------------------------------------------------
# Health and middleware
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_timing_headers(async_client: AsyncClient):
    await _register(async_client, "alice")
    await _post_article(async_client, "alice", "Header Check")

    resp = await async_client.get("/api/articles")
    assert resp.status_code == 200
    assert float(resp.headers["x-response-time-ms"]) >= 0
    # COUNT, page SELECT with joined author, tag selectin, favorite counts.
    count = int(resp.headers["x-query-count"])
    assert count >= 4, f"Expected at least 4 queries for article list, got {count}"


@pytest.mark.asyncio
async def test_cors_no_credentials_with_wildcard_origin(async_client: AsyncClient):
    resp = await async_client.options(
        "/api/articles",
        headers={
            "Origin": "http://example.com",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert resp.headers.get("access-control-allow-origin") == "*"
    assert resp.headers.get("access-control-allow-credentials") != "true"


# ---------------------------------------------------------------------------
# Users and profiles
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_and_current_user(async_client: AsyncClient):
    await _register(async_client, "alice", bio="Hello")

    resp = await async_client.get("/api/user", headers=_as("alice"))
    assert resp.status_code == 200
    assert resp.json() == {"user": {"username": "alice", "bio": "Hello", "image": None}}


@pytest.mark.asyncio
async def test_register_duplicate_is_422(async_client: AsyncClient):
    await _register(async_client, "alice")
    resp = await async_client.post("/api/users", json={"user": {"username": "alice"}})
    assert resp.status_code == 422
    assert resp.json() == {"errors": {"username": ["has already been taken"]}}


@pytest.mark.asyncio
async def test_update_user(async_client: AsyncClient):
    await _register(async_client, "alice")
    resp = await async_client.put(
        "/api/user", json={"user": {"bio": "Updated"}}, headers=_as("alice")
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["bio"] == "Updated"


@pytest.mark.asyncio
async def test_current_user_requires_identity(async_client: AsyncClient):
    resp = await async_client.get("/api/user")
    assert resp.status_code == 401
    assert resp.json() == {"errors": {"request": ["Authentication required"]}}


@pytest.mark.asyncio
async def test_follow_over_http(async_client: AsyncClient):
    await _register(async_client, "alice")
    await _register(async_client, "bob")

    resp = await async_client.post("/api/profiles/bob/follow", headers=_as("alice"))
    assert resp.status_code == 200
    assert resp.json()["profile"] == {
        "username": "bob",
        "bio": None,
        "image": None,
        "following": True,
    }

    anonymous = await async_client.get("/api/profiles/bob")
    assert anonymous.json()["profile"]["following"] is False

    resp = await async_client.delete("/api/profiles/bob/follow", headers=_as("alice"))
    assert resp.json()["profile"]["following"] is False


@pytest.mark.asyncio
async def test_unknown_profile_is_404(async_client: AsyncClient):
    resp = await async_client.get("/api/profiles/nobody")
    assert resp.status_code == 404
    assert resp.json() == {"errors": {"profile": ["not found"]}}


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_article_envelope_uses_camel_case(async_client: AsyncClient):
    await _register(async_client, "alice")
    article = await _post_article(async_client, "alice", "A New Post", ["y", "x"])

    assert article["slug"] == "a-new-post"
    assert article["tagList"] == ["y", "x"]
    assert article["favoritesCount"] == 0
    assert article["favorited"] is False
    assert "createdAt" in article and "updatedAt" in article
    assert article["author"]["username"] == "alice"

    resp = await async_client.get("/api/articles")
    body = resp.json()
    assert body["articlesCount"] == 1
    assert body["articles"][0]["slug"] == "a-new-post"


@pytest.mark.asyncio
async def test_create_article_requires_identity(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/articles",
        json={"article": {"title": "T", "description": "D", "body": "B"}},
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_create_article_missing_title_is_422(async_client: AsyncClient):
    await _register(async_client, "alice")
    resp = await async_client.post(
        "/api/articles",
        json={"article": {"description": "D", "body": "B"}},
        headers=_as("alice"),
    )
    assert resp.status_code == 422
    assert "title" in resp.json()["errors"]


@pytest.mark.asyncio
async def test_list_filters_by_query_params(async_client: AsyncClient):
    await _register(async_client, "alice")
    await _register(async_client, "bob")
    await _post_article(async_client, "alice", "Tagged", ["python"])
    await _post_article(async_client, "bob", "Untagged")

    resp = await async_client.get("/api/articles", params={"tag": "python"})
    assert [a["slug"] for a in resp.json()["articles"]] == ["tagged"]

    resp = await async_client.get("/api/articles", params={"author": "bob", "limit": 10})
    assert resp.json()["articlesCount"] == 1


@pytest.mark.asyncio
async def test_list_rejects_bad_paging(async_client: AsyncClient):
    resp = await async_client.get("/api/articles", params={"limit": 0})
    assert resp.status_code == 422
    resp = await async_client.get("/api/articles", params={"offset": -1})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_feed_over_http(async_client: AsyncClient):
    await _register(async_client, "alice")
    await _register(async_client, "bob")
    await _post_article(async_client, "alice", "For Followers")

    empty = await async_client.get("/api/articles/feed", headers=_as("bob"))
    assert empty.status_code == 200
    assert empty.json() == {"articles": [], "articlesCount": 0}

    await async_client.post("/api/profiles/alice/follow", headers=_as("bob"))
    resp = await async_client.get("/api/articles/feed", headers=_as("bob"))
    assert [a["slug"] for a in resp.json()["articles"]] == ["for-followers"]


@pytest.mark.asyncio
async def test_edit_and_delete_ownership(async_client: AsyncClient):
    await _register(async_client, "alice")
    await _register(async_client, "bob")
    await _post_article(async_client, "alice", "Owned")

    resp = await async_client.put(
        "/api/articles/owned", json={"article": {"title": "Hijacked"}}, headers=_as("bob")
    )
    assert resp.status_code == 403
    assert resp.json() == {"errors": {"article": ["forbidden"]}}

    resp = await async_client.put(
        "/api/articles/owned", json={"article": {"title": "Renamed"}}, headers=_as("alice")
    )
    assert resp.status_code == 200
    assert resp.json()["article"]["slug"] == "renamed"

    resp = await async_client.delete("/api/articles/renamed", headers=_as("bob"))
    assert resp.status_code == 403

    resp = await async_client.delete("/api/articles/renamed", headers=_as("alice"))
    assert resp.status_code == 204

    resp = await async_client.get("/api/articles/renamed")
    assert resp.status_code == 404
    assert resp.json() == {"errors": {"article": ["not found"]}}


@pytest.mark.asyncio
async def test_favorite_over_http(async_client: AsyncClient):
    await _register(async_client, "alice")
    await _register(async_client, "bob")
    await _post_article(async_client, "alice", "Test Article")

    resp = await async_client.post("/api/articles/test-article/favorite", headers=_as("bob"))
    assert resp.status_code == 200
    assert resp.json()["article"]["favorited"] is True
    assert resp.json()["article"]["favoritesCount"] == 1

    resp = await async_client.delete("/api/articles/test-article/favorite", headers=_as("bob"))
    assert resp.json()["article"]["favorited"] is False
    assert resp.json()["article"]["favoritesCount"] == 0


# ---------------------------------------------------------------------------
# Comments and tags
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_comments_over_http(async_client: AsyncClient):
    await _register(async_client, "alice")
    await _register(async_client, "bob")
    await _post_article(async_client, "alice", "Discuss")

    resp = await async_client.post(
        "/api/articles/discuss/comments",
        json={"comment": {"body": "Nice"}},
        headers=_as("bob"),
    )
    assert resp.status_code == 201
    comment = resp.json()["comment"]
    assert comment["body"] == "Nice"
    assert comment["author"]["username"] == "bob"
    assert "createdAt" in comment

    resp = await async_client.get("/api/articles/discuss/comments")
    assert [c["body"] for c in resp.json()["comments"]] == ["Nice"]

    resp = await async_client.delete(
        f"/api/articles/discuss/comments/{comment['id']}", headers=_as("alice")
    )
    assert resp.status_code == 403

    resp = await async_client.delete(
        f"/api/articles/discuss/comments/{comment['id']}", headers=_as("bob")
    )
    assert resp.status_code == 204

    resp = await async_client.get("/api/articles/discuss/comments")
    assert resp.json() == {"comments": []}


@pytest.mark.asyncio
async def test_comments_on_unknown_article_is_404(async_client: AsyncClient):
    resp = await async_client.get("/api/articles/missing/comments")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_tags_over_http(async_client: AsyncClient):
    await _register(async_client, "alice")
    await _post_article(async_client, "alice", "Tagged", ["b", "a"])

    resp = await async_client.get("/api/tags")
    assert resp.status_code == 200
    assert resp.json() == {"tags": ["a", "b"]}
