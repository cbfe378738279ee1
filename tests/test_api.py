"""
HTTP endpoint tests — checks that the routers hand attrs through to the
services unchanged and map each result / error kind to its status code.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from app.database import get_db
from app.exceptions import StaleEntryError, StoreError
from app.main import app
from app.services import post_service


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _create_post(client: AsyncClient, user_id: int, title: str = "Hello") -> dict:
    resp = await client.post("/api/v1/posts", json={
        "title": title,
        "body": "Post body",
        "user_id": user_id,
    })
    assert resp.status_code == 201
    return resp.json()


async def _create_comment(client: AsyncClient, post_id: int, user_id: int, body: str = "Nice") -> dict:
    resp = await client.post("/api/v1/comments", json={
        "body": body,
        "post_id": post_id,
        "user_id": user_id,
    })
    assert resp.status_code == 201
    return resp.json()


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_create_and_get_post(async_client: AsyncClient, user_id: int):
    post = await _create_post(async_client, user_id, "Created")
    assert post["title"] == "Created"
    assert post["user_id"] == user_id
    assert "created_at" in post
    assert "updated_at" in post

    resp = await async_client.get(f"/api/v1/posts/{post['id']}")
    assert resp.status_code == 200
    assert resp.json()["title"] == "Created"


@pytest.mark.asyncio
async def test_create_post_validation_errors(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/posts", json={"title": ""})
    assert resp.status_code == 422
    assert resp.json() == {
        "errors": {
            "title": ["can't be blank"],
            "body": ["can't be blank"],
            "user_id": ["can't be blank"],
        }
    }


@pytest.mark.asyncio
async def test_create_post_unknown_user_conflict(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/posts", json={
        "title": "Orphan", "body": "B", "user_id": 4242,
    })
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_get_post_not_found(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/posts/99999")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_list_posts(async_client: AsyncClient, user_id: int):
    for i in range(3):
        await _create_post(async_client, user_id, f"Post {i}")
    resp = await async_client.get("/api/v1/posts")
    assert resp.status_code == 200
    assert len(resp.json()) == 3


@pytest.mark.asyncio
async def test_list_posts_paginated(async_client: AsyncClient, user_id: int):
    for i in range(5):
        await _create_post(async_client, user_id, f"Post {i}")

    resp = await async_client.get("/api/v1/posts/page", params={"limit": 2, "page": 1})
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["items"]) == 2
    assert data["total_count"] == 5
    assert data["page"] == 1
    assert data["page_size"] == 2
    assert data["total_pages"] == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"limit": 0, "page": 1}, {"limit": 5, "page": 0}])
async def test_list_posts_paginated_bad_arguments(async_client: AsyncClient, params):
    resp = await async_client.get("/api/v1/posts/page", params=params)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_post(async_client: AsyncClient, user_id: int):
    post = await _create_post(async_client, user_id, "Before")

    resp = await async_client.patch(f"/api/v1/posts/{post['id']}", json={"title": "x"})
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["title"] == "x"
    assert updated["body"] == "Post body"
    assert updated["user_id"] == user_id


@pytest.mark.asyncio
async def test_update_post_invalid(async_client: AsyncClient, user_id: int):
    post = await _create_post(async_client, user_id)
    resp = await async_client.patch(f"/api/v1/posts/{post['id']}", json={"body": "   "})
    assert resp.status_code == 422
    assert resp.json()["errors"] == {"body": ["can't be blank"]}


@pytest.mark.asyncio
async def test_update_missing_post(async_client: AsyncClient):
    resp = await async_client.patch("/api/v1/posts/99999", json={"title": "Ghost"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_post(async_client: AsyncClient, user_id: int):
    post = await _create_post(async_client, user_id)

    resp = await async_client.delete(f"/api/v1/posts/{post['id']}")
    assert resp.status_code == 204

    resp = await async_client.get(f"/api/v1/posts/{post['id']}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_post_with_comments_conflict(async_client: AsyncClient, user_id: int):
    post = await _create_post(async_client, user_id)
    await _create_comment(async_client, post["id"], user_id)

    resp = await async_client.delete(f"/api/v1/posts/{post['id']}")
    assert resp.status_code == 409

    # The failed delete was rolled back; the post is still there.
    resp = await async_client.get(f"/api/v1/posts/{post['id']}")
    assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_post_comments_listing(async_client: AsyncClient, user_id: int):
    first = await _create_post(async_client, user_id, "First")
    second = await _create_post(async_client, user_id, "Second")
    await _create_comment(async_client, first["id"], user_id, "on first")
    await _create_comment(async_client, second["id"], user_id, "on second")

    resp = await async_client.get(f"/api/v1/posts/{first['id']}/comments")
    assert resp.status_code == 200
    comments = resp.json()
    assert [c["body"] for c in comments] == ["on first"]
    assert comments[0]["post_id"] == first["id"]


@pytest.mark.asyncio
async def test_comment_crud(async_client: AsyncClient, user_id: int):
    post = await _create_post(async_client, user_id)
    comment = await _create_comment(async_client, post["id"], user_id, "Draft")

    resp = await async_client.get(f"/api/v1/comments/{comment['id']}")
    assert resp.status_code == 200
    assert resp.json()["body"] == "Draft"

    resp = await async_client.patch(f"/api/v1/comments/{comment['id']}", json={"body": "Final"})
    assert resp.status_code == 200
    assert resp.json()["body"] == "Final"

    resp = await async_client.get("/api/v1/comments")
    assert [c["body"] for c in resp.json()] == ["Final"]

    resp = await async_client.delete(f"/api/v1/comments/{comment['id']}")
    assert resp.status_code == 204

    resp = await async_client.get(f"/api/v1/comments/{comment['id']}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_comment_on_missing_post_conflict(async_client: AsyncClient, user_id: int):
    resp = await async_client.post("/api/v1/comments", json={
        "body": "Ghost", "post_id": 99999, "user_id": user_id,
    })
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_comment_missing_body(async_client: AsyncClient, user_id: int):
    post = await _create_post(async_client, user_id)
    resp = await async_client.post("/api/v1/comments", json={
        "post_id": post["id"], "user_id": user_id,
    })
    assert resp.status_code == 422
    assert resp.json()["errors"] == {"body": ["can't be blank"]}


@pytest.mark.asyncio
async def test_comments_paginated(async_client: AsyncClient, user_id: int):
    post = await _create_post(async_client, user_id)
    for i in range(3):
        await _create_comment(async_client, post["id"], user_id, f"c{i}")

    resp = await async_client.get("/api/v1/comments/page", params={"limit": 2, "page": 2})
    assert resp.status_code == 200
    data = resp.json()
    assert [c["body"] for c in data["items"]] == ["c2"]
    assert data["total_count"] == 3


@pytest.mark.asyncio
async def test_response_carries_diagnostic_headers(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/posts")
    assert "x-response-time-ms" in resp.headers
    assert int(resp.headers["x-query-count"]) >= 1


# ---------------------------------------------------------------------------
# Store failures and oversized identifiers
# ---------------------------------------------------------------------------

class _UnreachableSession:
    """Stands in for an AsyncSession whose database connection is down."""

    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))

    async def get(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))


async def _unreachable_db():
    yield _UnreachableSession()


@pytest.mark.asyncio
async def test_store_unavailable_returns_503(async_client: AsyncClient):
    previous = app.dependency_overrides[get_db]
    app.dependency_overrides[get_db] = _unreachable_db
    try:
        resp = await async_client.get("/api/v1/posts")
        assert resp.status_code == 503
        assert resp.json() == {"detail": "Store unavailable"}

        resp = await async_client.get("/api/v1/comments/1")
        assert resp.status_code == 503
    finally:
        app.dependency_overrides[get_db] = previous


@pytest.mark.asyncio
async def test_delete_of_vanished_post_returns_409(
    async_client: AsyncClient, user_id: int, monkeypatch
):
    post = await _create_post(async_client, user_id)

    async def _already_deleted(db, loaded):
        raise StaleEntryError(f"delete post: post id={loaded.id} no longer exists")

    monkeypatch.setattr(post_service, "delete_post", _already_deleted)
    resp = await async_client.delete(f"/api/v1/posts/{post['id']}")
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_oversized_ids_are_not_found(async_client: AsyncClient):
    huge = 2**70
    assert (await async_client.get(f"/api/v1/posts/{huge}")).status_code == 404
    assert (await async_client.patch(f"/api/v1/posts/{huge}", json={"title": "x"})).status_code == 404
    assert (await async_client.get(f"/api/v1/comments/{huge}")).status_code == 404
    resp = await async_client.get(f"/api/v1/posts/{huge}/comments")
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_create_post_with_oversized_user_id(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/posts", json={
        "title": "T", "body": "B", "user_id": 2**70,
    })
    assert resp.status_code == 422
    assert resp.json() == {"errors": {"user_id": ["is invalid"]}}


@pytest.mark.asyncio
async def test_other_store_errors_return_500(async_client: AsyncClient, monkeypatch):
    async def _rejected(db):
        raise StoreError("list posts: value out of range")

    monkeypatch.setattr(post_service, "list_posts", _rejected)
    resp = await async_client.get("/api/v1/posts")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Store error"}
