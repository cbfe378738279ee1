"""
Post service — data-access functions for the Post entity.

Design notes
------------
- Writes go through a changeset first (``change_post``); an invalid
  changeset is returned as ``Invalid`` before the session is touched.
- Store failures surface as ``app.exceptions`` errors with the SQLAlchemy
  exception chained; nothing is retried here.
- Service functions flush but do not commit; the transaction boundary
  is owned by the caller (``get_db`` in the router layer).
- ``delete_post`` issues a primary-key DELETE and checks the row count so
  a post removed by another writer is reported instead of ignored.
"""
import logging
from typing import Any, Mapping

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.changeset import Changeset, Invalid, Ok, cast
from app.exceptions import StaleEntryError, store_errors
from app.models import Post
from app.pagination import Page, paginate
from app.schemas import PostAttrs, is_record_id

logger = logging.getLogger(__name__)


async def list_posts(db: AsyncSession) -> list[Post]:
    """Return every post in the store's default order."""
    with store_errors("list posts"):
        result = await db.execute(select(Post))
        return list(result.scalars().all())


async def list_posts_paginated(db: AsyncSession, limit: int, page: int) -> Page[Post]:
    """
    Return page *page* (1-based) of posts, *limit* per page.

    Raises ``InvalidArgument`` for ``limit <= 0`` or ``page < 1``.
    """
    return await paginate(db, select(Post), Post, limit, page)


async def get_post(db: AsyncSession, post_id: int) -> Post | None:
    """Return the post with *post_id*, or None when it does not exist."""
    if not is_record_id(post_id):
        return None
    with store_errors("get post"):
        return await db.get(Post, post_id)


def change_post(post: Post, attrs: Mapping[str, Any] | None = None) -> Changeset[Post]:
    return cast(post, attrs, PostAttrs)


async def create_post(
    db: AsyncSession, attrs: Mapping[str, Any] | None = None
) -> Ok[Post] | Invalid[Post]:
    """
    Validate *attrs* (title, body, user_id) and insert a new post.

    Returns ``Invalid`` without issuing any SQL when validation fails.
    A ``user_id`` with no matching user raises ``ConstraintViolation``.
    """
    changeset = change_post(Post(), attrs)
    changeset.action = "insert"
    if not changeset.valid:
        return Invalid(changeset)

    post = changeset.apply()
    with store_errors("create post"):
        db.add(post)
        await db.flush()
        await db.refresh(post)

    logger.debug("Created post id=%s", post.id)
    return Ok(post)


async def update_post(
    db: AsyncSession, post: Post, attrs: Mapping[str, Any]
) -> Ok[Post] | Invalid[Post]:
    """
    Apply the changed fields of *attrs* to *post*.

    Fields absent from *attrs* keep their stored values.  When nothing
    changes, *post* is returned as-is without a store round-trip.
    """
    changeset = change_post(post, attrs)
    changeset.action = "update"
    if not changeset.valid:
        return Invalid(changeset)
    if not changeset.changes:
        return Ok(post)

    changeset.apply()
    with store_errors("update post"):
        await db.flush()
        await db.refresh(post)

    logger.debug("Updated post id=%s fields=%s", post.id, sorted(changeset.changes))
    return Ok(post)


async def delete_post(db: AsyncSession, post: Post) -> Post:
    """
    Delete a previously loaded *post* and return it.

    Raises ``StaleEntryError`` when the row is already gone and
    ``ConstraintViolation`` while comments still reference the post.
    """
    with store_errors("delete post"):
        result = await db.execute(delete(Post).where(Post.id == post.id))
    if result.rowcount == 0:
        raise StaleEntryError(f"delete post: post id={post.id} no longer exists")

    logger.debug("Deleted post id=%s", post.id)
    return post
