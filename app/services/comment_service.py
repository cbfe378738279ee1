"""
Comment service — data-access functions for the Comment entity.

Same contract as ``post_service`` with ``body``, ``post_id`` and
``user_id`` as the required fields, plus ``list_comments_by_post`` for
listing the comments of a single post.  The parent post's existence is
not checked here: a dangling ``post_id`` is rejected by the store's
foreign key and surfaces as ``ConstraintViolation``.
"""
import logging
from typing import Any, Mapping

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.changeset import Changeset, Invalid, Ok, cast
from app.exceptions import StaleEntryError, store_errors
from app.models import Comment
from app.pagination import Page, paginate
from app.schemas import CommentAttrs, is_record_id

logger = logging.getLogger(__name__)


async def list_comments(db: AsyncSession) -> list[Comment]:
    with store_errors("list comments"):
        result = await db.execute(select(Comment))
        return list(result.scalars().all())


async def list_comments_paginated(db: AsyncSession, limit: int, page: int) -> Page[Comment]:
    return await paginate(db, select(Comment), Comment, limit, page)


async def list_comments_by_post(db: AsyncSession, post_id: int) -> list[Comment]:
    """
    Return every comment attached to *post_id*.

    An unknown *post_id* yields an empty list rather than an error.
    """
    if not is_record_id(post_id):
        return []
    q = select(Comment).where(Comment.post_id == post_id)
    with store_errors("list comments by post"):
        result = await db.execute(q)
        return list(result.scalars().all())


async def get_comment(db: AsyncSession, comment_id: int) -> Comment | None:
    if not is_record_id(comment_id):
        return None
    with store_errors("get comment"):
        return await db.get(Comment, comment_id)


def change_comment(comment: Comment, attrs: Mapping[str, Any] | None = None) -> Changeset[Comment]:
    return cast(comment, attrs, CommentAttrs)


async def create_comment(
    db: AsyncSession, attrs: Mapping[str, Any] | None = None
) -> Ok[Comment] | Invalid[Comment]:
    """
    Validate *attrs* and insert a new comment.

    Returns ``Invalid`` when body, post_id or user_id is missing or
    malformed; no SQL is issued in that case.
    """
    changeset = change_comment(Comment(), attrs)
    changeset.action = "insert"
    if not changeset.valid:
        return Invalid(changeset)

    comment = changeset.apply()
    with store_errors("create comment"):
        db.add(comment)
        await db.flush()
        await db.refresh(comment)

    logger.debug("Created comment id=%s on post id=%s", comment.id, comment.post_id)
    return Ok(comment)


async def update_comment(
    db: AsyncSession, comment: Comment, attrs: Mapping[str, Any]
) -> Ok[Comment] | Invalid[Comment]:
    changeset = change_comment(comment, attrs)
    changeset.action = "update"
    if not changeset.valid:
        return Invalid(changeset)
    if not changeset.changes:
        return Ok(comment)

    changeset.apply()
    with store_errors("update comment"):
        await db.flush()
        await db.refresh(comment)

    logger.debug("Updated comment id=%s fields=%s", comment.id, sorted(changeset.changes))
    return Ok(comment)


async def delete_comment(db: AsyncSession, comment: Comment) -> Comment:
    """
    Delete a previously loaded *comment* and return it.

    Raises ``StaleEntryError`` when the row is already gone.
    """
    with store_errors("delete comment"):
        result = await db.execute(delete(Comment).where(Comment.id == comment.id))
    if result.rowcount == 0:
        raise StaleEntryError(f"delete comment: comment id={comment.id} no longer exists")

    logger.debug("Deleted comment id=%s", comment.id)
    return comment
