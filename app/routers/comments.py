from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.changeset import Invalid
from app.database import get_db
from app.dependencies import PaginationParams
from app.schemas import CommentResponse, PaginatedResponse, ValidationErrorResponse
from app.services import comment_service

router = APIRouter(prefix="/api/v1/comments", tags=["comments"])

_INVALID = {422: {"model": ValidationErrorResponse}}


async def _load_comment(comment_id: int, db: AsyncSession):
    comment = await comment_service.get_comment(db, comment_id)
    if comment is None:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment


@router.get("", response_model=list[CommentResponse])
async def list_comments(db: AsyncSession = Depends(get_db)):
    return await comment_service.list_comments(db)


@router.get("/page", response_model=PaginatedResponse[CommentResponse])
async def list_comments_paginated(
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    page = await comment_service.list_comments_paginated(db, pagination.limit, pagination.page)
    return PaginatedResponse[CommentResponse].model_validate(page, from_attributes=True)


@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    return await _load_comment(comment_id, db)


@router.post("", status_code=201, response_model=CommentResponse, responses=_INVALID)
async def create_comment(attrs: dict[str, Any] = Body(...), db: AsyncSession = Depends(get_db)):
    result = await comment_service.create_comment(db, attrs)
    if isinstance(result, Invalid):
        return JSONResponse(status_code=422, content={"errors": result.errors})
    return result.value


@router.patch("/{comment_id}", response_model=CommentResponse, responses=_INVALID)
async def update_comment(
    comment_id: int, attrs: dict[str, Any] = Body(...), db: AsyncSession = Depends(get_db)
):
    comment = await _load_comment(comment_id, db)
    result = await comment_service.update_comment(db, comment, attrs)
    if isinstance(result, Invalid):
        return JSONResponse(status_code=422, content={"errors": result.errors})
    return result.value


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    comment = await _load_comment(comment_id, db)
    await comment_service.delete_comment(db, comment)
