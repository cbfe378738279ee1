from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.changeset import Invalid
from app.database import get_db
from app.dependencies import PaginationParams
from app.schemas import CommentResponse, PaginatedResponse, PostResponse, ValidationErrorResponse
from app.services import comment_service, post_service

router = APIRouter(prefix="/api/v1/posts", tags=["posts"])

_INVALID = {422: {"model": ValidationErrorResponse}}


async def _load_post(post_id: int, db: AsyncSession):
    post = await post_service.get_post(db, post_id)
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


@router.get("", response_model=list[PostResponse])
async def list_posts(db: AsyncSession = Depends(get_db)):
    return await post_service.list_posts(db)


@router.get("/page", response_model=PaginatedResponse[PostResponse])
async def list_posts_paginated(
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    page = await post_service.list_posts_paginated(db, pagination.limit, pagination.page)
    return PaginatedResponse[PostResponse].model_validate(page, from_attributes=True)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: AsyncSession = Depends(get_db)):
    return await _load_post(post_id, db)


@router.get("/{post_id}/comments", response_model=list[CommentResponse])
async def list_post_comments(post_id: int, db: AsyncSession = Depends(get_db)):
    return await comment_service.list_comments_by_post(db, post_id)


@router.post("", status_code=201, response_model=PostResponse, responses=_INVALID)
async def create_post(attrs: dict[str, Any] = Body(...), db: AsyncSession = Depends(get_db)):
    result = await post_service.create_post(db, attrs)
    if isinstance(result, Invalid):
        return JSONResponse(status_code=422, content={"errors": result.errors})
    return result.value


@router.patch("/{post_id}", response_model=PostResponse, responses=_INVALID)
async def update_post(
    post_id: int, attrs: dict[str, Any] = Body(...), db: AsyncSession = Depends(get_db)
):
    post = await _load_post(post_id, db)
    result = await post_service.update_post(db, post, attrs)
    if isinstance(result, Invalid):
        return JSONResponse(status_code=422, content={"errors": result.errors})
    return result.value


@router.delete("/{post_id}", status_code=204)
async def delete_post(post_id: int, db: AsyncSession = Depends(get_db)):
    post = await _load_post(post_id, db)
    await post_service.delete_post(db, post)
