import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import engine
from app.exceptions import (
    ConstraintViolation,
    InvalidArgument,
    StaleEntryError,
    StoreError,
    StoreUnavailable,
)
from app.middleware import RequestLogMiddleware
from app.routers import comments, posts

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting blog content API (env=%s)", settings.APP_ENV)
    yield
    await engine.dispose()


app = FastAPI(
    title="Blog Content API",
    description="CRUD and paginated listing for posts and comments",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(posts.router)
app.include_router(comments.router)


# Error mapping
@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ConstraintViolation)
async def constraint_violation_handler(request: Request, exc: ConstraintViolation):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(StaleEntryError)
async def stale_entry_handler(request: Request, exc: StaleEntryError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    return JSONResponse(status_code=503, content={"detail": "Store unavailable"})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=500, content={"detail": "Store error"})


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
