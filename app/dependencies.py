from fastapi import Query

from app.config import settings


class PaginationParams:
    """
    Reusable FastAPI dependency that reads the ``limit`` / ``page`` query
    parameters of the paginated listings.

    Range checks are left to ``app.pagination`` so that the HTTP layer
    and direct callers get the same ``InvalidArgument`` behaviour; the
    router maps that error to a 400 response.

    Attributes
    ----------
    limit:
        Requested page size.  Values above ``settings.MAX_PAGE_SIZE`` are
        clamped by the data-access layer.
    page:
        1-based page number.
    """

    def __init__(
        self,
        limit: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            description=f"Number of items per page (max {settings.MAX_PAGE_SIZE}).",
        ),
        page: int = Query(
            1,
            description="Page number (1-based).",
        ),
    ) -> None:
        self.limit = limit
        self.page = page
