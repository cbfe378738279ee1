"""
Error taxonomy for the data-access layer.

Validation problems are not exceptions: they come back as
``app.changeset.Invalid`` values.  Everything raised from here on is
either a caller mistake (``InvalidArgument``) or something the store
refused to do (``StoreError`` and its subclasses).  Store errors always
chain the original SQLAlchemy exception and are never retried.
"""
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
)
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


class InvalidArgument(ValueError):
    """A scalar argument (page number, page size) is out of range."""


class StoreError(Exception):
    """Base class for failures originating in the relational store."""

    def __init__(self, message: str, orig: BaseException | None = None) -> None:
        super().__init__(message)
        self.orig = orig


class ConstraintViolation(StoreError):
    """The store rejected a write because of an integrity constraint."""


class StaleEntryError(StoreError):
    """The row behind a loaded entity no longer exists."""


class StoreUnavailable(StoreError):
    """The store could not be reached or the connection broke mid-call."""


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """
    Re-raise SQLAlchemy failures inside the block as ``StoreError``
    subclasses, keeping the original exception as ``__cause__`` and
    ``.orig``.
    """
    try:
        yield
    except IntegrityError as exc:
        logger.warning("%s rejected by constraint: %s", operation, exc.orig)
        raise ConstraintViolation(f"{operation}: {exc.orig}", orig=exc) from exc
    except StaleDataError as exc:
        logger.warning("%s hit a stale row: %s", operation, exc)
        raise StaleEntryError(f"{operation}: {exc}", orig=exc) from exc
    except (OperationalError, InterfaceError, DisconnectionError) as exc:
        logger.warning("%s failed, store unavailable: %s", operation, exc)
        raise StoreUnavailable(f"{operation}: {exc}", orig=exc) from exc
    except DBAPIError as exc:
        logger.warning("%s failed in the store: %s", operation, exc.orig)
        raise StoreError(f"{operation}: {exc.orig}", orig=exc) from exc
