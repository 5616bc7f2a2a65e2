"""
Indexing error taxonomy.

  RecordNotFoundError     : source artwork vanished before normalization (no-op)
  RecordValidationError   : natural key (contract / token id) incomplete
  TransientStorageError   : connection pool exhausted or storage deadline hit (retried)
  PermanentStorageError   : any other persistence failure (not retried)
  NormalizationError      : source payload malformed beyond tolerance
"""

import asyncio
from typing import Optional

from sqlalchemy import exc as sa_exc

# Prisma-era code still shows up in migrated error payloads
POOL_TIMEOUT_CODES = {"P2024"}


class IndexingError(Exception):
    """Base class for everything the indexing pipeline raises on purpose."""


class RecordNotFoundError(IndexingError):
    pass


class RecordValidationError(IndexingError):
    pass


class NormalizationError(IndexingError):
    pass


class StorageError(IndexingError):
    def __init__(self, message: str, original: Optional[BaseException] = None):
        super().__init__(message)
        self.original = original


class TransientStorageError(StorageError):
    pass


class PermanentStorageError(StorageError):
    pass


def is_pool_exhaustion(exc: BaseException) -> bool:
    """True when the error means "no connection available right now"."""
    if isinstance(exc, TransientStorageError):
        return True
    if isinstance(exc, (sa_exc.TimeoutError, asyncio.TimeoutError, TimeoutError)):
        return True
    # SQLAlchemy wraps driver errors; the asyncpg class sits on .orig
    orig = getattr(exc, "orig", None)
    if "TooManyConnectionsError" in (type(exc).__name__, type(orig).__name__):
        return True
    if getattr(exc, "code", None) in POOL_TIMEOUT_CODES:
        return True
    return "connection pool" in str(exc).lower()


def classify_storage_error(exc: BaseException) -> StorageError:
    """Wrap a raw driver / ORM exception into the storage taxonomy."""
    if isinstance(exc, StorageError):
        return exc
    message = str(exc) or type(exc).__name__
    if is_pool_exhaustion(exc):
        return TransientStorageError(message, original=exc)
    return PermanentStorageError(message, original=exc)
