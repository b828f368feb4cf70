"""Storage abstractions for books and loans."""

from .base import (
    BookStorage,
    LoanStorage,
    StorageConflict,
    StorageError,
    StorageNotFound,
    StorageUnavailable,
)

__all__ = [
    "BookStorage",
    "LoanStorage",
    "StorageConflict",
    "StorageError",
    "StorageNotFound",
    "StorageUnavailable",
]
