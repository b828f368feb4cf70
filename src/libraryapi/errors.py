"""Error kinds and the result type returned by catalog and ledger operations.

Operations never raise for caller-correctable conditions. They return a
``Result`` whose ``error`` carries one of the ``ErrorKind`` values, and the
caller branches on ``result.error.kind``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Kinds of failure surfaced to callers."""

    DUPLICATE_ISBN = "duplicate_isbn"
    BOOK_NOT_FOUND = "book_not_found"
    LOAN_NOT_FOUND = "loan_not_found"
    INVALID_ARGUMENT = "invalid_argument"
    LOAN_CONFLICT = "loan_conflict"
    STORAGE_UNAVAILABLE = "storage_unavailable"


class LibraryError(Exception):
    """An error of a known kind."""

    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"<LibraryError(kind={self.kind.value}, message='{self.message}')>"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation: a value or a ``LibraryError``."""

    value: Optional[T] = None
    error: Optional[LibraryError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        cause: Optional[BaseException] = None,
    ) -> "Result[T]":
        error = LibraryError(kind, message)
        if cause is not None:
            error.__cause__ = cause
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        """Error kind, or None on success."""
        return self.error.kind if self.error else None

    @property
    def is_empty(self) -> bool:
        """True for a successful lookup that found nothing."""
        return self.ok and self.value is None

    def unwrap(self) -> Optional[T]:
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value

    def require(self, kind: ErrorKind, message: str = "Not found") -> "Result[T]":
        """Turn an empty successful result into a failure of ``kind``.

        Used at the boundary where "not found" becomes an error.
        """
        if self.is_empty:
            return Result.failure(kind, message)
        return self
