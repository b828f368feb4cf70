"""Storage interfaces used by the catalog and the loan ledger.

The managers depend only on these abstractions. Implementations must
enforce ISBN uniqueness and the one-active-loan-per-book rule themselves
(a unique constraint or an equivalent transactional check) and report a
violation by raising ``StorageConflict``.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import TYPE_CHECKING, Optional

from ..paging import Page, PageRequest

if TYPE_CHECKING:
    from ..catalog.schemas import Book, BookFilter
    from ..lending.schemas import Loan, LoanFilter


class StorageError(Exception):
    """Base exception for storage failures."""

    pass


class StorageConflict(StorageError):
    """Raised when a write would violate a uniqueness rule."""

    pass


class StorageNotFound(StorageError):
    """Raised when a write references a record that does not exist."""

    pass


class StorageUnavailable(StorageError):
    """Raised when the backing store cannot be reached or times out."""

    pass


class BookStorage(ABC):
    """Keyed storage for catalog books."""

    @abstractmethod
    def insert(self, book: "Book") -> "Book":
        """Store a new book and return it with a generated id."""

    @abstractmethod
    def get(self, book_id: str) -> Optional["Book"]:
        """Get a book by id."""

    @abstractmethod
    def get_by_isbn(self, isbn: str) -> Optional["Book"]:
        """Get a book by ISBN."""

    @abstractmethod
    def exists_by_isbn(self, isbn: str) -> bool:
        """Check if a book with this ISBN is stored."""

    @abstractmethod
    def update(self, book: "Book") -> Optional["Book"]:
        """Overwrite title and author; None if the id is unknown."""

    @abstractmethod
    def delete(self, book_id: str) -> bool:
        """Delete a book; False if the id is unknown.

        Raises StorageConflict while loans reference the book.
        """

    @abstractmethod
    def scan(self, book_filter: Optional["BookFilter"], request: PageRequest) -> Page["Book"]:
        """Page through the books matching a filter."""


class LoanStorage(ABC):
    """Keyed storage for loans."""

    @abstractmethod
    def insert(self, loan: "Loan") -> "Loan":
        """Store a new loan and return it with a generated id."""

    @abstractmethod
    def get(self, loan_id: str) -> Optional["Loan"]:
        """Get a loan by id."""

    @abstractmethod
    def update(self, loan: "Loan") -> Optional["Loan"]:
        """Overwrite the mutable loan fields; None if the id is unknown."""

    @abstractmethod
    def exists_active_for_book(self, book_id: str) -> bool:
        """Check if the book has an unreturned loan."""

    @abstractmethod
    def scan(self, loan_filter: Optional["LoanFilter"], request: PageRequest) -> Page["Loan"]:
        """Page through loans matching the ISBN OR the customer."""

    @abstractmethod
    def scan_by_book(self, book_id: str, request: PageRequest) -> Page["Loan"]:
        """Page through the loan history of one book."""

    @abstractmethod
    def find_active_loaned_on_or_before(self, cutoff: date) -> list["Loan"]:
        """Unreturned loans whose loan date is on or before ``cutoff``."""
