"""Book catalog operations."""

import logging
from typing import Optional

from ..errors import ErrorKind, Result
from ..paging import Page, PageRequest
from ..storage.base import BookStorage, StorageConflict, StorageUnavailable
from .schemas import Book, BookFilter

logger = logging.getLogger(__name__)


class BookCatalog:
    """Registers, looks up and searches catalog books."""

    def __init__(self, storage: BookStorage):
        """Initialize the catalog.

        Args:
            storage: Book storage
        """
        self.storage = storage

    def save(self, book: Book) -> Result[Book]:
        """Register a new book.

        Args:
            book: Book to register; any id it carries is ignored

        Returns:
            The stored book with its new id, or DUPLICATE_ISBN
        """
        try:
            if self.storage.exists_by_isbn(book.isbn):
                return self._duplicate(book.isbn)
            saved = self.storage.insert(book.model_copy(update={"id": None}))
        except StorageConflict:
            # Lost a race with a concurrent insert of the same ISBN
            return self._duplicate(book.isbn)
        except StorageUnavailable as e:
            return Result.failure(ErrorKind.STORAGE_UNAVAILABLE, str(e), cause=e)

        logger.info("Registered book %s (isbn %s)", saved.id, saved.isbn)
        return Result.success(saved)

    def get_by_id(self, book_id: str) -> Result[Book]:
        """Get a book by ID. An unknown ID gives an empty result."""
        try:
            return Result.success(self.storage.get(book_id))
        except StorageUnavailable as e:
            return Result.failure(ErrorKind.STORAGE_UNAVAILABLE, str(e), cause=e)

    def get_by_isbn(self, isbn: str) -> Result[Book]:
        """Get a book by ISBN. An unknown ISBN gives an empty result."""
        try:
            return Result.success(self.storage.get_by_isbn(isbn))
        except StorageUnavailable as e:
            return Result.failure(ErrorKind.STORAGE_UNAVAILABLE, str(e), cause=e)

    def update(self, book: Optional[Book]) -> Result[Book]:
        """Overwrite a book's title and author.

        Args:
            book: Book carrying its ID and the new values

        Returns:
            The updated book, an empty result if the ID is unknown,
            or INVALID_ARGUMENT when no ID is given
        """
        if book is None or not book.id:
            return Result.failure(ErrorKind.INVALID_ARGUMENT, "Book id can't be null")

        try:
            updated = self.storage.update(book)
        except StorageUnavailable as e:
            return Result.failure(ErrorKind.STORAGE_UNAVAILABLE, str(e), cause=e)

        if updated is not None:
            logger.info("Updated book %s", updated.id)
        return Result.success(updated)

    def delete(self, book: Optional[Book]) -> Result[bool]:
        """Remove a book from the catalog.

        Returns:
            True if a record was removed, INVALID_ARGUMENT when no ID is
            given, or LOAN_CONFLICT while loans still reference the book
        """
        if book is None or not book.id:
            return Result.failure(ErrorKind.INVALID_ARGUMENT, "Book id can't be null")

        try:
            deleted = self.storage.delete(book.id)
        except StorageConflict:
            logger.warning("Rejected delete: book %s has loans", book.id)
            return Result.failure(
                ErrorKind.LOAN_CONFLICT, "Book has loans and can't be deleted"
            )
        except StorageUnavailable as e:
            return Result.failure(ErrorKind.STORAGE_UNAVAILABLE, str(e), cause=e)

        if deleted:
            logger.info("Deleted book %s", book.id)
        return Result.success(deleted)

    def find(
        self,
        book_filter: Optional[BookFilter] = None,
        request: Optional[PageRequest] = None,
    ) -> Result[Page[Book]]:
        """Search books.

        The ``id`` field matches exactly; other set string fields match
        case-insensitively by containment; unset fields match everything.
        """
        try:
            page = self.storage.scan(book_filter, request or PageRequest())
        except StorageUnavailable as e:
            return Result.failure(ErrorKind.STORAGE_UNAVAILABLE, str(e), cause=e)
        return Result.success(page)

    def _duplicate(self, isbn: str) -> Result[Book]:
        logger.warning("Rejected book with duplicate isbn %s", isbn)
        return Result.failure(ErrorKind.DUPLICATE_ISBN, "Isbn already registered.")
