"""Loan ledger operations."""

import logging
from datetime import date, timedelta
from typing import Callable, Optional

from ..catalog.schemas import Book
from ..errors import ErrorKind, Result
from ..paging import Page, PageRequest
from ..storage.base import (
    LoanStorage,
    StorageConflict,
    StorageNotFound,
    StorageUnavailable,
)
from .schemas import Loan, LoanFilter

logger = logging.getLogger(__name__)


class LoanLedger:
    """Records loans and answers loan queries.

    A book has at most one unreturned loan at a time. Returning a loan is
    final: ``returned`` never goes back to False.
    """

    def __init__(
        self,
        storage: LoanStorage,
        today: Callable[[], date] = date.today,
    ):
        """Initialize the ledger.

        Args:
            storage: Loan storage
            today: Clock used to stamp loans and compute overdue cutoffs
        """
        self.storage = storage
        self.today = today

    # -------------------------------------------------------------------------
    # Loan Management
    # -------------------------------------------------------------------------

    def save(self, loan: Loan) -> Result[Loan]:
        """Create a loan for a book that is not currently on loan.

        Args:
            loan: Loan with a resolved (saved) book

        Returns:
            The stored loan, LOAN_CONFLICT if the book is already on loan,
            BOOK_NOT_FOUND if the book is not in the catalog
        """
        if not loan.book.id:
            return Result.failure(ErrorKind.INVALID_ARGUMENT, "Loan book id can't be null")

        if loan.loan_date is None:
            loan = loan.model_copy(update={"loan_date": self.today()})
        loan = loan.model_copy(update={"id": None, "returned": False})

        try:
            if self.storage.exists_active_for_book(loan.book.id):
                return self._conflict(loan.book)
            saved = self.storage.insert(loan)
        except StorageConflict:
            # The active-loan constraint caught a concurrent loan of the same book
            return self._conflict(loan.book)
        except StorageNotFound as e:
            return Result.failure(ErrorKind.BOOK_NOT_FOUND, str(e))
        except StorageUnavailable as e:
            return Result.failure(ErrorKind.STORAGE_UNAVAILABLE, str(e), cause=e)

        logger.info(
            "Lent book %s to %s (loan %s)", saved.book.isbn, saved.customer, saved.id
        )
        return Result.success(saved)

    def get_by_id(self, loan_id: str) -> Result[Loan]:
        """Get a loan by ID. An unknown ID gives an empty result."""
        try:
            return Result.success(self.storage.get(loan_id))
        except StorageUnavailable as e:
            return Result.failure(ErrorKind.STORAGE_UNAVAILABLE, str(e), cause=e)

    def update(self, loan: Optional[Loan]) -> Result[Loan]:
        """Persist a loan, typically to flag it returned.

        Returns:
            The updated loan, an empty result if the ID is unknown,
            INVALID_ARGUMENT for a missing ID or an attempt to reopen
            a returned loan, or LOAN_CONFLICT if storage rejects the write
        """
        if loan is None or not loan.id:
            return Result.failure(ErrorKind.INVALID_ARGUMENT, "Loan id can't be null")

        try:
            current = self.storage.get(loan.id)
            if current is None:
                return Result.success(None)
            if current.returned and not loan.returned:
                return Result.failure(
                    ErrorKind.INVALID_ARGUMENT, "A returned loan can't be reopened"
                )
            updated = self.storage.update(loan)
        except StorageConflict:
            # The loan was returned and its book lent again since it was read
            return self._conflict(loan.book)
        except StorageUnavailable as e:
            return Result.failure(ErrorKind.STORAGE_UNAVAILABLE, str(e), cause=e)

        if updated is not None and updated.returned and not current.returned:
            logger.info("Loan %s returned (isbn %s)", updated.id, updated.book.isbn)
        return Result.success(updated)

    def return_loan(self, loan_id: str) -> Result[Loan]:
        """Flag a loan returned by ID.

        Returns:
            The updated loan, or LOAN_NOT_FOUND if the ID is unknown
        """
        found = self.get_by_id(loan_id).require(ErrorKind.LOAN_NOT_FOUND, "Loan not found")
        if not found.ok:
            return found
        return self.update(found.value.model_copy(update={"returned": True}))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def find(
        self,
        loan_filter: Optional[LoanFilter] = None,
        request: Optional[PageRequest] = None,
    ) -> Result[Page[Loan]]:
        """Search loans by book ISBN or customer name.

        A loan matches when either supplied criterion matches exactly.
        """
        try:
            page = self.storage.scan(loan_filter, request or PageRequest())
        except StorageUnavailable as e:
            return Result.failure(ErrorKind.STORAGE_UNAVAILABLE, str(e), cause=e)
        return Result.success(page)

    def get_loans_by_book(
        self,
        book: Book,
        request: Optional[PageRequest] = None,
    ) -> Result[Page[Loan]]:
        """Get the loan history of one book, newest first."""
        if not book.id:
            return Result.failure(ErrorKind.INVALID_ARGUMENT, "Book id can't be null")

        try:
            page = self.storage.scan_by_book(book.id, request or PageRequest())
        except StorageUnavailable as e:
            return Result.failure(ErrorKind.STORAGE_UNAVAILABLE, str(e), cause=e)
        return Result.success(page)

    def get_all_overdue_loans(self, threshold_days: int) -> Result[list[Loan]]:
        """Get unreturned loans made ``threshold_days`` or more days ago.

        Args:
            threshold_days: Loan age (in days) at which a loan is overdue

        Returns:
            Overdue loans, oldest first
        """
        if threshold_days < 0:
            return Result.failure(
                ErrorKind.INVALID_ARGUMENT, "Overdue threshold can't be negative"
            )

        cutoff = self.today() - timedelta(days=threshold_days)
        try:
            return Result.success(self.storage.find_active_loaned_on_or_before(cutoff))
        except StorageUnavailable as e:
            return Result.failure(ErrorKind.STORAGE_UNAVAILABLE, str(e), cause=e)

    def _conflict(self, book: Book) -> Result[Loan]:
        logger.warning("Rejected loan: book %s is already on loan", book.isbn)
        return Result.failure(ErrorKind.LOAN_CONFLICT, "Book already loaned")
