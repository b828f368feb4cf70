"""Pydantic schemas for book lending."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from ..catalog.schemas import Book


class Loan(BaseModel):
    """A loan of one book to one customer.

    ``book`` is a snapshot of the catalog book, resolved when the loan is read.
    """

    id: Optional[str] = None
    book: Book
    customer: str = Field(..., min_length=1, max_length=200)
    customer_email: Optional[str] = Field(None, max_length=200)
    loan_date: Optional[date] = None
    returned: bool = False

    model_config = {"frozen": True, "from_attributes": True}

    def __repr__(self) -> str:
        return f"<Loan(id={self.id}, isbn={self.book.isbn}, customer='{self.customer}', returned={self.returned})>"

    @property
    def is_active(self) -> bool:
        """Check if the book has not been returned yet."""
        return not self.returned

    def days_on_loan(self, today: Optional[date] = None) -> int:
        """Days since the loan date (0 if not yet stamped)."""
        if self.loan_date is None:
            return 0
        return ((today or date.today()) - self.loan_date).days

    def is_overdue(self, threshold_days: int, today: Optional[date] = None) -> bool:
        """Check if the loan is active and at least ``threshold_days`` old."""
        return self.is_active and self.loan_date is not None and (
            self.days_on_loan(today) >= threshold_days
        )


class LoanFilter(BaseModel):
    """Loan search filter.

    A loan matches when its book's ISBN equals ``isbn`` OR its customer equals
    ``customer``. With neither set, every loan matches.
    """

    isbn: Optional[str] = None
    customer: Optional[str] = None

