"""SQLAlchemy ORM models for the local SQLite database.

Tables:
- books: Catalog records, ISBN unique
- loans: Loan records; at most one unreturned loan per book. A book with
  loans can't be deleted
"""

from datetime import date
from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, ForeignKey, Index, String, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


class BookRecord(Base):
    """Book row."""

    __tablename__ = "books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    isbn: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<BookRecord(id={self.id}, isbn='{self.isbn}')>"


class LoanRecord(Base):
    """Loan row.

    The partial unique index makes a second unreturned loan for the same book
    fail at insert time, whatever the interleaving of concurrent callers.
    """

    __tablename__ = "loans"
    __table_args__ = (
        Index(
            "uq_loans_active_book",
            "book_id",
            unique=True,
            sqlite_where=text("returned = 0"),
            postgresql_where=text("returned = false"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    book_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    customer: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    customer_email: Mapped[Optional[str]] = mapped_column(String(200))

    loan_date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)  # ISO date
    returned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    book: Mapped["BookRecord"] = relationship("BookRecord", lazy="selectin")

    def __repr__(self) -> str:
        return f"<LoanRecord(id={self.id}, book_id={self.book_id}, returned={self.returned})>"

    @property
    def loaned_on(self) -> date:
        return date.fromisoformat(self.loan_date)
