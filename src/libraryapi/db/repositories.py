"""SQLAlchemy implementations of the book and loan storage interfaces."""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Generator, Optional

from sqlalchemy import exists, select
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..catalog.schemas import Book, BookFilter
from ..lending.schemas import Loan, LoanFilter
from ..paging import FilteredPager, Page, PageRequest, paginate
from ..storage.base import (
    BookStorage,
    LoanStorage,
    StorageConflict,
    StorageNotFound,
    StorageUnavailable,
)
from .models import BookRecord, LoanRecord
from .sqlite import Database, get_db

logger = logging.getLogger(__name__)


@contextmanager
def translate_errors(db: Database) -> Generator[Session, None, None]:
    """Open a session and convert driver errors into storage errors."""
    try:
        with db.get_session() as session:
            yield session
    except IntegrityError as e:
        raise StorageConflict(str(e.orig)) from e
    except DBAPIError as e:
        logger.error("Storage failure: %s", e.orig)
        raise StorageUnavailable(str(e.orig)) from e
    except SQLAlchemyError as e:
        logger.error("Storage failure: %s", e)
        raise StorageUnavailable(str(e)) from e


def to_book(record: BookRecord) -> Book:
    """Snapshot a book row."""
    return Book.model_validate(record)


def to_loan(record: LoanRecord) -> Loan:
    """Snapshot a loan row together with its book."""
    return Loan(
        id=record.id,
        book=to_book(record.book),
        customer=record.customer,
        customer_email=record.customer_email,
        loan_date=record.loaned_on,
        returned=record.returned,
    )


class SqlBookStorage(BookStorage):
    """Book storage on the SQLite database."""

    pager = FilteredPager(
        {
            "id": BookRecord.id,
            "title": BookRecord.title,
            "author": BookRecord.author,
            "isbn": BookRecord.isbn,
        },
        exact_fields={"id"},
    )

    def __init__(self, db: Optional[Database] = None):
        """Initialize book storage.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def insert(self, book: Book) -> Book:
        with translate_errors(self.db) as session:
            record = BookRecord(title=book.title, author=book.author, isbn=book.isbn)
            session.add(record)
            session.flush()
            return to_book(record)

    def get(self, book_id: str) -> Optional[Book]:
        with translate_errors(self.db) as session:
            record = session.get(BookRecord, book_id)
            return to_book(record) if record else None

    def get_by_isbn(self, isbn: str) -> Optional[Book]:
        with translate_errors(self.db) as session:
            stmt = select(BookRecord).where(BookRecord.isbn == isbn)
            record = session.execute(stmt).scalar_one_or_none()
            return to_book(record) if record else None

    def exists_by_isbn(self, isbn: str) -> bool:
        with translate_errors(self.db) as session:
            return bool(session.execute(select(exists().where(BookRecord.isbn == isbn))).scalar())

    def update(self, book: Book) -> Optional[Book]:
        with translate_errors(self.db) as session:
            record = session.get(BookRecord, book.id)
            if not record:
                return None

            # ISBN is fixed once the book is registered
            record.title = book.title
            record.author = book.author
            session.flush()
            return to_book(record)

    def delete(self, book_id: str) -> bool:
        with translate_errors(self.db) as session:
            record = session.get(BookRecord, book_id)
            if not record:
                return False

            session.delete(record)
            return True

    def scan(self, book_filter: Optional[BookFilter], request: PageRequest) -> Page[Book]:
        with translate_errors(self.db) as session:
            stmt = select(BookRecord).order_by(BookRecord.title, BookRecord.id)
            return self.pager.fetch(session, stmt, book_filter, request).map(to_book)


class SqlLoanStorage(LoanStorage):
    """Loan storage on the SQLite database."""

    pager = FilteredPager(
        {
            "isbn": BookRecord.isbn,
            "customer": LoanRecord.customer,
        },
        exact=True,
        any_of=True,
    )

    def __init__(self, db: Optional[Database] = None):
        """Initialize loan storage.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def insert(self, loan: Loan) -> Loan:
        with translate_errors(self.db) as session:
            if session.get(BookRecord, loan.book.id) is None:
                raise StorageNotFound(f"Book {loan.book.id} does not exist")

            record = LoanRecord(
                book_id=loan.book.id,
                customer=loan.customer,
                customer_email=loan.customer_email,
                loan_date=(loan.loan_date or date.today()).isoformat(),
                returned=loan.returned,
            )
            session.add(record)
            session.flush()
            session.refresh(record)
            return to_loan(record)

    def get(self, loan_id: str) -> Optional[Loan]:
        with translate_errors(self.db) as session:
            record = session.get(LoanRecord, loan_id)
            return to_loan(record) if record else None

    def update(self, loan: Loan) -> Optional[Loan]:
        with translate_errors(self.db) as session:
            record = session.get(LoanRecord, loan.id)
            if not record:
                return None

            # Book and loan date are fixed at creation; a returned loan stays returned
            record.customer = loan.customer
            record.customer_email = loan.customer_email
            record.returned = record.returned or loan.returned
            session.flush()
            return to_loan(record)

    def exists_active_for_book(self, book_id: str) -> bool:
        with translate_errors(self.db) as session:
            stmt = select(
                exists().where(LoanRecord.book_id == book_id, LoanRecord.returned.is_(False))
            )
            return bool(session.execute(stmt).scalar())

    def scan(self, loan_filter: Optional[LoanFilter], request: PageRequest) -> Page[Loan]:
        with translate_errors(self.db) as session:
            stmt = (
                select(LoanRecord)
                .join(LoanRecord.book)
                .order_by(LoanRecord.loan_date.desc(), LoanRecord.id)
            )
            return self.pager.fetch(session, stmt, loan_filter, request).map(to_loan)

    def scan_by_book(self, book_id: str, request: PageRequest) -> Page[Loan]:
        with translate_errors(self.db) as session:
            stmt = (
                select(LoanRecord)
                .where(LoanRecord.book_id == book_id)
                .order_by(LoanRecord.loan_date.desc(), LoanRecord.id)
            )
            return paginate(session, stmt, request).map(to_loan)

    def find_active_loaned_on_or_before(self, cutoff: date) -> list[Loan]:
        with translate_errors(self.db) as session:
            stmt = (
                select(LoanRecord)
                .where(
                    LoanRecord.returned.is_(False),
                    LoanRecord.loan_date <= cutoff.isoformat(),
                )
                .order_by(LoanRecord.loan_date)
            )
            return [to_loan(record) for record in session.execute(stmt).scalars().all()]
