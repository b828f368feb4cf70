"""Pytest configuration and shared fixtures.

This module provides fixtures for testing libraryapi, including an
in-memory database, the catalog and ledger built on it, and sample books.
"""

from datetime import date
from typing import Callable, Generator

import pytest

from libraryapi.catalog import Book, BookCatalog
from libraryapi.config import reset_config
from libraryapi.db import Database, SqlBookStorage, SqlLoanStorage
from libraryapi.db.sqlite import reset_db
from libraryapi.lending import LoanLedger

# Fixed "today" used by the ledger in tests
TODAY = date(2025, 1, 20)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def db() -> Generator[Database, None, None]:
    """Create an in-memory database for testing."""
    reset_db()
    reset_config()

    database = Database(":memory:")
    database.create_tables()
    yield database

    reset_db()


@pytest.fixture
def book_storage(db: Database) -> SqlBookStorage:
    return SqlBookStorage(db)


@pytest.fixture
def loan_storage(db: Database) -> SqlLoanStorage:
    return SqlLoanStorage(db)


# ============================================================================
# Component Fixtures
# ============================================================================


@pytest.fixture
def catalog(book_storage: SqlBookStorage) -> BookCatalog:
    """Create a BookCatalog on the test database."""
    return BookCatalog(book_storage)


@pytest.fixture
def today() -> date:
    """The date the ledger believes it is."""
    return TODAY


@pytest.fixture
def ledger(loan_storage: SqlLoanStorage, today: date) -> LoanLedger:
    """Create a LoanLedger on the test database with a fixed clock."""
    return LoanLedger(loan_storage, today=lambda: today)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def make_book(catalog: BookCatalog) -> Callable[..., Book]:
    """Factory registering a book and returning it."""

    def _make(isbn: str, title: str = "As aventuras", author: str = "Fulano") -> Book:
        return catalog.save(Book(title=title, author=author, isbn=isbn)).unwrap()

    return _make


@pytest.fixture
def sample_book(make_book) -> Book:
    """A registered book with ISBN 123."""
    return make_book("123", title="As aventuras", author="Fulano")


@pytest.fixture
def multiple_books(make_book) -> list[Book]:
    """Register several books."""
    return [
        make_book("9780261103283", title="The Hobbit", author="J. R. R. Tolkien"),
        make_book("9780261102354", title="The Fellowship of the Ring", author="J. R. R. Tolkien"),
        make_book("9780441172719", title="Dune", author="Frank Herbert"),
        make_book("9780553293357", title="Foundation", author="Isaac Asimov"),
        make_book("9780345391803", title="The Hitchhiker's Guide to the Galaxy", author="Douglas Adams"),
    ]
