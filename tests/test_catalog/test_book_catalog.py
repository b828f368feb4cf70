"""Tests for BookCatalog."""

from unittest.mock import MagicMock

import pytest

from libraryapi.catalog import Book, BookCatalog, BookFilter
from libraryapi.errors import ErrorKind
from libraryapi.lending import Loan
from libraryapi.paging import Page, PageRequest
from libraryapi.storage import BookStorage, StorageConflict, StorageUnavailable


@pytest.fixture
def mock_storage():
    """A BookStorage double that records calls."""
    return MagicMock(spec=BookStorage)


@pytest.fixture
def mock_catalog(mock_storage):
    return BookCatalog(mock_storage)


class TestSave:
    """Tests for registering books."""

    def test_save_book(self, catalog):
        """Test saving a book assigns an id."""
        result = catalog.save(Book(title="As aventuras", author="Fulano", isbn="123"))

        assert result.ok
        book = result.value
        assert book.id is not None
        assert book.title == "As aventuras"
        assert book.author == "Fulano"
        assert book.isbn == "123"

    def test_save_ignores_given_id(self, catalog):
        result = catalog.save(Book(id="chosen", title="T", author="A", isbn="1"))
        assert result.value.id != "chosen"

    def test_duplicate_isbn(self, catalog, sample_book):
        """Test saving a second book with the same ISBN fails."""
        result = catalog.save(Book(title="Another title", author="Beltrano", isbn="123"))

        assert not result.ok
        assert result.kind == ErrorKind.DUPLICATE_ISBN

        # Catalog still holds only the original
        page = catalog.find(BookFilter(), PageRequest()).unwrap()
        assert page.total_elements == 1
        assert page.content[0] == sample_book

    def test_duplicate_isbn_does_not_insert(self, mock_catalog, mock_storage):
        mock_storage.exists_by_isbn.return_value = True

        result = mock_catalog.save(Book(title="T", author="A", isbn="123"))

        assert result.kind == ErrorKind.DUPLICATE_ISBN
        mock_storage.insert.assert_not_called()

    def test_concurrent_duplicate_reported(self, mock_catalog, mock_storage):
        """A uniqueness violation raised by storage becomes DUPLICATE_ISBN."""
        mock_storage.exists_by_isbn.return_value = False
        mock_storage.insert.side_effect = StorageConflict("UNIQUE constraint failed: books.isbn")

        result = mock_catalog.save(Book(title="T", author="A", isbn="123"))

        assert result.kind == ErrorKind.DUPLICATE_ISBN

    def test_storage_unavailable(self, mock_catalog, mock_storage):
        mock_storage.exists_by_isbn.side_effect = StorageUnavailable("disk I/O error")

        result = mock_catalog.save(Book(title="T", author="A", isbn="123"))

        assert result.kind == ErrorKind.STORAGE_UNAVAILABLE
        assert isinstance(result.error.__cause__, StorageUnavailable)

    def test_blank_isbn_rejected(self):
        with pytest.raises(ValueError):
            Book(title="T", author="A", isbn="   ")


class TestLookup:
    """Tests for getting books."""

    def test_get_by_id(self, catalog, sample_book):
        result = catalog.get_by_id(sample_book.id)
        assert result.ok
        assert result.value == sample_book

    def test_get_by_id_not_found(self, catalog):
        """An unknown id is an empty result, not an error."""
        result = catalog.get_by_id("non-existent-id")
        assert result.ok
        assert result.is_empty

    def test_get_by_isbn(self, catalog, sample_book):
        assert catalog.get_by_isbn("123").value == sample_book

    def test_get_by_isbn_not_found(self, catalog):
        result = catalog.get_by_isbn("999")
        assert result.ok
        assert result.value is None


class TestUpdate:
    """Tests for updating books."""

    def test_update_book(self, catalog, sample_book):
        changed = sample_book.model_copy(update={"title": "Novo título", "author": "Beltrano"})

        result = catalog.update(changed)

        assert result.ok
        assert result.value.title == "Novo título"
        assert result.value.author == "Beltrano"
        assert catalog.get_by_id(sample_book.id).value.title == "Novo título"

    def test_update_keeps_isbn(self, catalog, sample_book):
        changed = sample_book.model_copy(update={"isbn": "456"})

        result = catalog.update(changed)

        assert result.value.isbn == "123"
        assert catalog.get_by_isbn("456").is_empty

    def test_update_without_id(self, mock_catalog, mock_storage):
        """Test update without an id fails and writes nothing."""
        result = mock_catalog.update(Book(title="T", author="A", isbn="123"))

        assert result.kind == ErrorKind.INVALID_ARGUMENT
        mock_storage.update.assert_not_called()

    def test_update_none(self, mock_catalog, mock_storage):
        assert mock_catalog.update(None).kind == ErrorKind.INVALID_ARGUMENT
        mock_storage.update.assert_not_called()

    def test_update_unknown_id(self, catalog):
        result = catalog.update(Book(id="missing", title="T", author="A", isbn="1"))
        assert result.ok
        assert result.is_empty


class TestDelete:
    """Tests for deleting books."""

    def test_delete_book(self, catalog, sample_book):
        result = catalog.delete(sample_book)

        assert result.ok
        assert result.value is True
        assert catalog.get_by_id(sample_book.id).is_empty

    def test_delete_without_id(self, mock_catalog, mock_storage):
        """Test delete without an id fails and writes nothing."""
        result = mock_catalog.delete(Book(title="T", author="A", isbn="123"))

        assert result.kind == ErrorKind.INVALID_ARGUMENT
        mock_storage.delete.assert_not_called()

    def test_delete_none(self, mock_catalog, mock_storage):
        assert mock_catalog.delete(None).kind == ErrorKind.INVALID_ARGUMENT
        mock_storage.delete.assert_not_called()

    def test_isbn_reusable_after_delete(self, catalog, sample_book):
        catalog.delete(sample_book).unwrap()
        assert catalog.save(Book(title="T", author="A", isbn="123")).ok

    def test_delete_book_with_loans(self, catalog, ledger, sample_book):
        """Test a book with loans stays in the catalog along with its loans."""
        loan = ledger.save(Loan(book=sample_book, customer="Fulano")).unwrap()

        result = catalog.delete(sample_book)

        assert result.kind == ErrorKind.LOAN_CONFLICT
        assert catalog.get_by_id(sample_book.id).value == sample_book
        assert ledger.get_by_id(loan.id).value == loan

    def test_delete_book_with_returned_loans(self, catalog, ledger, sample_book):
        loan = ledger.save(Loan(book=sample_book, customer="Fulano")).unwrap()
        ledger.return_loan(loan.id).unwrap()

        assert catalog.delete(sample_book).kind == ErrorKind.LOAN_CONFLICT
        assert ledger.get_by_id(loan.id).value.returned is True

    def test_delete_conflict_reported(self, mock_catalog, mock_storage, sample_book):
        mock_storage.delete.side_effect = StorageConflict("FOREIGN KEY constraint failed")
        assert mock_catalog.delete(sample_book).kind == ErrorKind.LOAN_CONFLICT


class TestFind:
    """Tests for searching books."""

    def test_find_all(self, catalog, multiple_books):
        page = catalog.find().unwrap()
        assert page.total_elements == 5
        assert len(page.content) == 5

    def test_find_title_partial_case_insensitive(self, catalog, multiple_books):
        page = catalog.find(BookFilter(title="HOBBIT")).unwrap()
        assert [b.title for b in page.content] == ["The Hobbit"]

    def test_find_author(self, catalog, multiple_books):
        page = catalog.find(BookFilter(author="tolkien")).unwrap()
        assert page.total_elements == 2

    def test_find_fields_combine(self, catalog, multiple_books):
        page = catalog.find(BookFilter(title="the", author="adams")).unwrap()
        assert [b.author for b in page.content] == ["Douglas Adams"]

    def test_find_by_id_is_exact(self, catalog, multiple_books):
        target = multiple_books[2]

        page = catalog.find(BookFilter(id=target.id)).unwrap()
        assert page.content == [target]

        partial = catalog.find(BookFilter(id=target.id[:8])).unwrap()
        assert partial.total_elements == 0

    def test_find_no_match(self, catalog, multiple_books):
        page = catalog.find(BookFilter(title="Silmarillion")).unwrap()
        assert page.total_elements == 0
        assert page.content == []

    def test_pagination(self, catalog, multiple_books):
        """Page size bounds the content but never the total."""
        for size in (1, 2, 3, 5, 10):
            page = catalog.find(BookFilter(), PageRequest(page=0, size=size)).unwrap()
            assert len(page.content) == min(size, 5)
            assert page.total_elements == 5

    def test_pages_cover_all_books(self, catalog, multiple_books):
        seen = []
        for index in range(3):
            page = catalog.find(None, PageRequest(page=index, size=2)).unwrap()
            seen.extend(book.id for book in page.content)
        assert sorted(seen) == sorted(book.id for book in multiple_books)

    def test_find_passes_filter_to_storage(self, mock_catalog, mock_storage):
        mock_storage.scan.return_value = Page(content=[], page=0, size=10, total_elements=0)
        book_filter = BookFilter(isbn="12")
        request = PageRequest(page=0, size=10)

        mock_catalog.find(book_filter, request)

        mock_storage.scan.assert_called_once_with(book_filter, request)
