"""Tests for OverdueNotifier."""

import logging
import threading
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from libraryapi.catalog import Book
from libraryapi.errors import ErrorKind, Result
from libraryapi.lending import Loan, LoanLedger
from libraryapi.notify import (
    NotificationError,
    NotificationSender,
    OverdueNotifier,
)
from libraryapi.notify.notifier import recipients_for

MESSAGE = "Attention! You have an overdue loan."


@pytest.fixture
def book():
    return Book(id="book-1", title="As aventuras", author="Fulano", isbn="123")


@pytest.fixture
def sender():
    return MagicMock(spec=NotificationSender)


@pytest.fixture
def mock_ledger():
    return MagicMock(spec=LoanLedger)


def overdue(book, email, customer="Fulano"):
    return Loan(id=f"loan-{email}", book=book, customer=customer, customer_email=email)


class TestRecipients:
    """Tests for projecting loans to addresses."""

    def test_addresses_in_loan_order(self, book):
        loans = [overdue(book, "a@email.com"), overdue(book, "b@email.com")]
        assert recipients_for(loans) == ["a@email.com", "b@email.com"]

    def test_blank_and_repeated_addresses_dropped(self, book):
        loans = [
            overdue(book, "a@email.com"),
            overdue(book, None),
            overdue(book, "  "),
            overdue(book, "a@email.com"),
        ]
        assert recipients_for(loans) == ["a@email.com"]


class TestRun:
    """Tests for one notifier run."""

    def test_sends_message_to_overdue_customers(self, mock_ledger, sender, book):
        mock_ledger.get_all_overdue_loans.return_value = Result.success(
            [overdue(book, "a@email.com"), overdue(book, "b@email.com")]
        )
        notifier = OverdueNotifier(mock_ledger, sender, MESSAGE, threshold_days=4)

        run = notifier.run()

        mock_ledger.get_all_overdue_loans.assert_called_once_with(4)
        sender.send.assert_called_once_with(MESSAGE, ["a@email.com", "b@email.com"])
        assert run.delivered
        assert run.overdue_count == 2
        assert run.error is None

    def test_default_threshold(self, mock_ledger, sender):
        mock_ledger.get_all_overdue_loans.return_value = Result.success([])
        OverdueNotifier(mock_ledger, sender, MESSAGE).run()
        mock_ledger.get_all_overdue_loans.assert_called_once_with(4)

    def test_nothing_overdue_sends_nothing(self, mock_ledger, sender):
        mock_ledger.get_all_overdue_loans.return_value = Result.success([])

        run = OverdueNotifier(mock_ledger, sender, MESSAGE).run()

        sender.send.assert_not_called()
        assert run.delivered
        assert run.recipients == []

    def test_delivery_failure_logged_not_retried(self, mock_ledger, sender, book, caplog):
        mock_ledger.get_all_overdue_loans.return_value = Result.success(
            [overdue(book, "a@email.com")]
        )
        sender.send.side_effect = NotificationError("SMTP server unreachable")
        notifier = OverdueNotifier(mock_ledger, sender, MESSAGE)

        with caplog.at_level(logging.ERROR, logger="libraryapi.notify.notifier"):
            run = notifier.run()

        assert sender.send.call_count == 1
        assert not run.delivered
        assert run.error == "SMTP server unreachable"
        assert "Failed to notify" in caplog.text

    def test_next_run_includes_still_overdue(self, mock_ledger, sender, book):
        mock_ledger.get_all_overdue_loans.return_value = Result.success(
            [overdue(book, "a@email.com")]
        )
        sender.send.side_effect = [NotificationError("down"), None]
        notifier = OverdueNotifier(mock_ledger, sender, MESSAGE)

        assert not notifier.run().delivered
        assert notifier.run().delivered
        assert sender.send.call_count == 2

    def test_ledger_failure(self, mock_ledger, sender):
        mock_ledger.get_all_overdue_loans.return_value = Result.failure(
            ErrorKind.STORAGE_UNAVAILABLE, "database is locked"
        )

        run = OverdueNotifier(mock_ledger, sender, MESSAGE).run()

        sender.send.assert_not_called()
        assert run.error == "database is locked"
        assert not run.delivered

    def test_summary(self, mock_ledger, sender, book):
        mock_ledger.get_all_overdue_loans.return_value = Result.success(
            [overdue(book, "a@email.com")]
        )
        run = OverdueNotifier(mock_ledger, sender, MESSAGE).run()
        assert run.summary == "Overdue: 1, Recipients: 1, Status: delivered"


class TestNoOverlap:
    """Tests for overlapping runs."""

    def test_run_skipped_while_previous_active(self, mock_ledger, sender, book):
        mock_ledger.get_all_overdue_loans.return_value = Result.success(
            [overdue(book, "a@email.com")]
        )
        entered = threading.Event()
        release = threading.Event()

        def slow_send(message, recipients):
            entered.set()
            release.wait(timeout=5)

        sender.send.side_effect = slow_send
        notifier = OverdueNotifier(mock_ledger, sender, MESSAGE)

        results = []
        worker = threading.Thread(target=lambda: results.append(notifier.run()))
        worker.start()
        assert entered.wait(timeout=5)

        second = notifier.run()
        release.set()
        worker.join(timeout=5)

        assert second.skipped
        assert second.summary == "Skipped: previous run still in progress"
        assert results[0].delivered
        assert sender.send.call_count == 1

    def test_lock_released_after_failure(self, mock_ledger, sender, book):
        mock_ledger.get_all_overdue_loans.return_value = Result.success(
            [overdue(book, "a@email.com")]
        )
        sender.send.side_effect = RuntimeError("boom")
        notifier = OverdueNotifier(mock_ledger, sender, MESSAGE)

        notifier.run()

        assert not notifier.run().skipped


class TestWithLedger:
    """Notifier against a real ledger."""

    def test_only_overdue_customers_notified(self, ledger, make_book, sender, today):
        ledger.save(
            Loan(
                book=make_book("1"),
                customer="Fulano",
                customer_email="fulano@email.com",
                loan_date=today - timedelta(days=4),
            )
        ).unwrap()
        ledger.save(
            Loan(
                book=make_book("2"),
                customer="Cicrano",
                customer_email="cicrano@email.com",
                loan_date=today - timedelta(days=3),
            )
        ).unwrap()
        returned = ledger.save(
            Loan(
                book=make_book("3"),
                customer="Beltrano",
                customer_email="beltrano@email.com",
                loan_date=today - timedelta(days=10),
            )
        ).unwrap()
        ledger.return_loan(returned.id).unwrap()

        run = OverdueNotifier(ledger, sender, MESSAGE, threshold_days=4).run()

        sender.send.assert_called_once_with(MESSAGE, ["fulano@email.com"])
        assert run.overdue_count == 1
