"""Overdue loan notifications."""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ..lending.manager import LoanLedger
from ..lending.schemas import Loan
from .sender import NotificationSender

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD_DAYS = 4


@dataclass
class NotificationRun:
    """Result of one notifier run."""

    started_at: datetime
    overdue_count: int = 0
    recipients: list[str] = field(default_factory=list)
    delivered: bool = False
    skipped: bool = False
    error: Optional[str] = None

    @property
    def summary(self) -> str:
        """Get summary string."""
        if self.skipped:
            return "Skipped: previous run still in progress"
        status = "delivered" if self.delivered else f"failed ({self.error})"
        return (
            f"Overdue: {self.overdue_count}, "
            f"Recipients: {len(self.recipients)}, "
            f"Status: {status}"
        )


def recipients_for(loans: list[Loan]) -> list[str]:
    """Customer addresses of the given loans, without blanks or repeats."""
    seen = set()
    recipients = []
    for loan in loans:
        address = (loan.customer_email or "").strip()
        if address and address not in seen:
            seen.add(address)
            recipients.append(address)
    return recipients


class OverdueNotifier:
    """Sends the late-loan message to every customer with an overdue loan.

    Each call to ``run`` is one job execution. Runs never overlap; a run
    started while another is in progress is skipped. Failed deliveries are
    logged and not retried, since the next run picks up loans that are
    still overdue.
    """

    def __init__(
        self,
        ledger: LoanLedger,
        sender: NotificationSender,
        message: str,
        threshold_days: int = DEFAULT_THRESHOLD_DAYS,
    ):
        """Initialize the notifier.

        Args:
            ledger: Loan ledger to query
            sender: Notification sender
            message: Message sent to each customer
            threshold_days: Loan age (in days) at which a loan is overdue
        """
        self.ledger = ledger
        self.sender = sender
        self.message = message
        self.threshold_days = threshold_days
        self._lock = threading.Lock()

    def run(self) -> NotificationRun:
        """Execute one notification run."""
        run = NotificationRun(started_at=datetime.now(timezone.utc))

        if not self._lock.acquire(blocking=False):
            logger.warning("Overdue notification run skipped: previous run still active")
            run.skipped = True
            return run

        try:
            self._execute(run)
        finally:
            self._lock.release()

        return run

    def _execute(self, run: NotificationRun) -> None:
        result = self.ledger.get_all_overdue_loans(self.threshold_days)
        if not result.ok:
            run.error = result.error.message
            logger.error(
                "Could not load overdue loans (%s): %s",
                result.error.kind.value,
                result.error.message,
            )
            return

        loans = result.value or []
        run.overdue_count = len(loans)
        run.recipients = recipients_for(loans)

        if not run.recipients:
            logger.info("No overdue loans to notify (%d overdue)", run.overdue_count)
            run.delivered = True
            return

        try:
            self.sender.send(self.message, list(run.recipients))
        except Exception as e:
            run.error = str(e)
            logger.error(
                "Failed to notify %d recipient(s) of overdue loans",
                len(run.recipients),
                exc_info=True,
            )
            return

        run.delivered = True
        logger.info(
            "Notified %d recipient(s) about %d overdue loan(s)",
            len(run.recipients),
            run.overdue_count,
        )
