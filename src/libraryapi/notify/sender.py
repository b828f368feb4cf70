"""Notification sender contract."""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised when a batch of notifications could not be delivered."""

    pass


class NotificationSender(ABC):
    """Delivers one message to a list of recipients, best effort."""

    @abstractmethod
    def send(self, message: str, recipients: list[str]) -> None:
        """Send ``message`` to every recipient.

        Raises:
            NotificationError: If the batch could not be delivered
        """


class LogNotificationSender(NotificationSender):
    """Writes each batch to the log instead of delivering it."""

    def send(self, message: str, recipients: list[str]) -> None:
        logger.info("Notifying %d recipient(s): %s", len(recipients), message)
        for recipient in recipients:
            logger.debug("  -> %s", recipient)
