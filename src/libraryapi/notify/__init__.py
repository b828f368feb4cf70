"""Overdue loan notification module.

Provides functionality for:
- Collecting the contact addresses of customers with overdue loans
- Handing them to a notification sender
- Running the notifier on a schedule
"""

from .notifier import NotificationRun, OverdueNotifier
from .scheduler import NotifierScheduler
from .sender import LogNotificationSender, NotificationError, NotificationSender

__all__ = [
    "LogNotificationSender",
    "NotificationError",
    "NotificationRun",
    "NotificationSender",
    "NotifierScheduler",
    "OverdueNotifier",
]
