"""Periodic trigger for the overdue notifier."""

import logging
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

JOB_ID = "overdue_loans"


class NotifierScheduler:
    """Runs a job on a crontab schedule in a background thread.

    The job is registered with ``max_instances=1`` and ``coalesce=True`` so a
    slow run is never overlapped and missed firings collapse into one.
    """

    def __init__(
        self,
        job: Callable[[], object],
        cron: str = "0 0 * * *",
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        """Initialize the scheduler.

        Args:
            job: Callable run on each firing (e.g. ``OverdueNotifier.run``)
            cron: Crontab expression; the default fires daily at midnight
            scheduler: APScheduler instance to register the job with
        """
        self.job = job
        self.trigger = CronTrigger.from_crontab(cron)
        self.scheduler = scheduler or BackgroundScheduler()

    def start(self) -> None:
        """Register the job and start firing."""
        self.scheduler.add_job(
            self.job,
            trigger=self.trigger,
            id=JOB_ID,
            name="Notify customers with overdue loans",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info("Overdue notification job scheduled (%s)", self.trigger)

    def shutdown(self, wait: bool = False) -> None:
        """Stop firing. A run in progress is abandoned unless ``wait`` is set."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
            logger.info("Overdue notification job stopped")

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def next_run_time(self):
        """When the job fires next, or None if not scheduled."""
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None
