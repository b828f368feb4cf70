"""Configuration management for libraryapi.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from apscheduler.triggers.cron import CronTrigger
from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

DEFAULT_LATE_LOAN_MESSAGE = (
    "Attention! You have an overdue loan. "
    "Please return the book as soon as possible."
)


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Overdue notifications
    overdue_threshold_days: int
    late_loan_message: str
    notify_cron: str  # crontab expression

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "LIBRARYAPI_DB_PATH",
            str(Path.home() / ".libraryapi" / "library.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            overdue_threshold_days=int(os.environ.get("LIBRARYAPI_OVERDUE_DAYS", "4")),
            late_loan_message=os.environ.get(
                "LIBRARYAPI_LATE_LOAN_MESSAGE", DEFAULT_LATE_LOAN_MESSAGE
            ),
            notify_cron=os.environ.get("LIBRARYAPI_NOTIFY_CRON", "0 0 * * *"),
            log_level=os.environ.get("LIBRARYAPI_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.overdue_threshold_days < 0:
            errors.append(
                f"Overdue threshold must not be negative: {self.overdue_threshold_days}"
            )

        if not self.late_loan_message.strip():
            errors.append("Late loan message must not be empty")

        try:
            CronTrigger.from_crontab(self.notify_cron)
        except ValueError as e:
            errors.append(f"Invalid notify cron '{self.notify_cron}': {e}")

        if str(self.db_path) != ":memory:" and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
