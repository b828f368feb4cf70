"""Database module for local SQLite storage."""

from .models import BookRecord, LoanRecord
from .repositories import SqlBookStorage, SqlLoanStorage
from .sqlite import Database, get_db

__all__ = [
    "BookRecord",
    "LoanRecord",
    "SqlBookStorage",
    "SqlLoanStorage",
    "Database",
    "get_db",
]
