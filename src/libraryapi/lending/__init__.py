"""Book lending module.

Provides functionality for:
- Lending a book to a customer (one active loan per book)
- Flagging loans returned
- Searching loans by ISBN or customer
- Finding overdue loans
"""

from .schemas import Loan, LoanFilter
from .manager import LoanLedger

__all__ = [
    "Loan",
    "LoanFilter",
    "LoanLedger",
]
