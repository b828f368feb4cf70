"""Book catalog module.

Provides functionality for:
- Registering books with a unique ISBN
- Updating and deleting catalog records
- Filtered, paginated book search
"""

from .schemas import Book, BookFilter
from .manager import BookCatalog

__all__ = [
    "Book",
    "BookCatalog",
    "BookFilter",
]
