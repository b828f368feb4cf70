"""Filtered pagination shared by the catalog and the loan ledger.

Provides:
- Page requests and pages carrying the total match count
- Sparse filters: unset fields impose no constraint
- SQLAlchemy criteria and in-memory matching with the same semantics
"""

from .filters import filter_criteria, is_unset, matches
from .pager import FilteredPager, filter_items, paginate
from .schemas import Page, PageRequest

__all__ = [
    "FilteredPager",
    "Page",
    "PageRequest",
    "filter_criteria",
    "filter_items",
    "is_unset",
    "matches",
    "paginate",
]
