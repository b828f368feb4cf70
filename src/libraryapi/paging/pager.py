"""Run filtered, paginated queries."""

from typing import Any, Callable, Collection, Iterable, Mapping, Optional, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from .filters import filter_criteria, matches
from .schemas import Page, PageRequest

T = TypeVar("T")


def paginate(session: Session, statement: Select, request: PageRequest) -> Page[Any]:
    """Execute a select for one page and count all of its matches.

    The content keeps the statement's ordering; no other order is applied.
    """
    count_stmt = select(func.count()).select_from(statement.order_by(None).subquery())
    total = session.execute(count_stmt).scalar_one()

    content = []
    if total > request.offset:
        page_stmt = statement.offset(request.offset).limit(request.size)
        content = list(session.execute(page_stmt).scalars().all())

    return Page.of(content, request, total)


class FilteredPager:
    """Applies one kind of filter to select statements and pages the result."""

    def __init__(
        self,
        columns: Mapping[str, Any],
        exact: bool = False,
        any_of: bool = False,
        exact_fields: Collection[str] = (),
    ):
        """Initialize the pager.

        Args:
            columns: Filter field name -> mapped column
            exact: Match strings by equality instead of containment
            any_of: Combine set fields with OR instead of AND
            exact_fields: String fields matched by equality even without ``exact``
        """
        self.columns = dict(columns)
        self.exact = exact
        self.any_of = any_of
        self.exact_fields = frozenset(exact_fields)

    def where(self, statement: Select, filter_obj: Optional[BaseModel]) -> Select:
        """Restrict a statement to the rows matching the filter."""
        return statement.where(
            filter_criteria(
                filter_obj,
                self.columns,
                exact=self.exact,
                any_of=self.any_of,
                exact_fields=self.exact_fields,
            )
        )

    def fetch(
        self,
        session: Session,
        statement: Select,
        filter_obj: Optional[BaseModel],
        request: PageRequest,
    ) -> Page[Any]:
        """Filter a statement and return the requested page."""
        return paginate(session, self.where(statement, filter_obj), request)


def filter_items(
    items: Iterable[T],
    filter_obj: Optional[BaseModel],
    request: PageRequest,
    getters: Optional[Mapping[str, Callable[[T], Any]]] = None,
    exact: bool = False,
    any_of: bool = False,
    exact_fields: Collection[str] = (),
) -> Page[T]:
    """Filter and page an in-memory sequence, keeping its order."""
    hits = [
        item
        for item in items
        if matches(
            item,
            filter_obj,
            getters=getters,
            exact=exact,
            any_of=any_of,
            exact_fields=exact_fields,
        )
    ]
    start = request.offset
    return Page.of(hits[start:start + request.size], request, len(hits))
