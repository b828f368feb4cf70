"""Sparse filter matching.

A filter is a pydantic model whose fields are all optional. A field that is
``None`` or an empty string imposes no constraint. A set string field
matches case-insensitively by containment (or exactly, when ``exact`` is
requested, or for the fields named in ``exact_fields``); any other set field
matches by equality. Set fields are
combined with AND, or with OR when ``any_of`` is requested.
"""

from typing import Any, Callable, Collection, Mapping, Optional

from pydantic import BaseModel
from sqlalchemy import and_, or_, true
from sqlalchemy.sql.elements import ColumnElement

LIKE_ESCAPE = "\\"


def is_unset(value: Any) -> bool:
    """Check if a filter value imposes no constraint."""
    return value is None or (isinstance(value, str) and value == "")


def active_fields(filter_obj: Optional[BaseModel]) -> dict[str, Any]:
    """Return the filter fields that carry a constraint."""
    if filter_obj is None:
        return {}
    return {
        name: value
        for name, value in filter_obj.model_dump().items()
        if not is_unset(value)
    }


def _escape_like(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def filter_criteria(
    filter_obj: Optional[BaseModel],
    columns: Mapping[str, Any],
    exact: bool = False,
    any_of: bool = False,
    exact_fields: Collection[str] = (),
) -> ColumnElement[bool]:
    """Build a SQLAlchemy criterion from a filter.

    Args:
        filter_obj: Filter model (None for no constraint)
        columns: Filter field name -> mapped column
        exact: Compare strings by equality instead of containment
        any_of: Combine constraints with OR instead of AND
        exact_fields: String fields compared by equality even without ``exact``

    Returns:
        A criterion usable in ``Select.where``; ``true()`` when nothing is set
    """
    criteria = []
    for name, value in active_fields(filter_obj).items():
        column = columns.get(name)
        if column is None:
            raise ValueError(f"Unknown filter field: {name}")

        if isinstance(value, str) and not (exact or name in exact_fields):
            pattern = f"%{_escape_like(value)}%"
            criteria.append(column.ilike(pattern, escape=LIKE_ESCAPE))
        else:
            criteria.append(column == value)

    if not criteria:
        return true()
    return or_(*criteria) if any_of else and_(*criteria)


def matches(
    item: Any,
    filter_obj: Optional[BaseModel],
    getters: Optional[Mapping[str, Callable[[Any], Any]]] = None,
    exact: bool = False,
    any_of: bool = False,
    exact_fields: Collection[str] = (),
) -> bool:
    """Check an in-memory item against a filter.

    ``getters`` maps a filter field to a function reading it from the item;
    fields without a getter are read as attributes of the same name.
    """
    fields = active_fields(filter_obj)
    if not fields:
        return True

    getters = getters or {}
    results = []
    for name, wanted in fields.items():
        getter = getters.get(name)
        actual = getter(item) if getter else getattr(item, name, None)

        if isinstance(wanted, str) and not (exact or name in exact_fields):
            hit = actual is not None and wanted.lower() in str(actual).lower()
        else:
            hit = actual == wanted
        results.append(hit)

    return any(results) if any_of else all(results)

