"""Page request and page types."""

import math
from dataclasses import dataclass, field
from typing import Callable, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")
U = TypeVar("U")


class PageRequest(BaseModel):
    """A zero-based page index and a page size."""

    page: int = Field(0, ge=0)
    size: int = Field(20, ge=1, le=1000)

    model_config = {"frozen": True}

    @property
    def offset(self) -> int:
        """Number of matches skipped before this page."""
        return self.page * self.size


@dataclass(frozen=True)
class Page(Generic[T]):
    """One slice of matching results plus the total match count."""

    content: list[T] = field(default_factory=list)
    page: int = 0
    size: int = 20
    total_elements: int = 0

    @classmethod
    def of(cls, content: list[T], request: PageRequest, total: int) -> "Page[T]":
        return cls(
            content=list(content),
            page=request.page,
            size=request.size,
            total_elements=total,
        )

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total_elements / self.size)

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages

    @property
    def number_of_elements(self) -> int:
        return len(self.content)

    def map(self, func: Callable[[T], U]) -> "Page[U]":
        """Convert the content, keeping page position and total."""
        return Page(
            content=[func(item) for item in self.content],
            page=self.page,
            size=self.size,
            total_elements=self.total_elements,
        )
