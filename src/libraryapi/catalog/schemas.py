"""Pydantic schemas for the book catalog."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Book(BaseModel):
    """A catalog book. ``id`` is None until the book is saved."""

    id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=500)
    isbn: str = Field(..., min_length=1, max_length=20)

    model_config = {"frozen": True, "from_attributes": True}

    @field_validator("isbn")
    @classmethod
    def strip_isbn(cls, v: str) -> str:
        """Normalize surrounding whitespace in the ISBN."""
        v = v.strip()
        if not v:
            raise ValueError("isbn must not be blank")
        return v


class BookFilter(BaseModel):
    """Sparse book search filter.

    ``id`` matches exactly; the other fields match by case-insensitive
    containment.
    """

    id: Optional[str] = None
    title: Optional[str] = None
    author: Optional[str] = None
    isbn: Optional[str] = None
