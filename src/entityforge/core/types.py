"""Core types for EntityForge.

All output types are pydantic models so hosts can serialize them as-is.
"""

from __future__ import annotations

import datetime
import decimal
import enum
import math
import uuid
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class FieldType(StrEnum):
    """Semantic value types of entity properties."""

    STRING = "string"
    UUID = "uuid"
    INT = "int"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOL = "bool"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    ENUM = "enum"
    JSON = "json"
    OTHER = "other"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid field type values."""
        return [t.value for t in cls]

    @classmethod
    def from_python_type(cls, python_type: type | None) -> FieldType:
        """Map a python type to its semantic field type."""
        if python_type is None:
            return cls.OTHER
        # bool before int, datetime before date: subclasses come first
        for candidate, field_type in _PYTHON_TYPES:
            if isinstance(python_type, type) and issubclass(python_type, candidate):
                return field_type
        return cls.OTHER


_PYTHON_TYPES: list[tuple[type, FieldType]] = [
    (bool, FieldType.BOOL),
    (enum.Enum, FieldType.ENUM),
    (str, FieldType.STRING),
    (int, FieldType.INT),
    (float, FieldType.FLOAT),
    (decimal.Decimal, FieldType.DECIMAL),
    (datetime.datetime, FieldType.DATETIME),
    (datetime.date, FieldType.DATE),
    (datetime.time, FieldType.TIME),
    (uuid.UUID, FieldType.UUID),
    (dict, FieldType.JSON),
    (list, FieldType.JSON),
]


class SearchType(StrEnum):
    """How a property takes part in free-text search."""

    NONE = "none"  # Never contributes a predicate term
    CONTAINS_CASE_INSENSITIVE = "contains_case_insensitive"
    STARTS_WITH_CASE_SENSITIVE = "starts_with_case_sensitive"
    EXACT_MATCH_CASE_INSENSITIVE = "exact_match_case_insensitive"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid search type values."""
        return [t.value for t in cls]


class SearchOptions(BaseModel):
    """Free-text search and paging request."""

    search_string: str | None = Field(default=None, description="Free-text search")
    page: int = Field(default=1, description="1-based page number")
    page_size: int | None = Field(default=None, description="Items per page")


class PageResult(BaseModel):
    """One page of query results."""

    items: list[Any]
    total_count: int
    page: int
    page_size: int

    @property
    def page_count(self) -> int:
        """Number of pages needed for all matched records."""
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)


class FieldError(BaseModel):
    """A validation failure bound to a single field."""

    field: str
    message: str


class ValidationResult(BaseModel):
    """Result of validating (and possibly saving) a record."""

    errors: list[FieldError] = Field(default_factory=list)
    record: Any = None

    @property
    def is_valid(self) -> bool:
        """Whether no field errors were collected."""
        return not self.errors

    def add(self, field: str, message: str) -> None:
        """Collect an error for a field."""
        self.errors.append(FieldError(field=field, message=message))
