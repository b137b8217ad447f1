"""Core components for EntityForge."""

from entityforge.core.engine import EntityForge
from entityforge.core.types import (
    FieldError,
    FieldType,
    PageResult,
    SearchOptions,
    SearchType,
    ValidationResult,
)

__all__ = [
    "EntityForge",
    "FieldType",
    "SearchType",
    "SearchOptions",
    "PageResult",
    "FieldError",
    "ValidationResult",
]
