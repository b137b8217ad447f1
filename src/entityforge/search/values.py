"""Value kinds: canonical text conversion per semantic value category.

Search compares field values as text. Each category of value (text, numeric,
temporal, enumerated) knows how to render its values in memory and how to
express the same conversion in SQL. The kind is looked up by ``FieldType``.
"""

from __future__ import annotations

import datetime
import enum
from typing import Any

from sqlalchemy import String, cast
from sqlalchemy.sql.elements import ColumnElement

from entityforge.core.types import FieldType


class ValueKind:
    """Base kind: text values used as they are."""

    name = "text"

    def to_text(self, value: Any) -> str | None:
        """Convert a field value to its canonical text; None stays None."""
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)

    def sql_text(self, column: ColumnElement[Any]) -> ColumnElement[Any]:
        """SQL expression producing the canonical text of a column."""
        return column


class NumericKind(ValueKind):
    name = "numeric"

    def to_text(self, value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, bool):
            return "1" if value else "0"
        return str(value)

    def sql_text(self, column: ColumnElement[Any]) -> ColumnElement[Any]:
        return cast(column, String)


class TemporalKind(ValueKind):
    name = "temporal"

    def to_text(self, value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, datetime.datetime):
            return value.isoformat(sep=" ")
        if isinstance(value, datetime.date | datetime.time):
            return value.isoformat()
        return str(value)

    def sql_text(self, column: ColumnElement[Any]) -> ColumnElement[Any]:
        return cast(column, String)


class EnumKind(ValueKind):
    """Enum members are compared by name, as SQLAlchemy stores them."""

    name = "enumerated"

    def to_text(self, value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, enum.Enum):
            return value.name
        return str(value)

    def sql_text(self, column: ColumnElement[Any]) -> ColumnElement[Any]:
        return cast(column, String)


TEXT = ValueKind()
NUMERIC = NumericKind()
TEMPORAL = TemporalKind()
ENUMERATED = EnumKind()

VALUE_KINDS: dict[FieldType, ValueKind] = {
    FieldType.STRING: TEXT,
    FieldType.UUID: TEXT,
    FieldType.JSON: TEXT,
    FieldType.OTHER: TEXT,
    FieldType.INT: NUMERIC,
    FieldType.FLOAT: NUMERIC,
    FieldType.DECIMAL: NUMERIC,
    FieldType.BOOL: NUMERIC,
    FieldType.DATETIME: TEMPORAL,
    FieldType.DATE: TEMPORAL,
    FieldType.TIME: TEMPORAL,
    FieldType.ENUM: ENUMERATED,
}


def get_value_kind(field_type: FieldType | None) -> ValueKind:
    """Look up the value kind of a semantic field type."""
    if field_type is None:
        return TEXT
    return VALUE_KINDS.get(field_type, TEXT)


def value_kind_of(value: Any) -> ValueKind:
    """Look up the value kind of a concrete value."""
    return get_value_kind(FieldType.from_python_type(type(value)))


def to_text(value: Any, field_type: FieldType | None = None) -> str | None:
    """Canonical text of a value, using field_type when known."""
    kind = get_value_kind(field_type) if field_type is not None else value_kind_of(value)
    return kind.to_text(value)
