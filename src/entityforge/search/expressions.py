"""Composable boolean expressions over field-test primitives.

Search filters are built as a small expression tree instead of opaque
callables so that a data source can either evaluate them record by record
(:meth:`Expression.matches`) or translate them into its native query language.

Example:
    street = FieldMatch("street", SearchType.CONTAINS_CASE_INSENSITIVE, "sq")
    city = FieldMatch("city", SearchType.CONTAINS_CASE_INSENSITIVE, "sq")
    expression = street | city
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from entityforge.core.types import SearchType
from entityforge.exceptions import InvalidSearchTypeError
from entityforge.search.values import get_value_kind, value_kind_of


class Expression(ABC):
    """Base class of search expressions."""

    @abstractmethod
    def matches(self, record: Any, properties: Mapping[str, Any] | None = None) -> bool:
        """Evaluate against one record.

        Args:
            record: Record to test
            properties: PropertyMetadata by name, used for cached accessors and
                field types; values are read by attribute or key otherwise
        """

    @abstractmethod
    def fields(self) -> set[str]:
        """Names of all fields the expression reads."""

    def __or__(self, other: Expression) -> AnyOf:
        return AnyOf((self, other))

    def __and__(self, other: Expression) -> AllOf:
        return AllOf((self, other))


@dataclass(frozen=True)
class FieldMatch(Expression):
    """Test one field against one search term."""

    field: str
    search_type: SearchType
    term: str
    match_null: bool = False

    def __post_init__(self) -> None:
        if self.search_type not in _MATCHERS:
            raise InvalidSearchTypeError(self.search_type, self.field)

    def matches(self, record: Any, properties: Mapping[str, Any] | None = None) -> bool:
        prop = properties.get(self.field) if properties else None
        if prop is not None:
            value = prop.get_value(record)
            kind = get_value_kind(prop.field_type)
        else:
            value = record.get(self.field) if isinstance(record, dict) else getattr(
                record, self.field, None
            )
            kind = value_kind_of(value)

        if value is None:
            return self.match_null
        return _MATCHERS[self.search_type](kind.to_text(value) or "", self.term)

    def fields(self) -> set[str]:
        return {self.field}


@dataclass(frozen=True)
class AnyOf(Expression):
    """Logical OR of sub-expressions."""

    terms: tuple[Expression, ...]

    def matches(self, record: Any, properties: Mapping[str, Any] | None = None) -> bool:
        return any(term.matches(record, properties) for term in self.terms)

    def fields(self) -> set[str]:
        return set().union(*(term.fields() for term in self.terms))


@dataclass(frozen=True)
class AllOf(Expression):
    """Logical AND of sub-expressions."""

    terms: tuple[Expression, ...]

    def matches(self, record: Any, properties: Mapping[str, Any] | None = None) -> bool:
        return all(term.matches(record, properties) for term in self.terms)

    def fields(self) -> set[str]:
        return set().union(*(term.fields() for term in self.terms))


def _contains(text: str, term: str) -> bool:
    return term.lower() in text.lower()


def _starts_with(text: str, term: str) -> bool:
    return text.startswith(term)


def _exact(text: str, term: str) -> bool:
    return text.lower() == term.lower()


_MATCHERS = {
    SearchType.CONTAINS_CASE_INSENSITIVE: _contains,
    SearchType.STARTS_WITH_CASE_SENSITIVE: _starts_with,
    SearchType.EXACT_MATCH_CASE_INSENSITIVE: _exact,
}
