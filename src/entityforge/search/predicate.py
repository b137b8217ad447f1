"""Search Predicate Builder: free-text search over type-erased records.

The search string is split on whitespace. Every token must match (AND) in at
least one monitored field (OR). A token wrapped in double quotes is unquoted
and compared by exact match on every field, whatever the field's own search
type.

Quoting applies to single tokens only: ``"main St."`` is two tokens, ``"main``
and ``St."``, neither of which is quoted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from entityforge.core.types import SearchType
from entityforge.metadata.options import validate_search_type
from entityforge.search.expressions import AllOf, AnyOf, Expression, FieldMatch

logger = logging.getLogger(__name__)

QUOTE = '"'
# Under exact match this token also finds empty (null) values
NULL_TOKEN = "none"


class Filterable(Protocol):
    """A lazy record sequence that accepts search expressions."""

    def where(self, expression: Expression) -> Any: ...


S = TypeVar("S", bound=Filterable)


@dataclass(frozen=True)
class SearchToken:
    """One whitespace-separated piece of a search string."""

    text: str
    is_exact: bool = False


def tokenize(search_string: str) -> list[SearchToken]:
    """Split a search string into tokens, unquoting quoted ones."""
    tokens = []
    for word in search_string.split():
        if len(word) >= 2 and word.startswith(QUOTE) and word.endswith(QUOTE):
            tokens.append(SearchToken(word[1:-1], is_exact=True))
        else:
            tokens.append(SearchToken(word))
    return tokens


def build_expression(
    search_string: str | None,
    property_search_specs: Mapping[str, SearchType | str],
) -> Expression | None:
    """Compile a search string into an expression.

    Args:
        search_string: Free-text search
        property_search_specs: Search type by field name

    Returns:
        The expression, or None when no filtering applies

    Raises:
        InvalidSearchTypeError: If a spec holds a value outside SearchType
    """
    specs = {
        name: validate_search_type(search_type, name)
        for name, search_type in property_search_specs.items()
    }
    monitored = {name: st for name, st in specs.items() if st is not SearchType.NONE}
    if not search_string or not monitored:
        return None

    tokens = tokenize(search_string)
    if not tokens:
        return None

    per_token: list[Expression] = []
    for token in tokens:
        field_tests: list[Expression] = []
        for name, search_type in monitored.items():
            if token.is_exact:
                search_type = SearchType.EXACT_MATCH_CASE_INSENSITIVE
            field_tests.append(
                FieldMatch(
                    name,
                    search_type,
                    token.text,
                    match_null=(
                        search_type is SearchType.EXACT_MATCH_CASE_INSENSITIVE
                        and token.text.lower() == NULL_TOKEN
                    ),
                )
            )
        per_token.append(field_tests[0] if len(field_tests) == 1 else AnyOf(tuple(field_tests)))

    expression = per_token[0] if len(per_token) == 1 else AllOf(tuple(per_token))
    logger.debug(
        f"Compiled search over {sorted(monitored)} from {len(tokens)} token(s): {expression}"
    )
    return expression


def build_filter(
    base_sequence: S,
    search_string: str | None,
    property_search_specs: Mapping[str, SearchType | str],
) -> S:
    """Restrict a record sequence to records matching a free-text search.

    The sequence stays lazy: the expression is handed to its ``where`` method
    so a storage-backed source can translate it into a native query.

    Returns:
        The filtered sequence, or ``base_sequence`` itself when the search
        string is empty or no field has a search type other than NONE
    """
    expression = build_expression(search_string, property_search_specs)
    if expression is None:
        return base_sequence
    return base_sequence.where(expression)
