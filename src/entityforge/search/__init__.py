"""Free-text search over type-erased records.

Example:
    >>> specs = {"street": SearchType.CONTAINS_CASE_INSENSITIVE}
    >>> filtered = build_filter(sequence, 'main "central"', specs)
"""

from entityforge.search.expressions import AllOf, AnyOf, Expression, FieldMatch
from entityforge.search.predicate import SearchToken, build_expression, build_filter, tokenize

__all__ = [
    "Expression",
    "FieldMatch",
    "AnyOf",
    "AllOf",
    "SearchToken",
    "tokenize",
    "build_expression",
    "build_filter",
]
