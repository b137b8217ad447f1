"""Tests for free-text search predicates."""

import datetime
import decimal

import pytest

from entityforge.core.types import FieldType, SearchType
from entityforge.data import InMemorySequence
from entityforge.exceptions import InvalidSearchTypeError
from entityforge.search import (
    AllOf,
    AnyOf,
    Expression,
    FieldMatch,
    SearchToken,
    build_expression,
    build_filter,
    tokenize,
)
from entityforge.search.values import to_text
from sample_models import ShopCategory

CONTAINS = SearchType.CONTAINS_CASE_INSENSITIVE
STARTS_WITH = SearchType.STARTS_WITH_CASE_SENSITIVE
EXACT = SearchType.EXACT_MATCH_CASE_INSENSITIVE


def _streets(sequence) -> list[str]:
    return [record.street for record in sequence]


@pytest.fixture
def sequence(addresses) -> InMemorySequence:
    """Unfiltered sequence over the sample addresses."""
    return InMemorySequence(lambda: list(addresses), {})


class TestTokenize:
    """Tests for search string tokenization."""

    def test_whitespace_split(self):
        assert tokenize("  sq   lond ") == [SearchToken("sq"), SearchToken("lond")]

    def test_quoted_token(self):
        assert tokenize('main "central"') == [
            SearchToken("main"),
            SearchToken("central", is_exact=True),
        ]

    def test_quoted_phrase_is_not_one_token(self):
        """Quoting applies to single whitespace-free tokens only."""
        assert tokenize('"main St."') == [SearchToken('"main'), SearchToken('St."')]

    def test_lone_quote(self):
        assert tokenize('"') == [SearchToken('"')]
        assert tokenize('""') == [SearchToken("", is_exact=True)]


class TestBuildExpression:
    """Tests for expression compilation."""

    def test_no_search_string(self):
        assert build_expression(None, {"street": CONTAINS}) is None
        assert build_expression("", {"street": CONTAINS}) is None
        assert build_expression("   ", {"street": CONTAINS}) is None

    def test_no_monitored_fields(self):
        assert build_expression("main", {"street": SearchType.NONE}) is None
        assert build_expression("main", {}) is None

    def test_single_token_single_field(self):
        assert build_expression("main", {"street": CONTAINS}) == FieldMatch(
            "street", CONTAINS, "main"
        )

    def test_tokens_and_fields(self):
        """OR across fields, AND across tokens."""
        expression = build_expression("sq lond", {"street": CONTAINS, "city": CONTAINS})
        assert isinstance(expression, AllOf)
        assert len(expression.terms) == 2
        assert all(isinstance(term, AnyOf) for term in expression.terms)
        assert expression.fields() == {"street", "city"}

    def test_quoted_token_forces_exact_match(self):
        expression = build_expression('"central"', {"street": CONTAINS, "city": STARTS_WITH})
        assert {term.search_type for term in expression.terms} == {EXACT}

    def test_null_token_under_exact_match(self):
        expression = build_expression("None", {"street": EXACT})
        assert expression.match_null is True
        assert build_expression("None", {"street": CONTAINS}).match_null is False

    def test_string_specs_accepted(self):
        expression = build_expression("main", {"street": "contains_case_insensitive"})
        assert expression.search_type is CONTAINS

    def test_invalid_search_type(self):
        """A search type outside the enumeration fails even without a search string."""
        with pytest.raises(InvalidSearchTypeError) as exc_info:
            build_expression(None, {"street": "regex"})
        assert exc_info.value.field_name == "street"

    def test_field_match_rejects_none_type(self):
        with pytest.raises(InvalidSearchTypeError):
            FieldMatch("street", SearchType.NONE, "main")

    def test_expression_is_abstract(self):
        with pytest.raises(TypeError):
            Expression()

    def test_operators(self):
        street = FieldMatch("street", CONTAINS, "sq")
        city = FieldMatch("city", CONTAINS, "sq")
        assert street | city == AnyOf((street, city))
        assert street & city == AllOf((street, city))


class TestBuildFilter:
    """Search over the sample addresses."""

    def test_contains_case_insensitive(self, sequence):
        result = build_filter(sequence, "ain", {"street": CONTAINS})
        assert _streets(result) == ["Main St.", "Main Square St.", "Second main St."]

    def test_contains_prefix_word(self, sequence):
        result = build_filter(sequence, "Second", {"street": CONTAINS})
        assert _streets(result) == ["Second Square St.", "Second main St."]

    def test_exact_match(self, sequence):
        result = build_filter(sequence, "Central", {"street": EXACT})
        assert _streets(result) == ["Central"]

    def test_quoted_exact_match(self, sequence):
        result = build_filter(sequence, '"central"', {"street": CONTAINS, "city": CONTAINS})
        assert _streets(result) == ["Central"]

    def test_starts_with_case_sensitive(self, sequence):
        assert _streets(build_filter(sequence, "Main", {"street": STARTS_WITH})) == [
            "Main St.",
            "Main Square St.",
        ]
        assert _streets(build_filter(sequence, "main", {"street": STARTS_WITH})) == []

    def test_tokens_across_fields(self, sequence):
        """Every token must match in at least one field."""
        result = build_filter(sequence, "sq lond", {"street": CONTAINS, "city": CONTAINS})
        assert _streets(result) == ["Main Square St.", "Second Square St."]

    def test_token_matching_no_field(self, sequence):
        result = build_filter(sequence, "main paris", {"street": CONTAINS, "city": CONTAINS})
        assert _streets(result) == []

    def test_unchanged_without_monitored_fields(self, sequence):
        """The base sequence itself is returned when nothing is searched."""
        assert build_filter(sequence, "main", {"street": SearchType.NONE}) is sequence
        assert build_filter(sequence, "", {"street": CONTAINS}) is sequence

    def test_null_values(self, addresses, sequence):
        addresses[0].street = None
        assert _streets(build_filter(sequence, "ain", {"street": CONTAINS})) == [
            "Main Square St.",
            "Second main St.",
        ]
        assert _streets(build_filter(sequence, "none", {"street": EXACT})) == [None]

    def test_filter_is_lazy(self, addresses, sequence):
        """Records added after filtering are still seen."""
        result = build_filter(sequence, "central", {"street": CONTAINS})
        addresses.append(type(addresses[0])(id=7, street="Central Ave", city="Paris"))
        assert _streets(result) == ["Central", "central street", "Central Ave"]

    def test_dict_records(self):
        records = [{"name": "Alpha", "rank": 12}, {"name": "Beta", "rank": 3}]
        sequence = InMemorySequence(lambda: records, {})
        result = build_filter(sequence, "1", {"rank": CONTAINS})
        assert [r["name"] for r in result] == ["Alpha"]


class TestValueText:
    """Canonical text of non-text values."""

    def test_numeric(self):
        assert to_text(12) == "12"
        assert to_text(decimal.Decimal("12.50")) == "12.50"
        assert to_text(True) == "1"
        assert to_text(False, FieldType.BOOL) == "0"

    def test_temporal(self):
        assert to_text(datetime.date(2024, 3, 1)) == "2024-03-01"
        assert to_text(datetime.datetime(2024, 3, 1, 9, 30)) == "2024-03-01 09:30:00"
        assert to_text(datetime.time(9, 30)) == "09:30:00"

    def test_enum_uses_member_name(self):
        assert to_text(ShopCategory.ONLINE) == "ONLINE"

    def test_none(self):
        assert to_text(None) is None
        assert to_text(None, FieldType.STRING) is None
