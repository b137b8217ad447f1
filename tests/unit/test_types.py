"""Tests for core types."""

import datetime
import decimal
import enum
import uuid

from entityforge.core.types import (
    FieldType,
    PageResult,
    SearchOptions,
    SearchType,
    ValidationResult,
)
from entityforge.exceptions import InvalidSearchTypeError


class Color(enum.Enum):
    RED = 1


class TestFieldType:
    """Tests for FieldType enum."""

    def test_string_values(self):
        """Field types should have correct string values."""
        assert FieldType.STRING.value == "string"
        assert FieldType.INT.value == "int"
        assert FieldType.BOOL.value == "bool"

    def test_from_string(self):
        """Can create FieldType from string."""
        assert FieldType("decimal") == FieldType.DECIMAL
        assert "enum" in FieldType.values()

    def test_from_python_type(self):
        """Python types map to semantic field types."""
        assert FieldType.from_python_type(str) == FieldType.STRING
        assert FieldType.from_python_type(int) == FieldType.INT
        assert FieldType.from_python_type(float) == FieldType.FLOAT
        assert FieldType.from_python_type(decimal.Decimal) == FieldType.DECIMAL
        assert FieldType.from_python_type(datetime.date) == FieldType.DATE
        assert FieldType.from_python_type(datetime.time) == FieldType.TIME
        assert FieldType.from_python_type(uuid.UUID) == FieldType.UUID
        assert FieldType.from_python_type(dict) == FieldType.JSON

    def test_subclasses_before_base_classes(self):
        """bool is not reported as int, datetime not as date."""
        assert FieldType.from_python_type(bool) == FieldType.BOOL
        assert FieldType.from_python_type(datetime.datetime) == FieldType.DATETIME
        assert FieldType.from_python_type(Color) == FieldType.ENUM

    def test_unknown_type(self):
        """Unknown or missing types fall back to OTHER."""
        assert FieldType.from_python_type(None) == FieldType.OTHER
        assert FieldType.from_python_type(object) == FieldType.OTHER


class TestSearchType:
    """Tests for SearchType enum."""

    def test_values(self):
        assert SearchType.values() == [
            "none",
            "contains_case_insensitive",
            "starts_with_case_sensitive",
            "exact_match_case_insensitive",
        ]

    def test_error_lists_every_search_type(self):
        """The invalid-search-type error names exactly the enumeration values."""
        assert InvalidSearchTypeError.VALID_TYPES == SearchType.values()


class TestPageResult:
    """Tests for PageResult model."""

    def test_page_count(self):
        """Page count rounds up."""
        assert PageResult(items=[], total_count=6, page=1, page_size=4).page_count == 2
        assert PageResult(items=[], total_count=8, page=1, page_size=4).page_count == 2
        assert PageResult(items=[], total_count=0, page=1, page_size=4).page_count == 0

    def test_search_options_defaults(self):
        options = SearchOptions()
        assert options.search_string is None
        assert options.page == 1
        assert options.page_size is None


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_empty_is_valid(self):
        assert ValidationResult().is_valid

    def test_add_error(self):
        """Adding an error makes the result invalid."""
        result = ValidationResult()
        result.add("street", "Street is required.")
        assert not result.is_valid
        assert result.errors[0].field == "street"
        assert result.errors[0].message == "Street is required."
