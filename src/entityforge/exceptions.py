"""Custom exceptions for EntityForge.

All exceptions carry an actionable message and a machine-readable context:
- Say what went wrong AND how to fix it
- Include the available options (entities, fields, search types) when relevant
"""

from __future__ import annotations

from typing import Any


class EntityForgeError(Exception):
    """Base exception for all EntityForge errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


# === Not found ===


class EntityNotFoundError(EntityForgeError):
    """Entity is not registered."""

    def __init__(self, entity_id: str, available_entities: list[str] | None = None) -> None:
        available = available_entities or []
        if available:
            message = (
                f"Entity '{entity_id}' not found. Available entities: {', '.join(available)}"
            )
        else:
            message = f"Entity '{entity_id}' not found. No entities are registered yet."

        super().__init__(message, {"entity_id": entity_id, "available_entities": available})
        self.entity_id = entity_id
        self.available_entities = available


class FieldNotFoundError(EntityForgeError):
    """Field does not exist on entity."""

    def __init__(
        self, field_name: str, entity_id: str, available_fields: list[str] | None = None
    ) -> None:
        available = available_fields or []
        if available:
            message = (
                f"Field '{field_name}' not found on '{entity_id}'. "
                f"Available fields: {', '.join(available)}"
            )
        else:
            message = f"Field '{field_name}' not found on '{entity_id}'. No fields defined."

        super().__init__(
            message,
            {
                "field_name": field_name,
                "entity_id": entity_id,
                "available_fields": available,
            },
        )
        self.field_name = field_name
        self.entity_id = entity_id
        self.available_fields = available


class RecordNotFoundError(EntityForgeError):
    """Record with given primary key does not exist."""

    def __init__(self, primary_key: Any, entity_id: str) -> None:
        message = f"Record '{primary_key}' not found in '{entity_id}'."
        super().__init__(message, {"primary_key": primary_key, "entity_id": entity_id})
        self.primary_key = primary_key
        self.entity_id = entity_id


# === Configuration ===


class ConfigurationError(EntityForgeError):
    """Host configuration is invalid. Raised at resolution or query time."""

    pass


class InvalidSearchTypeError(ConfigurationError):
    """Search type outside the supported enumeration."""

    VALID_TYPES = [
        "none",
        "contains_case_insensitive",
        "starts_with_case_sensitive",
        "exact_match_case_insensitive",
    ]

    def __init__(self, search_type: Any, field_name: str | None = None) -> None:
        target = f" for field '{field_name}'" if field_name else ""
        message = (
            f"Invalid search type '{search_type}'{target}. "
            f"Valid types: {', '.join(self.VALID_TYPES)}"
        )
        super().__init__(
            message,
            {
                "search_type": str(search_type),
                "field_name": field_name,
                "valid_types": self.VALID_TYPES,
            },
        )
        self.search_type = search_type
        self.field_name = field_name


class ConflictingOrderError(ConfigurationError):
    """The same property or navigation was given two different explicit orders."""

    def __init__(self, property_name: str, first: int, second: int) -> None:
        message = (
            f"'{property_name}' was configured with order {first} and then "
            f"with order {second}. Configure a single order per property or navigation."
        )
        super().__init__(
            message, {"property_name": property_name, "orders": [first, second]}
        )
        self.property_name = property_name


class DuplicatePropertyError(ConfigurationError):
    """Two properties resolved to the same name on one entity."""

    def __init__(self, property_name: str, entity_id: str) -> None:
        message = (
            f"Property '{property_name}' appears more than once on '{entity_id}'. "
            f"Rename the navigation or the column so names are unique."
        )
        super().__init__(message, {"property_name": property_name, "entity_id": entity_id})
        self.property_name = property_name
        self.entity_id = entity_id


# === Data access ===


class QueryError(EntityForgeError):
    """Query arguments are invalid."""

    pass


class ConcurrencyConflictError(EntityForgeError):
    """Record changed since it was read."""

    def __init__(self, entity_id: str, primary_key: Any = None) -> None:
        message = (
            f"Record '{primary_key}' in '{entity_id}' was modified by someone else. "
            f"Reload the record and apply the changes again."
        )
        super().__init__(message, {"entity_id": entity_id, "primary_key": primary_key})
        self.entity_id = entity_id
        self.primary_key = primary_key
