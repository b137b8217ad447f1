"""Resolved metadata describing registered entities.

These models are built once per entity type by the
:class:`~entityforge.metadata.resolver.MetadataResolver` and shared read-only
afterwards. Collections are tuples and the models are frozen so that nothing
downstream can mutate the canonical record.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from entityforge.core.types import FieldType, SearchType

# entity metadata, record sequence, search string -> filtered sequence
SearchFunction = Callable[[Any, Any, str], Any]
# entity metadata, record sequence -> sequence
QueryFunction = Callable[[Any, Any], Any]
# entity metadata, updated record, original record -> None
AfterUpdateAction = Callable[[Any, Any, Any], Any]


class PropertyMetadata(BaseModel):
    """Metadata of a single entity property."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    display_name: str = ""
    description: str = ""
    python_type: Any = Field(default=None, exclude=True)
    field_type: FieldType = FieldType.OTHER
    is_nullable: bool = False
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_editable: bool = True
    is_searchable: bool = False
    is_hidden: bool = False
    order: int = 0
    is_value_generated_on_add: bool = False
    is_value_generated_on_update: bool = False
    search_type: SearchType | None = None
    display_format: str | None = None
    accessor: Callable[[Any], Any] | None = Field(default=None, exclude=True, repr=False)

    @model_validator(mode="after")
    def _check_searchable(self) -> PropertyMetadata:
        if self.is_searchable and self.search_type in (None, SearchType.NONE):
            raise ValueError(f"Property '{self.name}' is searchable without a search type")
        return self

    @property
    def label(self) -> str:
        """Name to show in the presentation layer."""
        return self.display_name or self.name

    def get_value(self, record: Any) -> Any:
        """Read this property from a record using the cached accessor."""
        if self.accessor is not None:
            return self.accessor(record)
        if isinstance(record, dict):
            return record.get(self.name)
        return getattr(record, self.name, None)


class NavigationMetadata(PropertyMetadata):
    """Metadata of a relation to another entity or collection of entities."""

    is_collection: bool = False
    is_included: bool = False
    display_details: bool = False
    edit_details: bool = False
    target_type: Any = Field(default=None, exclude=True)
    target_properties: tuple[PropertyMetadata, ...] = ()


class EntityMetadata(BaseModel):
    """Canonical metadata of one registered entity type."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    display_name: str = ""
    plural_name: str = ""
    description: str = ""
    group: str = ""
    is_editable: bool = True
    is_hidden: bool = False
    entity_type: Any = Field(default=None, exclude=True)
    properties: tuple[PropertyMetadata, ...] = ()
    navigations: tuple[NavigationMetadata, ...] = ()
    search_function: SearchFunction | None = Field(default=None, exclude=True, repr=False)
    custom_query_function: QueryFunction | None = Field(default=None, exclude=True, repr=False)
    after_update_action: AfterUpdateAction | None = Field(
        default=None, exclude=True, repr=False
    )

    @property
    def primary_keys(self) -> tuple[PropertyMetadata, ...]:
        """Primary key properties in display order."""
        return tuple(p for p in self.properties if p.is_primary_key)

    @property
    def searchable_properties(self) -> tuple[PropertyMetadata, ...]:
        """Properties that take part in free-text search."""
        return tuple(p for p in self.properties if p.is_searchable)

    @property
    def visible_properties(self) -> tuple[PropertyMetadata, ...]:
        """Properties the presentation layer should render."""
        return tuple(p for p in self.properties if not p.is_hidden)

    def get_property(self, name: str) -> PropertyMetadata | None:
        """Find a property by name."""
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def get_navigation(self, name: str) -> NavigationMetadata | None:
        """Find an included navigation by name."""
        for navigation in self.navigations:
            if navigation.name == name:
                return navigation
        return None

    def search_specs(self, field_names: list[str] | None = None) -> dict[str, SearchType]:
        """Map property names to their search types.

        Args:
            field_names: Restrict to these properties; all properties if None
        """
        names = set(field_names) if field_names is not None else None
        return {
            p.name: p.search_type or SearchType.NONE
            for p in self.properties
            if names is None or p.name in names
        }
