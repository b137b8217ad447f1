"""Fluent configuration of entities registered with the admin surface.

Hosts describe overrides at startup through builders::

    options = (
        AdminOptionsBuilder()
        .configure_entity(
            Shop,
            lambda entity: entity.set_display_name("Store")
            .configure_property("name", lambda p: p.set_search_type("contains_case_insensitive"))
            .configure_property(Shop.is_open, lambda p: p.set_is_hidden(True))
            .include_navigation("address", lambda n: n.set_display_details(True)),
        )
        .create()
    )

Every override value defaults to ``None`` which means "unset": only values a
host sets explicitly take part in the precedence merge.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict

from entityforge.core.types import SearchType
from entityforge.exceptions import InvalidSearchTypeError
from entityforge.metadata.merge import combine_fluent
from entityforge.metadata.models import AfterUpdateAction, QueryFunction, SearchFunction


class PropertyOverlay(BaseModel):
    """Per-property override values shared by fluent options and annotations."""

    model_config = ConfigDict(frozen=True)

    display_name: str | None = None
    description: str | None = None
    order: int | None = None
    is_hidden: bool | None = None
    is_excluded_from_query: bool | None = None
    is_read_only: bool | None = None
    search_type: SearchType | None = None
    display_format: str | None = None


class PropertyOptions(PropertyOverlay):
    """Fluent overrides for one property."""

    name: str


class NavigationOptions(PropertyOptions):
    """Fluent overrides for one included navigation."""

    is_included: bool | None = None
    display_details: bool | None = None
    edit_details: bool | None = None
    target_properties: tuple[PropertyOptions, ...] = ()


class EntityOptions(BaseModel):
    """Fluent overrides for one entity type."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    entity_type: Any
    display_name: str | None = None
    plural_name: str | None = None
    description: str | None = None
    group: str | None = None
    is_hidden: bool | None = None
    is_editable: bool | None = None
    property_options: dict[str, PropertyOptions] = {}
    navigation_options: dict[str, NavigationOptions] = {}
    search_function: SearchFunction | None = None
    custom_query_function: QueryFunction | None = None
    after_update_action: AfterUpdateAction | None = None


def validate_search_type(value: Any, field_name: str | None = None) -> SearchType:
    """Convert a value to a SearchType or fail loudly.

    Raises:
        InvalidSearchTypeError: If the value is not a member of SearchType
    """
    if isinstance(value, SearchType):
        return value
    try:
        return SearchType(value)
    except ValueError as e:
        raise InvalidSearchTypeError(value, field_name) from e


def property_name(ref: str | Any) -> str:
    """Get a property name from a string or a mapped class attribute."""
    if isinstance(ref, str):
        return ref
    key = getattr(ref, "key", None)
    if isinstance(key, str):
        return key
    raise TypeError(f"Cannot determine property name from {ref!r}. Pass the name as a string.")


class PropertyOptionsBuilder:
    """Builds overrides for one property."""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def set_display_name(self, display_name: str) -> PropertyOptionsBuilder:
        self._values["display_name"] = display_name
        return self

    def set_description(self, description: str) -> PropertyOptionsBuilder:
        self._values["description"] = description
        return self

    def set_order(self, order: int) -> PropertyOptionsBuilder:
        """Set the display position. Zero is a valid explicit position."""
        self._values["order"] = order
        return self

    def set_is_hidden(self, is_hidden: bool) -> PropertyOptionsBuilder:
        self._values["is_hidden"] = is_hidden
        return self

    def set_is_excluded_from_query(self, is_excluded: bool) -> PropertyOptionsBuilder:
        """Drop the property from metadata entirely."""
        self._values["is_excluded_from_query"] = is_excluded
        return self

    def set_is_read_only(self, is_read_only: bool) -> PropertyOptionsBuilder:
        self._values["is_read_only"] = is_read_only
        return self

    def set_search_type(self, search_type: SearchType | str) -> PropertyOptionsBuilder:
        """Set how the property takes part in free-text search.

        Raises:
            InvalidSearchTypeError: If search_type is not a SearchType value
        """
        self._values["search_type"] = validate_search_type(search_type)
        return self

    def set_display_format(self, display_format: str) -> PropertyOptionsBuilder:
        """Set a ``str.format`` pattern, e.g. ``"{:.2f}"``."""
        self._values["display_format"] = display_format
        return self

    def create(self, name: str) -> PropertyOptions:
        return PropertyOptions(name=name, **self._values)


class NavigationOptionsBuilder(PropertyOptionsBuilder):
    """Builds overrides for one included navigation."""

    def __init__(self) -> None:
        super().__init__()
        self._targets: dict[str, PropertyOptions] = {}

    def set_is_included(self, is_included: bool) -> NavigationOptionsBuilder:
        """Set whether related data is fetched together with the record."""
        self._values["is_included"] = is_included
        return self

    def set_display_details(self, display_details: bool) -> NavigationOptionsBuilder:
        self._values["display_details"] = display_details
        return self

    def set_edit_details(self, edit_details: bool) -> NavigationOptionsBuilder:
        self._values["edit_details"] = edit_details
        return self

    def include_property(
        self,
        ref: str | Any,
        configure: Callable[[PropertyOptionsBuilder], Any] | None = None,
    ) -> NavigationOptionsBuilder:
        """Show a property of the related entity, optionally with overrides."""
        builder = PropertyOptionsBuilder()
        if configure is not None:
            configure(builder)
        name = property_name(ref)
        self._targets[name] = _merge_options(self._targets.get(name), builder.create(name))
        return self

    def create(self, name: str) -> NavigationOptions:
        return NavigationOptions(
            name=name, target_properties=tuple(self._targets.values()), **self._values
        )


class EntityOptionsBuilder:
    """Builds overrides for one entity type."""

    def __init__(self, entity_type: type) -> None:
        self._entity_type = entity_type
        self._values: dict[str, Any] = {}
        self._properties: dict[str, PropertyOptions] = {}
        self._navigations: dict[str, NavigationOptions] = {}

    def set_display_name(self, display_name: str) -> EntityOptionsBuilder:
        self._values["display_name"] = display_name
        return self

    def set_plural_name(self, plural_name: str) -> EntityOptionsBuilder:
        self._values["plural_name"] = plural_name
        return self

    def set_description(self, description: str) -> EntityOptionsBuilder:
        self._values["description"] = description
        return self

    def set_group(self, group: str) -> EntityOptionsBuilder:
        self._values["group"] = group
        return self

    def set_is_hidden(self, is_hidden: bool) -> EntityOptionsBuilder:
        self._values["is_hidden"] = is_hidden
        return self

    def set_is_editable(self, is_editable: bool) -> EntityOptionsBuilder:
        self._values["is_editable"] = is_editable
        return self

    def configure_search(self, search_function: SearchFunction) -> EntityOptionsBuilder:
        """Replace the built-in free-text search for this entity.

        The function receives the entity metadata, the record sequence and the
        raw search string, and returns the filtered sequence.
        """
        self._values["search_function"] = search_function
        return self

    def configure_custom_query(self, query_function: QueryFunction) -> EntityOptionsBuilder:
        """Adjust the base record sequence before search and paging."""
        self._values["custom_query_function"] = query_function
        return self

    def set_after_update_action(self, action: AfterUpdateAction) -> EntityOptionsBuilder:
        """Run an action after a record of this entity was saved."""
        self._values["after_update_action"] = action
        return self

    def configure_property(
        self,
        ref: str | Any,
        configure: Callable[[PropertyOptionsBuilder], Any],
    ) -> EntityOptionsBuilder:
        """Configure one property, referenced by name or mapped attribute.

        Configuring the same property again merges the overrides; values left
        unset by the later call keep the earlier ones.
        """
        builder = PropertyOptionsBuilder()
        configure(builder)
        name = property_name(ref)
        self._properties[name] = _merge_options(self._properties.get(name), builder.create(name))
        return self

    def include_navigation(
        self,
        ref: str | Any,
        configure: Callable[[NavigationOptionsBuilder], Any] | None = None,
    ) -> EntityOptionsBuilder:
        """Add a relation to the entity metadata."""
        builder = NavigationOptionsBuilder()
        if configure is not None:
            configure(builder)
        name = property_name(ref)
        self._navigations[name] = _merge_options(
            self._navigations.get(name), builder.create(name)
        )
        return self

    def include_navigations(self, *refs: str | Any) -> EntityOptionsBuilder:
        """Add several relations with default options."""
        for ref in refs:
            self.include_navigation(ref)
        return self

    def create(self) -> EntityOptions:
        return EntityOptions(
            entity_type=self._entity_type,
            property_options=dict(self._properties),
            navigation_options=dict(self._navigations),
            **self._values,
        )


def _merge_options(earlier: Any, later: Any) -> Any:
    if earlier is None:
        return later
    combined = combine_fluent(earlier, later)
    if isinstance(combined, NavigationOptions):
        targets = {target.name: target for target in earlier.target_properties}
        for target in later.target_properties:
            targets[target.name] = _merge_options(targets.get(target.name), target)
        combined = combined.model_copy(update={"target_properties": tuple(targets.values())})
    return combined


@dataclass
class AdminOptions:
    """Snapshot of the host configuration consumed by the resolver."""

    entity_types: list[type] = field(default_factory=list)
    entity_options: dict[type, EntityOptions] = field(default_factory=dict)

    def options_for(self, entity_type: type) -> EntityOptions | None:
        return self.entity_options.get(entity_type)


class AdminOptionsBuilder:
    """Entry point for host startup configuration."""

    def __init__(self) -> None:
        self._entity_types: list[type] = []
        self._builders: dict[type, EntityOptionsBuilder] = {}

    def add_entities(self, *entity_types: type) -> AdminOptionsBuilder:
        """Register entity types without overrides."""
        for entity_type in entity_types:
            if entity_type not in self._entity_types:
                self._entity_types.append(entity_type)
        return self

    def configure_entity(
        self,
        entity_type: type,
        configure: Callable[[EntityOptionsBuilder], Any],
    ) -> AdminOptionsBuilder:
        """Register an entity type and configure it."""
        self.add_entities(entity_type)
        builder = self._builders.setdefault(entity_type, EntityOptionsBuilder(entity_type))
        configure(builder)
        return self

    def create(self) -> AdminOptions:
        return AdminOptions(
            entity_types=list(self._entity_types),
            entity_options={t: b.create() for t, b in self._builders.items()},
        )
