"""Metadata Resolver: one canonical EntityMetadata per registered type.

Merges reflection defaults, declarative annotations and fluent configuration
through :mod:`entityforge.metadata.merge` and memoizes the result. Resolution
for an entity id runs at most once; concurrent first callers wait on a per-id
lock and receive the instance published by the first one.
"""

from __future__ import annotations

import logging
import operator
import threading
from typing import Any

from entityforge.core.types import FieldType, SearchType
from entityforge.exceptions import (
    ConfigurationError,
    DuplicatePropertyError,
    EntityNotFoundError,
)
from entityforge.metadata.merge import merge_attribute, resolve_order
from entityforge.metadata.models import EntityMetadata, NavigationMetadata, PropertyMetadata
from entityforge.metadata.options import (
    AdminOptions,
    EntityOptions,
    NavigationOptions,
    PropertyOptions,
    validate_search_type,
)
from entityforge.metadata.reflection import (
    ReflectedEntity,
    ReflectedNavigation,
    ReflectedProperty,
    reflect_entity,
)

logger = logging.getLogger(__name__)


class MetadataResolver:
    """Resolves and caches entity metadata.

    Entity ids are the class names of the registered types.
    """

    def __init__(self, options: AdminOptions | None = None) -> None:
        """Initialize the resolver.

        Args:
            options: Host configuration; its entity types are registered
        """
        self._options = options or AdminOptions()
        self._types: dict[str, type] = {}
        self._cache: dict[str, EntityMetadata] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

        for entity_type in self._options.entity_types:
            self.register(entity_type)

    def register(self, entity_type: type) -> str:
        """Register a host type and return its entity id.

        Raises:
            ConfigurationError: If another type is registered under the same id
        """
        entity_id = entity_type.__name__
        with self._registry_lock:
            existing = self._types.get(entity_id)
            if existing is not None and existing is not entity_type:
                raise ConfigurationError(
                    f"Entity id '{entity_id}' is already registered for another type. "
                    "Rename one of the classes.",
                    {"entity_id": entity_id},
                )
            self._types[entity_id] = entity_type
            self._locks.setdefault(entity_id, threading.Lock())
        return entity_id

    def list_entities(self) -> list[str]:
        """List registered entity ids in registration order."""
        return list(self._types)

    def resolve(self, entity_id: str) -> EntityMetadata:
        """Get the metadata of a registered entity.

        Raises:
            EntityNotFoundError: If the id is not registered
            ConfigurationError: If the host configuration is invalid
        """
        cached = self._cache.get(entity_id)
        if cached is not None:
            return cached

        entity_type = self._types.get(entity_id)
        if entity_type is None:
            raise EntityNotFoundError(entity_id, self.list_entities())

        with self._locks[entity_id]:
            cached = self._cache.get(entity_id)
            if cached is None:
                cached = self._build(entity_id, entity_type)
                self._cache[entity_id] = cached
                logger.info(
                    f"Resolved metadata for '{entity_id}': "
                    f"{len(cached.properties)} properties, {len(cached.navigations)} navigations"
                )
        return cached

    def resolve_type(self, entity_type: type) -> EntityMetadata:
        """Get metadata by host type instead of id."""
        entity_id = entity_type.__name__
        if self._types.get(entity_id) is not entity_type:
            raise EntityNotFoundError(entity_id, self.list_entities())
        return self.resolve(entity_id)

    # === Building ===

    def _build(self, entity_id: str, entity_type: type) -> EntityMetadata:
        reflected = reflect_entity(entity_type)
        fluent = self._options.options_for(entity_type)
        annotation = reflected.annotation
        overlays = (fluent, annotation)

        self._check_names(
            entity_id,
            list(fluent.property_options) if fluent else [],
            reflected.property_names,
            "property",
        )

        properties = self._build_properties(
            reflected.properties, fluent.property_options if fluent else {}
        )
        navigations = self._build_navigations(entity_id, reflected, fluent, start=len(properties))

        names = [p.name for p in properties] + [n.name for n in navigations]
        seen: set[str] = set()
        for name in names:
            if name in seen:
                raise DuplicatePropertyError(name, entity_id)
            seen.add(name)

        display_name = merge_attribute("display_name", overlays, entity_type.__name__)
        has_key = any(p.is_primary_key for p in reflected.properties)
        return EntityMetadata(
            id=entity_id,
            display_name=display_name,
            plural_name=merge_attribute("plural_name", overlays, f"{display_name}s"),
            description=merge_attribute("description", overlays, ""),
            group=merge_attribute("group", overlays, ""),
            is_editable=merge_attribute("is_editable", overlays, has_key),
            is_hidden=merge_attribute("is_hidden", overlays, False),
            entity_type=entity_type,
            properties=tuple(properties),
            navigations=tuple(navigations),
            search_function=fluent.search_function if fluent else None,
            custom_query_function=fluent.custom_query_function if fluent else None,
            after_update_action=fluent.after_update_action if fluent else None,
        )

    def _build_properties(
        self,
        reflected: list[ReflectedProperty],
        options: dict[str, PropertyOptions],
    ) -> list[PropertyMetadata]:
        ordered: list[tuple[int, int, PropertyMetadata]] = []
        for index, prop in enumerate(reflected):
            overlays = (options.get(prop.name), prop.annotation)
            if merge_attribute("is_excluded_from_query", overlays, False):
                logger.debug(f"Property '{prop.name}' excluded from query")
                continue
            metadata = build_property(prop, overlays, resolve_order(overlays, index))
            ordered.append((metadata.order, index, metadata))
        ordered.sort(key=operator.itemgetter(0, 1))
        return [metadata for _, _, metadata in ordered]

    def _build_navigations(
        self,
        entity_id: str,
        reflected: ReflectedEntity,
        fluent: EntityOptions | None,
        start: int,
    ) -> list[NavigationMetadata]:
        requested: list[str] = []
        if fluent:
            requested.extend(fluent.navigation_options)
        if reflected.annotation:
            requested.extend(reflected.annotation.include)
        requested.extend(n.name for n in reflected.navigations if n.annotation is not None)
        requested = list(dict.fromkeys(requested))

        self._check_names(entity_id, requested, reflected.navigation_names, "navigation")

        by_name = {n.name: n for n in reflected.navigations}
        ordered: list[tuple[int, int, NavigationMetadata]] = []
        for index, name in enumerate(requested):
            nav = by_name[name]
            nav_options = fluent.navigation_options.get(name) if fluent else None
            metadata = self._build_navigation(
                nav, nav_options, resolve_order((nav_options, nav.annotation), start + index)
            )
            ordered.append((metadata.order, index, metadata))
        ordered.sort(key=operator.itemgetter(0, 1))
        return [metadata for _, _, metadata in ordered]

    def _build_navigation(
        self,
        nav: ReflectedNavigation,
        options: NavigationOptions | None,
        order: int,
    ) -> NavigationMetadata:
        overlays = (options, nav.annotation)
        target = reflect_entity(nav.target_type)
        target_options = {p.name: p for p in options.target_properties} if options else {}
        self._check_names(
            nav.target_type.__name__, list(target_options), target.property_names, "property"
        )
        if target_options:
            selected = [p for p in target.properties if p.name in target_options]
        else:
            selected = target.properties

        read_only = merge_attribute("is_read_only", overlays, False)
        return NavigationMetadata(
            name=nav.name,
            display_name=merge_attribute("display_name", overlays, ""),
            description=merge_attribute("description", overlays, ""),
            python_type=nav.target_type,
            field_type=FieldType.OTHER,
            is_nullable=nav.is_nullable,
            is_editable=not read_only,
            is_hidden=merge_attribute("is_hidden", overlays, False),
            order=order,
            accessor=operator.attrgetter(nav.name),
            is_collection=nav.is_collection,
            is_included=merge_attribute("is_included", overlays, True),
            display_details=merge_attribute("display_details", overlays, False),
            edit_details=merge_attribute("edit_details", overlays, False),
            target_type=nav.target_type,
            target_properties=tuple(self._build_properties(selected, target_options)),
        )

    @staticmethod
    def _check_names(owner: str, configured: list[str], available: list[str], kind: str) -> None:
        unknown = [name for name in configured if name not in available]
        if unknown:
            raise ConfigurationError(
                f"Unknown {kind} '{unknown[0]}' configured on '{owner}'. "
                f"Available: {', '.join(available) or 'none'}",
                {"owner": owner, "unknown": unknown, "available": available},
            )


def build_property(
    prop: ReflectedProperty,
    overlays: tuple[Any, ...],
    order: int,
) -> PropertyMetadata:
    """Merge overlays over reflection defaults for one column."""
    search_type = merge_attribute("search_type", overlays, None)
    if search_type is not None:
        search_type = validate_search_type(search_type, prop.name)
    read_only = merge_attribute(
        "is_read_only", overlays, prop.is_primary_key or prop.is_value_generated_on_add
    )
    return PropertyMetadata(
        name=prop.name,
        display_name=merge_attribute("display_name", overlays, ""),
        description=merge_attribute("description", overlays, ""),
        python_type=prop.python_type,
        field_type=FieldType.from_python_type(prop.python_type),
        is_nullable=prop.is_nullable,
        is_primary_key=prop.is_primary_key,
        is_foreign_key=prop.is_foreign_key,
        is_editable=not read_only,
        is_searchable=search_type not in (None, SearchType.NONE),
        is_hidden=merge_attribute("is_hidden", overlays, False),
        order=order,
        is_value_generated_on_add=prop.is_value_generated_on_add,
        is_value_generated_on_update=prop.is_value_generated_on_update,
        search_type=search_type,
        display_format=merge_attribute("display_format", overlays, None),
        accessor=operator.attrgetter(prop.name),
    )
