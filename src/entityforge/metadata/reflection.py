"""Reflection of mapped classes into metadata defaults.

Uses the SQLAlchemy mapper to read the declared shape of a host type: columns
in declaration order with their python types, nullability, key flags and
generated values, plus relationships with their cardinality.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.orm import Mapper

from entityforge.exceptions import ConfigurationError
from entityforge.metadata.annotations import (
    EntityAnnotation,
    PropertyAnnotation,
    get_entity_annotation,
    get_property_annotation,
)


@dataclass
class ReflectedProperty:
    """Reflection defaults for one column."""

    name: str
    python_type: type | None
    is_nullable: bool
    is_primary_key: bool
    is_foreign_key: bool
    is_value_generated_on_add: bool
    is_value_generated_on_update: bool
    annotation: PropertyAnnotation | None = None


@dataclass
class ReflectedNavigation:
    """Reflection defaults for one relationship."""

    name: str
    target_type: type
    is_collection: bool
    is_nullable: bool
    annotation: PropertyAnnotation | None = None


@dataclass
class ReflectedEntity:
    """Reflection defaults for one mapped class."""

    entity_type: type
    properties: list[ReflectedProperty] = field(default_factory=list)
    navigations: list[ReflectedNavigation] = field(default_factory=list)
    annotation: EntityAnnotation | None = None

    @property
    def property_names(self) -> list[str]:
        return [p.name for p in self.properties]

    @property
    def navigation_names(self) -> list[str]:
        return [n.name for n in self.navigations]


def get_mapper(entity_type: type) -> Mapper[Any]:
    """Get the SQLAlchemy mapper of a host type.

    Raises:
        ConfigurationError: If the type is not a mapped class
    """
    mapper = inspect(entity_type, raiseerr=False)
    if not isinstance(mapper, Mapper):
        raise ConfigurationError(
            f"Type '{getattr(entity_type, '__name__', entity_type)}' is not a mapped class. "
            "Register SQLAlchemy declarative models.",
            {"entity_type": str(entity_type)},
        )
    return mapper


def _python_type(column: Any) -> type | None:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def _generated_on_add(column: Any, python_type: type | None) -> bool:
    if column.default is not None or column.server_default is not None:
        return True
    if column.primary_key and python_type is int:
        return column.autoincrement is True or (
            column.autoincrement == "auto" and len(column.table.primary_key.columns) == 1
        )
    return False


def reflect_property(name: str, column: Any) -> ReflectedProperty:
    """Read reflection defaults from a mapped column."""
    python_type = _python_type(column)
    return ReflectedProperty(
        name=name,
        python_type=python_type,
        is_nullable=bool(column.nullable) and not column.primary_key,
        is_primary_key=bool(column.primary_key),
        is_foreign_key=bool(column.foreign_keys),
        is_value_generated_on_add=_generated_on_add(column, python_type),
        is_value_generated_on_update=(
            column.onupdate is not None or column.server_onupdate is not None
        ),
        annotation=get_property_annotation(column.info),
    )


def reflect_entity(entity_type: type) -> ReflectedEntity:
    """Reflect a mapped class.

    Primary key columns are listed first, the remaining columns follow in
    declaration order.

    Raises:
        ConfigurationError: If the type is not a mapped class
    """
    mapper = get_mapper(entity_type)

    keys: list[ReflectedProperty] = []
    others: list[ReflectedProperty] = []
    for attr in mapper.column_attrs:
        if len(attr.columns) != 1:
            continue
        reflected = reflect_property(attr.key, attr.columns[0])
        (keys if reflected.is_primary_key else others).append(reflected)

    navigations = []
    for relationship in mapper.relationships:
        local_nullable = all(column.nullable for column in relationship.local_columns)
        navigations.append(
            ReflectedNavigation(
                name=relationship.key,
                target_type=relationship.mapper.class_,
                is_collection=bool(relationship.uselist),
                is_nullable=relationship.uselist or local_nullable,
                annotation=get_property_annotation(relationship.info),
            )
        )

    return ReflectedEntity(
        entity_type=entity_type,
        properties=keys + others,
        navigations=navigations,
        annotation=get_entity_annotation(entity_type),
    )
