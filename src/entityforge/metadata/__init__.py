"""Entity metadata: models, configuration sources and the resolver.

Metadata of each registered type is merged from three sources, highest
precedence first:

1. Fluent configuration (:class:`AdminOptionsBuilder`)
2. Declarative annotations (:func:`admin_entity`, :func:`admin_property`,
   :func:`admin_navigation`)
3. Reflection of the SQLAlchemy mapping
"""

from entityforge.metadata.annotations import admin_entity, admin_navigation, admin_property
from entityforge.metadata.models import EntityMetadata, NavigationMetadata, PropertyMetadata
from entityforge.metadata.options import (
    AdminOptions,
    AdminOptionsBuilder,
    EntityOptionsBuilder,
    NavigationOptionsBuilder,
    PropertyOptionsBuilder,
)
from entityforge.metadata.resolver import MetadataResolver

__all__ = [
    "EntityMetadata",
    "PropertyMetadata",
    "NavigationMetadata",
    "AdminOptions",
    "AdminOptionsBuilder",
    "EntityOptionsBuilder",
    "PropertyOptionsBuilder",
    "NavigationOptionsBuilder",
    "MetadataResolver",
    "admin_entity",
    "admin_property",
    "admin_navigation",
]
