"""EntityForge - Admin metadata and search for host-registered entity types.

Derives an administrative data-management surface from SQLAlchemy models:
field lists, types and search behaviour are merged from reflection,
declarative annotations and fluent configuration, then used to run free-text
search and paging over data whose shape is only known at runtime.

Example:
    from entityforge import AdminOptionsBuilder, EntityForge, SearchOptions
    from entityforge import SqlAlchemyDataSource

    options = AdminOptionsBuilder().configure_entity(
        Address,
        lambda entity: entity.set_plural_name("Addresses")
        .configure_property("street", lambda p: p.set_search_type("contains_case_insensitive"))
        .configure_property("postal_code", lambda p: p.set_is_excluded_from_query(True)),
    )
    forge = EntityForge(SqlAlchemyDataSource("sqlite+aiosqlite:///app.db"), options)

    # Discover metadata
    address = forge.get_entity("Address")

    # Search and page
    page = await forge.search_data("Address", SearchOptions(search_string="main", page=1))
"""

from entityforge.core.engine import EntityForge
from entityforge.core.types import (
    FieldError,
    FieldType,
    PageResult,
    SearchOptions,
    SearchType,
    ValidationResult,
)
from entityforge.data import (
    DataSource,
    InMemoryDataSource,
    RecordSequence,
    SqlAlchemyDataSource,
)
from entityforge.exceptions import (
    ConcurrencyConflictError,
    ConfigurationError,
    ConflictingOrderError,
    DuplicatePropertyError,
    EntityForgeError,
    EntityNotFoundError,
    FieldNotFoundError,
    InvalidSearchTypeError,
    QueryError,
    RecordNotFoundError,
)
from entityforge.metadata import (
    AdminOptions,
    AdminOptionsBuilder,
    EntityMetadata,
    MetadataResolver,
    NavigationMetadata,
    PropertyMetadata,
    admin_entity,
    admin_navigation,
    admin_property,
)
from entityforge.query import QueryPipeline
from entityforge.search import build_filter

__version__ = "0.1.0"

__all__ = [
    # Main classes
    "EntityForge",
    "MetadataResolver",
    "QueryPipeline",
    "build_filter",
    # Metadata
    "EntityMetadata",
    "PropertyMetadata",
    "NavigationMetadata",
    # Configuration
    "AdminOptions",
    "AdminOptionsBuilder",
    "admin_entity",
    "admin_property",
    "admin_navigation",
    # Types
    "FieldType",
    "SearchType",
    "SearchOptions",
    "PageResult",
    "FieldError",
    "ValidationResult",
    # Data sources
    "DataSource",
    "RecordSequence",
    "InMemoryDataSource",
    "SqlAlchemyDataSource",
    # Exceptions
    "EntityForgeError",
    "EntityNotFoundError",
    "FieldNotFoundError",
    "RecordNotFoundError",
    "ConfigurationError",
    "InvalidSearchTypeError",
    "ConflictingOrderError",
    "DuplicatePropertyError",
    "QueryError",
    "ConcurrencyConflictError",
]
