"""EntityForge: the host-facing admin engine.

Wires the metadata resolver, the query pipeline and a data source together,
and adds record retrieval and validated saving on top.

Example:
    from entityforge import AdminOptionsBuilder, EntityForge, InMemoryDataSource

    options = AdminOptionsBuilder().configure_entity(
        Address,
        lambda entity: entity.configure_property(
            "street", lambda p: p.set_search_type("contains_case_insensitive")
        ),
    )
    forge = EntityForge(InMemoryDataSource(addresses), options)

    forge.get_entity("Address")
    page = await forge.search_data("Address", SearchOptions(search_string="main"))
"""

from __future__ import annotations

import logging
from typing import Any

from entityforge.core.types import PageResult, SearchOptions, ValidationResult
from entityforge.data.base import DataSource
from entityforge.exceptions import RecordNotFoundError
from entityforge.metadata.models import EntityMetadata
from entityforge.metadata.options import AdminOptions, AdminOptionsBuilder
from entityforge.metadata.resolver import MetadataResolver
from entityforge.query.pipeline import DEFAULT_PAGE_SIZE, QueryPipeline

logger = logging.getLogger(__name__)


class EntityForge:
    """Admin data-management surface over registered entity types."""

    def __init__(
        self,
        data_source: DataSource,
        options: AdminOptions | AdminOptionsBuilder | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """Initialize the engine.

        Args:
            data_source: Storage capability for the registered entities
            options: Host configuration, built or still as a builder
            page_size: Default page size of search results
        """
        if isinstance(options, AdminOptionsBuilder):
            options = options.create()
        self._data_source = data_source
        self._resolver = MetadataResolver(options)
        self._pipeline = QueryPipeline(self._resolver, data_source, page_size=page_size)

    @property
    def resolver(self) -> MetadataResolver:
        return self._resolver

    @property
    def data_source(self) -> DataSource:
        return self._data_source

    def register(self, *entity_types: type) -> list[str]:
        """Register host types without configuration overrides."""
        return [self._resolver.register(entity_type) for entity_type in entity_types]

    # === Metadata ===

    def list_entities(self, include_hidden: bool = False) -> list[EntityMetadata]:
        """Metadata of all registered entities.

        Args:
            include_hidden: Whether to include entities marked hidden
        """
        entities = [self._resolver.resolve(name) for name in self._resolver.list_entities()]
        if include_hidden:
            return entities
        return [entity for entity in entities if not entity.is_hidden]

    def get_entity(self, entity_id: str) -> EntityMetadata:
        """Metadata of one entity.

        Raises:
            EntityNotFoundError: If the entity is not registered
        """
        return self._resolver.resolve(entity_id)

    # === Reading ===

    async def search_data(
        self,
        entity_id: str,
        search: SearchOptions | None = None,
        selected_fields: list[str] | None = None,
    ) -> PageResult:
        """Search and page records of an entity.

        Without selected fields, all non-hidden properties are projected.
        """
        search = search or SearchOptions()
        if selected_fields is None:
            entity = self._resolver.resolve(entity_id)
            selected_fields = [p.name for p in entity.visible_properties]
        return await self._pipeline.query(
            entity_id,
            selected_fields=selected_fields,
            search_string=search.search_string,
            page=search.page,
            page_size=search.page_size,
        )

    async def get_record(self, entity_id: str, primary_key: Any) -> Any:
        """Load one record with its included navigations.

        Raises:
            EntityNotFoundError: If the entity is not registered
            RecordNotFoundError: If no record has this primary key
        """
        entity = self._resolver.resolve(entity_id)
        included = [n.name for n in entity.navigations if n.is_included]
        record = await self._data_source.get_single(entity, primary_key, included)
        if record is None:
            raise RecordNotFoundError(primary_key, entity_id)
        return record

    # === Writing ===

    def validate(self, entity_id: str, record: Any) -> ValidationResult:
        """Check a record against the entity metadata.

        Every failing field is reported; nothing is raised for field errors.
        """
        entity = self._resolver.resolve(entity_id)
        result = ValidationResult(record=record)
        for prop in entity.properties:
            if prop.is_nullable or prop.is_value_generated_on_add:
                continue
            value = prop.get_value(record)
            if value is None:
                result.add(prop.name, f"{prop.label} is required.")
            elif isinstance(value, str) and not value.strip() and not prop.is_primary_key:
                result.add(prop.name, f"{prop.label} must not be empty.")
        return result

    async def create_record(self, entity_id: str, record: Any) -> ValidationResult:
        """Validate and save a new record.

        Returns:
            Validation result; the record is saved only when it is valid
        """
        result = self.validate(entity_id, record)
        if not result.is_valid:
            logger.info(f"Rejected new '{entity_id}' record: {len(result.errors)} field error(s)")
            return result
        entity = self._resolver.resolve(entity_id)
        result.record = await self._data_source.add(entity, record)
        return result

    async def update_record(self, entity_id: str, updated: Any, original: Any) -> ValidationResult:
        """Validate and save changes to an existing record.

        Args:
            entity_id: Registered entity id
            updated: Record holding the new values
            original: Record as it was read before editing

        Returns:
            Validation result; the record is saved only when it is valid

        Raises:
            ConcurrencyConflictError: If the stored record changed since it was read
        """
        result = self.validate(entity_id, updated)
        entity = self._resolver.resolve(entity_id)
        for prop in entity.properties:
            if not prop.is_editable and prop.get_value(updated) != prop.get_value(original):
                result.add(prop.name, f"{prop.label} is read-only.")
        if not result.is_valid:
            logger.info(f"Rejected '{entity_id}' update: {len(result.errors)} field error(s)")
            return result

        result.record = await self._data_source.persist(entity, updated, original)
        if entity.after_update_action is not None:
            entity.after_update_action(entity, result.record, original)
        return result
