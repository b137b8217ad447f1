"""Query Pipeline: projection, search, count and paging for one entity."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from entityforge.core.types import PageResult
from entityforge.exceptions import FieldNotFoundError, QueryError
from entityforge.search.predicate import build_filter

if TYPE_CHECKING:
    from entityforge.data.base import DataSource
    from entityforge.metadata.resolver import MetadataResolver

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 25


class QueryPipeline:
    """Runs list and search requests against a data source.

    Holds no per-request state: concurrent calls are independent.
    """

    def __init__(
        self,
        resolver: MetadataResolver,
        data_source: DataSource,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """Initialize the pipeline.

        Args:
            resolver: Metadata resolver providing entity metadata
            data_source: Storage capability to read records from
            page_size: Page size used when a request does not give one
        """
        if page_size < 1:
            raise QueryError(f"Page size must be at least 1, got {page_size}.")
        self._resolver = resolver
        self._data_source = data_source
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    async def query(
        self,
        entity_id: str,
        selected_fields: list[str] | None = None,
        search_string: str | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> PageResult:
        """Search and page the records of an entity.

        Args:
            entity_id: Registered entity id
            selected_fields: Project records to these properties; whole records if None
            search_string: Free-text search; empty means no filtering
            page: 1-based page number
            page_size: Records per page; the pipeline default if None

        Returns:
            Records of the page with the total number of matches

        Raises:
            EntityNotFoundError: If the entity is not registered
            FieldNotFoundError: If a selected field is not a property of the entity
            QueryError: If page or page size is less than 1, or no field is selected
        """
        size = self._page_size if page_size is None else page_size
        if page < 1:
            raise QueryError(f"Page must be at least 1, got {page}.", {"page": page})
        if size < 1:
            raise QueryError(f"Page size must be at least 1, got {size}.", {"page_size": size})

        entity = self._resolver.resolve(entity_id)

        if selected_fields is not None:
            if not selected_fields:
                raise QueryError(
                    f"No fields selected for '{entity_id}'. "
                    f"Select at least one field or omit the selection for whole records.",
                    {"entity_id": entity_id},
                )
            available = [p.name for p in entity.properties]
            for name in selected_fields:
                if name not in available:
                    raise FieldNotFoundError(name, entity_id, available)
            properties = [p for p in entity.properties if p.name in selected_fields]
        else:
            properties = list(entity.properties)

        sequence = self._data_source.get_base_sequence(entity)
        if entity.custom_query_function is not None:
            sequence = entity.custom_query_function(entity, sequence)

        if search_string and any(p.is_searchable for p in properties):
            if entity.search_function is not None:
                sequence = entity.search_function(entity, sequence, search_string)
            else:
                specs = entity.search_specs([p.name for p in properties])
                sequence = build_filter(sequence, search_string, specs)

        if selected_fields is not None:
            sequence = sequence.select(list(selected_fields))

        total, items = await sequence.page((page - 1) * size, size)
        logger.debug(
            f"Query '{entity_id}' search={search_string!r} page={page}: "
            f"{len(items)} of {total} record(s)"
        )
        return PageResult(items=items, total_count=total, page=page, page_size=size)
