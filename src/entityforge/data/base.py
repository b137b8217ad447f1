"""Data source capability consumed by the query pipeline.

The storage connection is opaque to EntityForge. A data source hands out lazy
record sequences that accept search expressions, and loads and saves single
records. All I/O is async so callers can cancel in-flight work.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from entityforge.metadata.models import EntityMetadata
    from entityforge.search.expressions import Expression


class RecordSequence(ABC):
    """Lazy, immutable sequence of records of one entity.

    Every refinement returns a new sequence; nothing is fetched until
    :meth:`count`, :meth:`fetch` or :meth:`page` is awaited.
    """

    @abstractmethod
    def where(self, expression: Expression) -> RecordSequence:
        """Restrict to records matching a search expression."""

    @abstractmethod
    def select(self, fields: list[str]) -> RecordSequence:
        """Project records to dictionaries holding only these fields."""

    @abstractmethod
    async def count(self) -> int:
        """Count matching records."""

    @abstractmethod
    async def fetch(self, offset: int = 0, limit: int | None = None) -> list[Any]:
        """Load matching records, optionally a slice of them."""

    async def page(self, offset: int, limit: int) -> tuple[int, list[Any]]:
        """Count all matching records and load one slice.

        Sources that can compute both in a single round trip override this.

        Returns:
            Tuple of (total count, records in the slice)
        """
        total = await self.count()
        if total == 0 or offset >= total:
            return total, []
        return total, await self.fetch(offset, limit)


class DataSource(ABC):
    """Storage capability for registered entities."""

    @abstractmethod
    def get_base_sequence(self, entity: EntityMetadata) -> RecordSequence:
        """Get all records of an entity as a lazy sequence."""

    @abstractmethod
    async def get_single(
        self,
        entity: EntityMetadata,
        primary_key: Any,
        included: list[str] | None = None,
    ) -> Any | None:
        """Load one record by primary key with related records loaded.

        Returns:
            The record, or None if it does not exist
        """

    @abstractmethod
    async def add(self, entity: EntityMetadata, record: Any) -> Any:
        """Save a new record and return it."""

    @abstractmethod
    async def persist(self, entity: EntityMetadata, updated: Any, original: Any) -> Any:
        """Save changes to an existing record and return it.

        Args:
            entity: Entity metadata
            updated: Record holding the new values
            original: Record as it was read before editing

        Raises:
            ConcurrencyConflictError: If the stored record changed since it was read
        """


def primary_key_values(entity: EntityMetadata, record: Any) -> tuple[Any, ...]:
    """Primary key of a record as a tuple."""
    return tuple(p.get_value(record) for p in entity.primary_keys)


def normalize_primary_key(primary_key: Any) -> tuple[Any, ...]:
    """Accept scalar or composite primary keys."""
    if isinstance(primary_key, tuple | list):
        return tuple(primary_key)
    return (primary_key,)
