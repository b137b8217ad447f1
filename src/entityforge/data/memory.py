"""In-memory data source.

Keeps records in lists per host type and evaluates search expressions record
by record. Useful for tests and for hosts whose data already lives in memory.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any

from entityforge.data.base import (
    DataSource,
    RecordSequence,
    normalize_primary_key,
    primary_key_values,
)
from entityforge.exceptions import ConcurrencyConflictError, FieldNotFoundError
from entityforge.metadata.models import EntityMetadata, PropertyMetadata
from entityforge.search.expressions import Expression


class InMemorySequence(RecordSequence):
    """Lazy sequence over an iterable of records."""

    def __init__(
        self,
        source: Callable[[], Iterable[Any]],
        properties: Mapping[str, PropertyMetadata],
        predicates: tuple[Callable[[Any], bool], ...] = (),
        fields: tuple[str, ...] | None = None,
    ) -> None:
        self._source = source
        self._properties = properties
        self._predicates = predicates
        self._fields = fields

    def where(self, expression: Expression) -> InMemorySequence:
        return self.filter(lambda record: expression.matches(record, self._properties))

    def filter(self, predicate: Callable[[Any], bool]) -> InMemorySequence:
        """Restrict to records for which a plain callable returns True."""
        return InMemorySequence(
            self._source, self._properties, self._predicates + (predicate,), self._fields
        )

    def select(self, fields: list[str]) -> InMemorySequence:
        return InMemorySequence(self._source, self._properties, self._predicates, tuple(fields))

    def __iter__(self) -> Iterator[Any]:
        for record in self._source():
            if all(predicate(record) for predicate in self._predicates):
                yield self._project(record)

    def _project(self, record: Any) -> Any:
        if self._fields is None:
            return record
        return {name: self._read(record, name) for name in self._fields}

    def _read(self, record: Any, name: str) -> Any:
        prop = self._properties.get(name)
        if prop is not None:
            return prop.get_value(record)
        return getattr(record, name, None)

    async def count(self) -> int:
        await asyncio.sleep(0)
        return sum(1 for _ in self)

    async def fetch(self, offset: int = 0, limit: int | None = None) -> list[Any]:
        await asyncio.sleep(0)
        stop = None if limit is None else offset + limit
        return list(itertools.islice(self, offset, stop))


class InMemoryDataSource(DataSource):
    """Data source backed by python lists.

    Updates use optimistic concurrency: a save fails when the stored record no
    longer holds the values the caller originally read.
    """

    def __init__(self, records: Iterable[Any] | None = None) -> None:
        self._records: dict[type, list[Any]] = {}
        if records is not None:
            self.add_records(*records)

    def add_records(self, *records: Any) -> None:
        """Store records, grouped by their type."""
        for record in records:
            self._records.setdefault(type(record), []).append(record)

    def records_of(self, entity_type: type) -> list[Any]:
        return self._records.setdefault(entity_type, [])

    def get_base_sequence(self, entity: EntityMetadata) -> InMemorySequence:
        records = self.records_of(entity.entity_type)
        properties: dict[str, Any] = {p.name: p for p in entity.properties}
        properties.update({n.name: n for n in entity.navigations})
        return InMemorySequence(lambda: list(records), properties)

    async def get_single(
        self,
        entity: EntityMetadata,
        primary_key: Any,
        included: list[str] | None = None,
    ) -> Any | None:
        await asyncio.sleep(0)
        for name in included or []:
            if entity.get_navigation(name) is None:
                raise FieldNotFoundError(name, entity.id, [n.name for n in entity.navigations])
        return self._find(entity, normalize_primary_key(primary_key))

    async def add(self, entity: EntityMetadata, record: Any) -> Any:
        await asyncio.sleep(0)
        self.records_of(entity.entity_type).append(record)
        return record

    async def persist(self, entity: EntityMetadata, updated: Any, original: Any) -> Any:
        await asyncio.sleep(0)
        key = primary_key_values(entity, original)
        stored = self._find(entity, key)
        if stored is None:
            raise ConcurrencyConflictError(entity.id, key if len(key) > 1 else key[0])

        if stored is not original and stored is not updated and any(
            p.get_value(stored) != p.get_value(original) for p in entity.properties
        ):
            raise ConcurrencyConflictError(entity.id, key if len(key) > 1 else key[0])

        records = self.records_of(entity.entity_type)
        records[records.index(stored)] = updated
        return updated

    def _find(self, entity: EntityMetadata, key: tuple[Any, ...]) -> Any | None:
        for record in self.records_of(entity.entity_type):
            if primary_key_values(entity, record) == key:
                return record
        return None
