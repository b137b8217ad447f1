"""SQLAlchemy data source (asyncio).

Search expressions are translated into SQL so filtering, counting and paging
run in the database. Text conversion of non-text columns uses the value kinds
from :mod:`entityforge.search.values`.

Case-sensitive prefix matching compares ``substr`` with ``=`` because
``LIKE`` ignores case on SQLite.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.sql.elements import ColumnElement

from entityforge.core.types import FieldType, SearchType
from entityforge.data.base import (
    DataSource,
    RecordSequence,
    normalize_primary_key,
    primary_key_values,
)
from entityforge.exceptions import (
    ConcurrencyConflictError,
    FieldNotFoundError,
    InvalidSearchTypeError,
)
from entityforge.metadata.models import EntityMetadata
from entityforge.search.expressions import AllOf, AnyOf, Expression, FieldMatch
from entityforge.search.values import get_value_kind

logger = logging.getLogger(__name__)

TOTAL_COLUMN = "__entityforge_total__"


def _column(entity: EntityMetadata, name: str) -> Any:
    column = getattr(entity.entity_type, name, None)
    if column is None or not hasattr(column, "property"):
        raise FieldNotFoundError(name, entity.id, [p.name for p in entity.properties])
    return column


def compile_expression(expression: Expression, entity: EntityMetadata) -> ColumnElement[bool]:
    """Translate a search expression into a SQL boolean clause.

    Raises:
        FieldNotFoundError: If the expression reads an unmapped field
        InvalidSearchTypeError: If a field test has an unsupported search type
    """
    if isinstance(expression, AnyOf):
        return or_(*(compile_expression(term, entity) for term in expression.terms))
    if isinstance(expression, AllOf):
        return and_(*(compile_expression(term, entity) for term in expression.terms))
    if not isinstance(expression, FieldMatch):
        raise TypeError(f"Cannot translate {type(expression).__name__} to SQL")

    column = _column(entity, expression.field)
    prop = entity.get_property(expression.field)
    if prop is not None:
        field_type = prop.field_type
    else:
        field_type = FieldType.from_python_type(getattr(column.type, "python_type", None))
    text = get_value_kind(field_type).sql_text(column)

    term = expression.term
    if expression.search_type is SearchType.CONTAINS_CASE_INSENSITIVE:
        clause = text.icontains(term, autoescape=True)
    elif expression.search_type is SearchType.STARTS_WITH_CASE_SENSITIVE:
        clause = func.substr(text, 1, len(term)) == term
    elif expression.search_type is SearchType.EXACT_MATCH_CASE_INSENSITIVE:
        clause = func.lower(text) == term.lower()
    else:
        raise InvalidSearchTypeError(expression.search_type, expression.field)

    if expression.match_null:
        return or_(clause, column.is_(None))
    return clause


class SqlAlchemySequence(RecordSequence):
    """Lazy sequence backed by a SELECT statement."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        entity: EntityMetadata,
        clauses: tuple[ColumnElement[bool], ...] = (),
        fields: tuple[str, ...] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._entity = entity
        self._clauses = clauses
        self._fields = fields

    def where(self, expression: Expression) -> SqlAlchemySequence:
        return self.where_clause(compile_expression(expression, self._entity))

    def where_clause(self, *clauses: ColumnElement[bool]) -> SqlAlchemySequence:
        """Restrict with hand-written SQLAlchemy clauses."""
        return SqlAlchemySequence(
            self._session_factory, self._entity, self._clauses + clauses, self._fields
        )

    def select(self, fields: list[str]) -> SqlAlchemySequence:
        for name in fields:
            _column(self._entity, name)
        return SqlAlchemySequence(self._session_factory, self._entity, self._clauses, tuple(fields))

    @property
    def statement(self) -> Select[Any]:
        """The SELECT statement this sequence runs, ordered by primary key."""
        if self._fields is None:
            statement = select(self._entity.entity_type)
        else:
            statement = select(*(_column(self._entity, name) for name in self._fields))
        if self._clauses:
            statement = statement.where(*self._clauses)
        keys = [_column(self._entity, p.name) for p in self._entity.primary_keys]
        return statement.order_by(*keys)

    async def count(self) -> int:
        statement = select(func.count()).select_from(
            self.statement.order_by(None).subquery()
        )
        async with self._session_factory() as session:
            return int((await session.execute(statement)).scalar_one())

    async def fetch(self, offset: int = 0, limit: int | None = None) -> list[Any]:
        statement = self.statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        async with self._session_factory() as session:
            result = await session.execute(statement)
            if self._fields is None:
                return list(result.scalars().all())
            return [dict(row) for row in result.mappings().all()]

    async def page(self, offset: int, limit: int) -> tuple[int, list[Any]]:
        """Count and slice in one query using a windowed count."""
        statement = (
            self.statement.add_columns(func.count().over().label(TOTAL_COLUMN))
            .offset(offset)
            .limit(limit)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(statement)).all()
        if not rows:
            # Past the last page: the window has no rows to report the total
            return await self.count(), []

        total = int(rows[0][-1])
        if self._fields is None:
            return total, [row[0] for row in rows]
        return total, [dict(zip(self._fields, row[:-1], strict=True)) for row in rows]


class SqlAlchemyDataSource(DataSource):
    """Data source over an async SQLAlchemy engine."""

    def __init__(self, engine: AsyncEngine | str, echo: bool = False) -> None:
        """Initialize the data source.

        Args:
            engine: Async engine, or a URL such as "sqlite+aiosqlite:///admin.db"
            echo: Whether to echo SQL statements (for debugging)
        """
        if isinstance(engine, str):
            engine = create_async_engine(engine, echo=echo)
        self._engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    def get_base_sequence(self, entity: EntityMetadata) -> SqlAlchemySequence:
        return SqlAlchemySequence(self._session_factory, entity)

    async def get_single(
        self,
        entity: EntityMetadata,
        primary_key: Any,
        included: list[str] | None = None,
    ) -> Any | None:
        options = []
        for name in included or []:
            if entity.get_navigation(name) is None:
                raise FieldNotFoundError(name, entity.id, [n.name for n in entity.navigations])
            options.append(selectinload(_column(entity, name)))

        key = normalize_primary_key(primary_key)
        async with self._session_factory() as session:
            return await session.get(
                entity.entity_type, key[0] if len(key) == 1 else key, options=options
            )

    async def add(self, entity: EntityMetadata, record: Any) -> Any:
        async with self._session_factory() as session:
            session.add(record)
            await session.commit()
        return record

    async def persist(self, entity: EntityMetadata, updated: Any, original: Any) -> Any:
        key = primary_key_values(entity, original)
        reported_key = key if len(key) > 1 else key[0]
        async with self._session_factory() as session:
            stored = await session.get(
                entity.entity_type, reported_key, populate_existing=True
            )
            if stored is None:
                raise ConcurrencyConflictError(entity.id, reported_key)
            if any(p.get_value(stored) != p.get_value(original) for p in entity.properties):
                raise ConcurrencyConflictError(entity.id, reported_key)

            for prop in entity.properties:
                if prop.is_editable:
                    setattr(stored, prop.name, prop.get_value(updated))
            try:
                await session.commit()
            except StaleDataError as e:
                await session.rollback()
                raise ConcurrencyConflictError(entity.id, reported_key) from e

        logger.debug(f"Persisted '{entity.id}' record {reported_key}")
        return stored

    async def dispose(self) -> None:
        """Dispose of the engine's connection pool."""
        await self._engine.dispose()
