"""Shared test fixtures for EntityForge."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from entityforge import AdminOptionsBuilder, EntityForge, InMemoryDataSource, SqlAlchemyDataSource
from sample_models import Address, Base, Product, Shop, make_addresses


@pytest.fixture
def addresses() -> list[Address]:
    """Six addresses: three contain 'ain', two start with 'Second', three are in London."""
    return make_addresses()


@pytest.fixture
def memory_source(addresses: list[Address]) -> InMemoryDataSource:
    """In-memory data source holding the sample addresses."""
    return InMemoryDataSource(addresses)


@pytest.fixture
def options() -> AdminOptionsBuilder:
    """Host configuration registering the sample types."""
    return AdminOptionsBuilder().add_entities(Address, Shop)


@pytest.fixture
def forge(memory_source: InMemoryDataSource, options: AdminOptionsBuilder) -> EntityForge:
    """EntityForge over the in-memory addresses."""
    return EntityForge(memory_source, options)


@pytest_asyncio.fixture
async def sql_source(tmp_path) -> AsyncGenerator[SqlAlchemyDataSource, None]:
    """SQLite-backed data source with the sample schema and addresses."""
    source = SqlAlchemyDataSource(f"sqlite+aiosqlite:///{tmp_path}/admin.db")
    async with source.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with source.session_factory() as session:
        session.add_all(make_addresses())
        await session.commit()

    yield source
    await source.dispose()


@pytest_asyncio.fixture
async def sql_forge(sql_source: SqlAlchemyDataSource) -> EntityForge:
    """EntityForge over the SQLite-backed addresses."""
    return EntityForge(sql_source, AdminOptionsBuilder().add_entities(Address, Shop, Product))
