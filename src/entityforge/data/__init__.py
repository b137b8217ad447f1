"""Data sources consumed by the query pipeline."""

from entityforge.data.base import DataSource, RecordSequence
from entityforge.data.memory import InMemoryDataSource, InMemorySequence
from entityforge.data.sql import SqlAlchemyDataSource, SqlAlchemySequence

__all__ = [
    "DataSource",
    "RecordSequence",
    "InMemoryDataSource",
    "InMemorySequence",
    "SqlAlchemyDataSource",
    "SqlAlchemySequence",
]
