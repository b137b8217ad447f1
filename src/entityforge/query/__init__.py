"""Query pipeline: projection, search, count and paging."""

from entityforge.query.pipeline import DEFAULT_PAGE_SIZE, QueryPipeline

__all__ = ["QueryPipeline", "DEFAULT_PAGE_SIZE"]
