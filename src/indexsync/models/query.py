"""Search query models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class StructuredQuery(BaseModel):
    """A pre-built query in the search engine's native query DSL.

    ``body`` is the value of the ``query`` key of a search request, e.g.
    ``{"match": {"name": "lamp"}}``. Free-text user input is turned into one of
    these with :func:`query_string`.
    """

    body: dict[str, Any] = Field(description="Native query DSL clause")
    sort: list[dict[str, Any]] = Field(default_factory=list, description="Optional sort clauses")


def query_string(text: str) -> StructuredQuery:
    """Wrap raw user text in the engine's free-text ``query_string`` syntax.

    The text is passed through verbatim; the engine's own parser decides what
    is valid.
    """
    return StructuredQuery(body={"query_string": {"query": text}})
