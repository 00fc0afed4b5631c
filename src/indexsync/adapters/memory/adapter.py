"""In-memory index adapter — A process-local stand-in for the search engine.

Used for development and tests. It understands a small subset of the
``query_string`` syntax:

  - ``lamp``           term in any text field
  - ``name:lamp``      term in one field
  - ``"desk lamp"``    phrase in any text field (``name:"desk lamp"`` also works)
  - ``lam*``           prefix match
  - ``+lamp`` / ``-lamp`` / ``NOT lamp``   required / excluded terms
  - ``*`` or ``*:*``   match everything

``AND`` / ``OR`` and parentheses are accepted and treated as plain grouping.
Malformed input (a dangling ``field:``, unbalanced quotes or parentheses)
fails with the same ``RequestError`` payload the real engine returns, wrapped
in ``QueryError``, so error mapping behaves identically for both adapters.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from opensearchpy.exceptions import RequestError

from indexsync.adapters.base.adapter import AdapterHealth, IndexAdapter, RawResults
from indexsync.adapters.base.conversions import DocumentConverter
from indexsync.adapters.base.exceptions import IndexWriteError, QueryError
from indexsync.models.page import PageRequest
from indexsync.models.query import StructuredQuery
from indexsync.models.record import Product

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"\w+")
_CLAUSE = re.compile(r'([+-]?)(?:([\w.]+):)?("[^"]*"|[^\s()"]+)?')
_OPERATORS = {"AND", "OR", "&&", "||"}


def _analyze(text: str) -> list[str]:
    return _TOKEN.findall(text.lower())


@dataclass
class _Clause:
    field: str | None
    terms: list[str]
    phrase: bool
    prefix: bool
    occur: str  # "should", "must" or "must_not"


def _parse_failure(query: str, index_name: str) -> RequestError:
    reason = f"Failed to parse query [{query}]"
    info = {
        "error": {
            "root_cause": [{"type": "query_shard_exception", "reason": reason, "index": index_name}],
            "type": "search_phase_execution_exception",
            "reason": "all shards failed",
            "phase": "query",
        },
        "status": 400,
    }
    return RequestError(400, "search_phase_execution_exception", info)


def _parse_query_string(query: str, index_name: str) -> list[_Clause] | None:
    """Parse the supported subset. Returns None for a match-all query."""
    text = query.strip()
    if text in ("*", "*:*", ""):
        return None
    if text.count('"') % 2 or text.count("(") != text.count(")"):
        raise _parse_failure(query, index_name)

    clauses: list[_Clause] = []
    negate_next = False
    for raw in re.findall(r'[+-]?(?:[\w.]+:)?"[^"]*"|[^\s()]+', text):
        if raw in _OPERATORS:
            continue
        if raw in ("NOT", "!"):
            negate_next = True
            continue

        match = _CLAUSE.fullmatch(raw)
        if match is None:
            raise _parse_failure(query, index_name)
        sign, field, value = match.groups()
        if not value:
            # "name:" with nothing after the colon
            raise _parse_failure(query, index_name)

        phrase = value.startswith('"')
        prefix = not phrase and value.endswith("*")
        terms = _analyze(value)
        if not terms:
            continue

        occur = "must" if sign == "+" else "must_not" if sign == "-" or negate_next else "should"
        negate_next = False
        clauses.append(_Clause(field=field, terms=terms, phrase=phrase, prefix=prefix, occur=occur))
    return clauses or None


class MemoryIndexAdapter(IndexAdapter):
    """Index adapter keeping documents in a dict.

    Args:
        index_name: Name reported in error payloads and health messages.
        text_fields: Fields searched by unqualified terms.
        converter: Record ⇄ document converter.
        **kwargs: Accepted and ignored, so settings for other adapters can be
            passed through unchanged.
    """

    def __init__(
        self,
        index_name: str = "products",
        text_fields: tuple[str, ...] = ("name", "content"),
        converter: DocumentConverter | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(converter)
        self._index_name = index_name
        self._text_fields = text_fields
        self._documents: dict[str, dict[str, Any]] = {}
        self._ready = False

    @property
    def name(self) -> str:
        return "memory"

    async def initialize(self) -> None:
        self._ready = True
        logger.info("Using in-memory index '%s'", self._index_name)

    async def shutdown(self) -> None:
        self._ready = False

    async def index_document(self, product: Product) -> None:
        if product.id is None:
            raise IndexWriteError("Cannot index a product without an id.")
        self._documents[product.id] = self.converter.to_document(product)

    async def delete_document(self, record_id: str) -> None:
        self._documents.pop(record_id, None)

    def get_document(self, record_id: str) -> dict[str, Any] | None:
        """Return the stored document source, or None."""
        return self._documents.get(record_id)

    def __len__(self) -> int:
        return len(self._documents)

    async def execute_query(self, query: StructuredQuery, page: PageRequest) -> RawResults:
        start = time.monotonic()
        clause = query.body.get("query_string") if len(query.body) == 1 else None
        if clause is None and "match_all" not in query.body:
            raise QueryError(f"Unsupported query for in-memory index: {list(query.body)}")

        try:
            clauses = _parse_query_string(clause["query"], self._index_name) if clause else None
        except RequestError as e:
            raise QueryError(f"In-memory query failed: {e}") from e

        scored: list[tuple[float, str, dict[str, Any]]] = []
        for doc_id, source in self._documents.items():
            score = self._score(source, clauses)
            if score > 0:
                scored.append((score, doc_id, source))
        # Stable sort keeps insertion order among equal scores.
        scored.sort(key=lambda item: item[0], reverse=True)

        window = scored[page.offset : page.offset + page.size]
        return RawResults(
            total_hits=len(scored),
            documents=[{"_index": self._index_name, "_id": i, "_score": s, "_source": dict(src)} for s, i, src in window],
            took_ms=int((time.monotonic() - start) * 1000),
        )

    def _score(self, source: dict[str, Any], clauses: list[_Clause] | None) -> float:
        if clauses is None:
            return 1.0

        score = 0.0
        has_should = False
        for clause in clauses:
            matched = self._matches(source, clause)
            if clause.occur == "must_not":
                if matched:
                    return 0.0
            elif clause.occur == "must":
                if not matched:
                    return 0.0
                score += 1.0
            else:
                has_should = True
                score += 1.0 if matched else 0.0

        if score == 0 and not has_should and clauses:
            # Only exclusions: everything not excluded matches.
            return 1.0
        return score

    def _matches(self, source: dict[str, Any], clause: _Clause) -> bool:
        fields = [clause.field] if clause.field else list(self._text_fields)
        for field in fields:
            value = source.get(field)
            if value is None:
                continue
            tokens = _analyze(str(value))
            if clause.phrase:
                n = len(clause.terms)
                if any(tokens[i : i + n] == clause.terms for i in range(len(tokens) - n + 1)):
                    return True
            elif clause.prefix:
                if all(any(t.startswith(term) for t in tokens) for term in clause.terms):
                    return True
            elif all(term in tokens for term in clause.terms):
                return True
        return False

    async def health_check(self) -> AdapterHealth:
        if not self._ready:
            return AdapterHealth(status="unhealthy", message="Index not initialized")
        return AdapterHealth(
            status="healthy",
            last_check=datetime.now(UTC).isoformat(),
            message=f"Index: {self._index_name}, Documents: {len(self._documents)}",
        )
