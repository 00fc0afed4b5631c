"""Mapping of search engine failures to caller-facing errors.

The engine reports a malformed ``query_string`` as a 400 whose structured
body lists root causes; the first one's reason starts with
``Failed to parse query [``. That exception usually reaches us wrapped in one
or two generic layers (the adapter's ``QueryError``, sometimes a transport
wrapper below it), so the cause chain is walked to find it.
"""

from __future__ import annotations

import logging
from typing import Any

from opensearchpy.exceptions import TransportError

from indexsync.errors import QuerySyntaxError

logger = logging.getLogger(__name__)

PARSE_FAILURE_PREFIX = "Failed to parse query ["

# The exception itself plus up to two wrapping layers.
_MAX_DEPTH = 3


def _engine_error(exc: BaseException) -> TransportError | None:
    current: BaseException | None = exc
    for _ in range(_MAX_DEPTH):
        if current is None:
            return None
        if isinstance(current, TransportError):
            return current
        current = current.__cause__ or current.__context__
    return None


def root_causes(error: TransportError) -> list[dict[str, Any]]:
    """Return the engine's root-cause list, or an empty list if there is none."""
    info = error.args[2] if len(error.args) > 2 else None
    if not isinstance(info, dict):
        return []
    body = info.get("error")
    if not isinstance(body, dict):
        return []
    causes = body.get("root_cause") or []
    return [c for c in causes if isinstance(c, dict)]


def map_search_exception(exc: BaseException) -> BaseException:
    """Translate a query-execution failure.

    Returns:
        ``QuerySyntaxError`` when the engine rejected the query text, otherwise
        ``exc`` itself, unchanged.
    """
    engine_error = _engine_error(exc)
    if engine_error is None:
        return exc

    causes = root_causes(engine_error)
    if causes:
        reason = causes[0].get("reason")
        if isinstance(reason, str) and reason.startswith(PARSE_FAILURE_PREFIX):
            logger.info("Rejected search query: %s", reason)
            return QuerySyntaxError()
    return exc
