"""Application errors surfaced to callers of the product operations.

``AppError`` subclasses carry what the HTTP layer needs to render a stable,
machine-readable error: a status code, the entity the error is about and an
error key. ``IndexSyncFailure`` deliberately sits outside that hierarchy: it
describes a failed mirror write, is only ever logged and recorded, and must not
be mistaken for a read-path error such as ``QuerySyntaxError``.
"""

from __future__ import annotations

ENTITY_NAME = "product"
SEARCH_ENTITY_NAME = "elasticsearch"


class AppError(Exception):
    """Base class for caller-facing errors."""

    status_code = 500

    def __init__(self, message: str, entity_name: str, error_key: str) -> None:
        super().__init__(message)
        self.message = message
        self.entity_name = entity_name
        self.error_key = error_key

    def to_dict(self) -> dict[str, str | int]:
        return {
            "title": self.message,
            "status": self.status_code,
            "entityName": self.entity_name,
            "errorKey": self.error_key,
        }


class BadRequestError(AppError):
    status_code = 400


class ValidationError(BadRequestError):
    """The caller supplied an id where none was expected, or a missing/mismatched one."""


class NotFoundError(AppError):
    """The referenced id is absent from the record store."""

    status_code = 404

    def __init__(self, record_id: str, entity_name: str = ENTITY_NAME) -> None:
        super().__init__("Entity not found", entity_name, "idnotfound")
        self.record_id = record_id


class QuerySyntaxError(BadRequestError):
    """User search text could not be parsed by the search engine."""

    def __init__(self) -> None:
        super().__init__("Invalid query syntax!", SEARCH_ENTITY_NAME, "querySyntaxError")


class IndexSyncFailure(Exception):
    """A mirror write to the search index failed after all retry attempts.

    Args:
        operation: ``"index"`` or ``"delete"``.
        record_id: Id of the record whose index document could not be updated.
        attempts: How many times the mutation was tried.
        cause: The last exception raised by the adapter.
    """

    def __init__(self, operation: str, record_id: str, attempts: int, cause: BaseException | None = None) -> None:
        super().__init__(f"Index {operation} failed for '{record_id}' after {attempts} attempt(s): {cause!s}")
        self.operation = operation
        self.record_id = record_id
        self.attempts = attempts
        self.cause = cause
