"""Field conversions between records and index documents.

Search engines store dates as strings. A small registry maps a semantic type
tag to an ``(encode, decode)`` pair; :class:`DocumentConverter` looks up the
converter for each model field once, when it is built, so converting a record
is a plain loop over pre-resolved fields.

Built-in tags:
  - ``instant``: timezone-aware UTC datetime, stored as ISO-8601 with ``Z``
  - ``zoned_datetime``: datetime in the local zone, stored as UTC ISO-8601
  - ``local_date``: calendar date, stored as ``YYYY-MM-DD``
"""

from __future__ import annotations

import types
import typing
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any, NamedTuple

from pydantic import BaseModel


class Converter(NamedTuple):
    encode: Callable[[Any], Any]
    decode: Callable[[Any], Any]


def _to_utc(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC already.
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def _encode_instant(value: datetime) -> str:
    return _to_utc(value).isoformat().replace("+00:00", "Z")


def _parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _decode_instant(value: str) -> datetime:
    return _to_utc(_parse_iso(value))


def _decode_zoned(value: str) -> datetime:
    return _to_utc(_parse_iso(value)).astimezone()


_REGISTRY: dict[str, Converter] = {
    "instant": Converter(_encode_instant, _decode_instant),
    "zoned_datetime": Converter(_encode_instant, _decode_zoned),
    "local_date": Converter(date.isoformat, date.fromisoformat),
}

# Default tag for each Python type when a field has no explicit tag.
_TYPE_TAGS: dict[type, str] = {
    datetime: "instant",
    date: "local_date",
}


def register_converter(tag: str, encode: Callable[[Any], Any], decode: Callable[[Any], Any]) -> None:
    """Register (or replace) the converter for a type tag."""
    _REGISTRY[tag] = Converter(encode, decode)


def get_converter(tag: str) -> Converter:
    try:
        return _REGISTRY[tag]
    except KeyError:
        raise KeyError(f"No converter registered for type tag '{tag}'. Known tags: {sorted(_REGISTRY)}") from None


def _field_type(annotation: Any) -> Any:
    """Strip ``Optional[...]`` / ``X | None`` down to the concrete type."""
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


class DocumentConverter:
    """Converts instances of one model to and from index documents.

    Args:
        model: The pydantic model class being mirrored.
        tags: Explicit field → type tag overrides. Fields typed ``datetime`` or
            ``date`` get ``instant`` / ``local_date`` unless overridden.
    """

    def __init__(self, model: type[BaseModel], tags: dict[str, str] | None = None) -> None:
        self._model = model
        overrides = tags or {}
        self._converters: dict[str, Converter] = {}
        for field_name, info in model.model_fields.items():
            tag = overrides.get(field_name) or _TYPE_TAGS.get(_field_type(info.annotation))
            if tag:
                self._converters[field_name] = get_converter(tag)

    @property
    def converted_fields(self) -> list[str]:
        return list(self._converters)

    def to_document(self, instance: BaseModel) -> dict[str, Any]:
        document = instance.model_dump()
        for field_name, converter in self._converters.items():
            value = document.get(field_name)
            if value is not None:
                document[field_name] = converter.encode(value)
        return document

    def from_document(self, source: dict[str, Any], doc_id: str | None = None) -> Any:
        values = {k: v for k, v in source.items() if k in self._model.model_fields}
        for field_name, converter in self._converters.items():
            value = values.get(field_name)
            if value is not None:
                values[field_name] = converter.decode(value)
        if doc_id is not None and "id" in self._model.model_fields:
            values["id"] = doc_id
        return self._model.model_validate(values)
