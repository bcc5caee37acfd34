"""Normalization of caller supplied fields into GELF-safe keys and values.

Key rules: the nine reserved GELF names pass through verbatim, names already
starting with ``_`` are kept, everything else gets a ``_`` prefix. Graylog
treats ``_id`` as its own, so a resulting ``_id`` is renamed to ``__id``.

Value rules: additional (underscore) fields are always strings on the wire.
Strings pass through unchanged, exceptions serialize to JSON carrying their
message and stack, and every other value is serialized to canonical JSON
text, so ``1234`` becomes ``"1234"`` and ``True`` becomes ``"true"``. Reserved
numeric fields (``timestamp``, ``level``, ``line``) keep their native values.
"""

from __future__ import annotations

import json
import traceback
from datetime import date, datetime
from typing import Any, Dict, Mapping

from .errors import SerializationError

__all__ = [
    "RESERVED_FIELDS",
    "TEXT_FIELDS",
    "dumps",
    "error_fields",
    "normalize_fields",
    "normalize_key",
    "stringify",
]

RESERVED_FIELDS = frozenset(
    {
        "version",
        "host",
        "short_message",
        "full_message",
        "timestamp",
        "level",
        "facility",
        "line",
        "file",
    }
)

TEXT_FIELDS = frozenset({"host", "short_message", "full_message", "facility", "file"})


def normalize_key(key: str) -> str:
    if key in RESERVED_FIELDS or key.startswith("_"):
        normalized = key
    else:
        normalized = f"_{key}"
    if normalized == "_id":
        return "__id"
    return normalized


def _format_stack(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip("\n")


def _own_attributes(exc: BaseException) -> Dict[str, Any]:
    return {key: value for key, value in vars(exc).items() if not key.startswith("_")}


def _error_payload(exc: BaseException) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "name": type(exc).__name__,
        "message": str(exc),
        "stack": _format_stack(exc),
    }
    payload.update(_own_attributes(exc))
    return payload


def _encode_default(value: Any) -> Any:
    if isinstance(value, BaseException):
        return _error_payload(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps(value: Any) -> str:
    """Serialize ``value`` to compact JSON text or raise :class:`SerializationError`."""

    try:
        return json.dumps(
            value,
            ensure_ascii=False,
            separators=(",", ":"),
            allow_nan=False,
            default=_encode_default,
        )
    except (TypeError, ValueError, RecursionError) as exc:
        raise SerializationError(f"Cannot serialize {type(value).__name__}: {exc}") from exc


def stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return dumps(value)


def error_fields(exc: BaseException) -> Dict[str, Any]:
    """Lift an exception into top-level ``errorMessage``/``errorStack`` fields.

    Extra attributes set on the exception instance end up, serialized, in
    ``full_message``.
    """

    fields: Dict[str, Any] = {
        "errorMessage": str(exc),
        "errorStack": _format_stack(exc),
    }
    attributes = _own_attributes(exc)
    if attributes:
        fields["full_message"] = dumps(attributes)
    return fields


def normalize_fields(record: Mapping[str, Any] | BaseException) -> Dict[str, Any]:
    """Return a new mapping with GELF-safe keys and wire-safe values."""

    if isinstance(record, BaseException):
        record = error_fields(record)
    if not isinstance(record, Mapping):
        raise TypeError(f"Expected a mapping or an exception, got {type(record).__name__}")

    normalized: Dict[str, Any] = {}
    for raw_key, value in record.items():
        key = normalize_key(str(raw_key))
        if key in RESERVED_FIELDS and key not in TEXT_FIELDS:
            normalized[key] = value
        else:
            normalized[key] = stringify(value)
    return normalized
