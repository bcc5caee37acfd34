"""Envelope assembly: built-in defaults, client defaults and per-call fields."""

from __future__ import annotations

import socket
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping

from .errors import ConfigurationError, SerializationError
from .fields import dumps, normalize_fields
from .levels import DEFAULT_LEVEL, Severity, ensure_level

__all__ = [
    "GELF_VERSION",
    "FieldProvider",
    "MessageBuilder",
    "provider",
    "resolve_defaults",
]

GELF_VERSION = "1.1"


@dataclass(frozen=True, slots=True)
class FieldProvider:
    """A default field value: either static or produced by a zero-arg callable.

    Callables are invoked once per message, when the envelope is built.
    """

    value: Any

    @property
    def dynamic(self) -> bool:
        return callable(self.value)

    def resolve(self) -> Any:
        if not callable(self.value):
            return self.value
        try:
            return self.value()
        except Exception as exc:
            raise SerializationError(f"Field provider {self.value!r} failed: {exc}") from exc


def provider(value: Any) -> FieldProvider:
    if isinstance(value, FieldProvider):
        return value
    return FieldProvider(value)


def resolve_defaults(defaults: Mapping[str, FieldProvider]) -> Dict[str, Any]:
    return {key: item.resolve() for key, item in defaults.items()}


class MessageBuilder:
    """Build a fresh GELF envelope for every record.

    Merge order, later wins: built-in defaults (``host``, ``level``,
    ``short_message``, ``timestamp``), then the client defaults, then the
    per-call fields. ``version`` is always ``"1.1"``.
    """

    def __init__(
        self,
        defaults: Mapping[str, Any] | None = None,
        *,
        level: int | str = DEFAULT_LEVEL,
        hostname: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.defaults: Dict[str, FieldProvider] = {
            str(key): provider(value) for key, value in (defaults or {}).items()
        }
        self.level = ensure_level(level)
        self.hostname = hostname or socket.gethostname()
        self.clock = clock

    def build(self, record: Mapping[str, Any] | BaseException) -> Dict[str, Any]:
        envelope: Dict[str, Any] = {
            "host": self.hostname,
            "level": int(self.level),
            "short_message": dumps(record),
            "timestamp": self.clock(),
        }
        envelope.update(normalize_fields(resolve_defaults(self.defaults)))
        envelope.update(normalize_fields(record))
        envelope["version"] = GELF_VERSION
        envelope["level"] = _coerce_level(envelope["level"])
        return envelope


def _coerce_level(value: Any) -> int:
    if isinstance(value, Severity):
        return int(value)
    try:
        return int(ensure_level(value))
    except (ConfigurationError, TypeError) as exc:
        raise SerializationError(f"Invalid level {value!r}") from exc
