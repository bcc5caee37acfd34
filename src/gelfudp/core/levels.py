"""Syslog severity helpers used for the GELF ``level`` field."""

from __future__ import annotations

import logging
from enum import IntEnum

from .errors import ConfigurationError

__all__ = ["Severity", "DEFAULT_LEVEL", "ensure_level", "from_logging_level"]


class Severity(IntEnum):
    EMERGENCY = 0
    ALERT = 1
    CRITICAL = 2
    ERROR = 3
    WARNING = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7


DEFAULT_LEVEL = Severity.INFO

_ALIASES = {
    "EMERG": Severity.EMERGENCY,
    "PANIC": Severity.EMERGENCY,
    "CRIT": Severity.CRITICAL,
    "FATAL": Severity.CRITICAL,
    "ERR": Severity.ERROR,
    "WARN": Severity.WARNING,
}


def ensure_level(value: int | str) -> Severity:
    """Normalize user supplied level values to a :class:`Severity`.

    Accepts severity numbers, digit strings and case-insensitive names
    (``"info"``, ``"WARN"``).
    """

    if isinstance(value, str):
        name = value.strip().upper()
        if name.isdigit():
            return ensure_level(int(name))
        if name in Severity.__members__:
            return Severity[name]
        if name in _ALIASES:
            return _ALIASES[name]
        raise ConfigurationError(f"Unknown severity name: {value!r}")
    try:
        return Severity(int(value))
    except ValueError as exc:
        raise ConfigurationError(f"Severity must be between 0 and 7, got {value!r}") from exc


def from_logging_level(levelno: int) -> Severity:
    """Map a stdlib ``logging`` level number to the closest syslog severity."""

    if levelno >= logging.CRITICAL:
        return Severity.CRITICAL
    if levelno >= logging.ERROR:
        return Severity.ERROR
    if levelno >= logging.WARNING:
        return Severity.WARNING
    if levelno >= logging.INFO:
        return Severity.INFO
    return Severity.DEBUG
