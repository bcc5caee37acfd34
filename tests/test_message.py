from __future__ import annotations

import itertools
import json

import pytest

from gelfudp.core.errors import ConfigurationError, SerializationError
from gelfudp.core.levels import DEFAULT_LEVEL, Severity, ensure_level, from_logging_level
from gelfudp.core.message import GELF_VERSION, FieldProvider, MessageBuilder, provider


def _builder(**kwargs) -> MessageBuilder:
    kwargs.setdefault("hostname", "test-host")
    kwargs.setdefault("clock", lambda: 1700000000.25)
    return MessageBuilder(**kwargs)


def test_builtin_defaults() -> None:
    envelope = _builder().build({"pid": 1234})

    assert envelope == {
        "host": "test-host",
        "level": int(DEFAULT_LEVEL),
        "short_message": '{"pid":1234}',
        "timestamp": 1700000000.25,
        "version": GELF_VERSION,
        "_pid": "1234",
    }


def test_merge_order_later_wins() -> None:
    builder = _builder(defaults={"app": "svc", "env": "prod", "host": "configured-host"})

    envelope = builder.build({"env": "staging", "short_message": "started"})

    assert envelope["_app"] == "svc"
    assert envelope["_env"] == "staging"
    assert envelope["host"] == "configured-host"
    assert envelope["short_message"] == "started"


def test_version_cannot_be_overridden() -> None:
    envelope = _builder(defaults={"version": "2.0"}).build({"version": "0.9"})
    assert envelope["version"] == "1.1"


def test_dynamic_defaults_are_resolved_per_message() -> None:
    counter = itertools.count(1)
    builder = _builder(defaults={"sequence": lambda: next(counter), "app": "svc"})

    first = builder.build({"short_message": "a"})
    second = builder.build({"short_message": "b"})

    assert first["_sequence"] == "1"
    assert second["_sequence"] == "2"
    assert builder.defaults["sequence"].dynamic
    assert not builder.defaults["app"].dynamic


def test_provider_wraps_values_once() -> None:
    existing = FieldProvider("static")
    assert provider(existing) is existing
    assert provider("static").resolve() == "static"
    assert provider(lambda: 42).resolve() == 42


def test_build_does_not_mutate_input() -> None:
    record = {"short_message": "hello", "user": {"id": 7}}
    snapshot = json.dumps(record)
    builder = _builder()

    first = builder.build(record)
    second = builder.build(record)

    assert json.dumps(record) == snapshot
    assert first is not second
    assert first["_user"] == '{"id":7}'


def test_level_names_are_coerced() -> None:
    envelope = _builder().build({"short_message": "x", "level": "warning"})
    assert envelope["level"] == 4

    with pytest.raises(SerializationError):
        _builder().build({"short_message": "x", "level": 12})


def test_exception_record_uses_error_fields() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError as exc:
        envelope = _builder().build(exc)

    assert envelope["_errorMessage"] == "boom"
    assert "RuntimeError: boom" in envelope["_errorStack"]
    assert json.loads(envelope["short_message"])["message"] == "boom"


def test_every_key_is_reserved_or_prefixed() -> None:
    envelope = _builder(defaults={"app": "svc"}).build({"a": 1, "_b": 2, "id": 3, "file": "x.py"})
    reserved = {"version", "host", "short_message", "full_message", "timestamp", "level", "facility", "line", "file"}
    assert all(key in reserved or key.startswith("_") for key in envelope)
    assert envelope["__id"] == "3"


def test_ensure_level() -> None:
    assert ensure_level("info") is Severity.INFO
    assert ensure_level("WARN") is Severity.WARNING
    assert ensure_level("3") is Severity.ERROR
    assert ensure_level(0) is Severity.EMERGENCY
    with pytest.raises(ConfigurationError):
        ensure_level("verbose")
    with pytest.raises(ConfigurationError):
        ensure_level(8)


def test_from_logging_level() -> None:
    assert from_logging_level(50) is Severity.CRITICAL
    assert from_logging_level(40) is Severity.ERROR
    assert from_logging_level(30) is Severity.WARNING
    assert from_logging_level(20) is Severity.INFO
    assert from_logging_level(10) is Severity.DEBUG
    assert from_logging_level(5) is Severity.DEBUG


def test_failing_provider_raises_serialization_error() -> None:
    builder = _builder(defaults={"broken": lambda: 1 / 0})

    with pytest.raises(SerializationError) as info:
        builder.build({"short_message": "x"})
    assert isinstance(info.value.__cause__, ZeroDivisionError)
