"""Public API surface for gelfudp."""

from __future__ import annotations

from typing import Any, Dict

from .config.loader import load_configuration
from .core.events import ErrorChannel
from .core.validation import validate_configuration
from .transport.client import GraylogClient


def create_client(overrides: Dict[str, Any] | None = None, *, errors: ErrorChannel | None = None) -> GraylogClient:
    """Build a :class:`GraylogClient` from layered configuration.

    The returned client is not opened yet; use it as an async context manager
    or call :meth:`GraylogClient.open`.
    """

    config = load_configuration(overrides or {})
    validate_configuration(config)
    return GraylogClient.from_config(config, errors=errors)
