"""Configuration validation helpers."""

from __future__ import annotations

from ..config.schema import GelfConfig
from ..protocol.codec import COMPRESSORS
from .errors import ConfigurationError
from .levels import ensure_level

__all__ = ["ConfigurationError", "validate_client_options", "validate_configuration"]


def validate_client_options(*, host: str, port: int, chunk_size: int, compression: str) -> None:
    """Reject client options that can never produce a working sender."""

    if not isinstance(host, str) or not host.strip():
        raise ConfigurationError("Graylog host must be a non-empty string")
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        raise ConfigurationError(f"Graylog port must be between 1 and 65535, got {port!r}")
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size < 1:
        raise ConfigurationError(f"Chunk size must be a positive integer, got {chunk_size!r}")
    if compression not in COMPRESSORS:
        raise ConfigurationError(
            f"Unknown compression '{compression}', expected one of: {', '.join(sorted(COMPRESSORS))}"
        )


def validate_configuration(config: GelfConfig) -> None:
    """Ensure a loaded configuration describes a usable client."""

    client = config.client
    validate_client_options(
        host=client.host,
        port=client.port,
        chunk_size=client.chunk_size,
        compression=client.compression,
    )
    ensure_level(client.level)

    if config.history_size < 1:
        raise ConfigurationError(f"errors.history_size must be positive, got {config.history_size}")

    for name in config.defaults:
        if not name:
            raise ConfigurationError("Default field names must be non-empty")
