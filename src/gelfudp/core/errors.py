"""Exception hierarchy for gelfudp.

Per-message failures (:class:`SerializationError`, :class:`CompressionError`,
:class:`ProtocolLimitError`) drop only the message that caused them.
:class:`TransportError` also closes the client. None of them are retried.

Because UDP gives no delivery guarantee, a datagram lost on the network
produces no error at all: the only way to tell that the client refused a
message is the error kind published on the client's error channel.
"""

from __future__ import annotations

__all__ = [
    "GELFError",
    "SerializationError",
    "CompressionError",
    "ProtocolLimitError",
    "TransportError",
    "ClientClosedError",
    "ConfigurationError",
]


class GELFError(Exception):
    """Base class for all gelfudp errors."""


class SerializationError(GELFError):
    """A field value or the envelope could not be converted to text."""


class CompressionError(GELFError):
    """The compression backend failed."""


class ProtocolLimitError(GELFError):
    """The payload would need more chunks than GELF allows."""

    def __init__(self, size: int, chunk_size: int, chunks: int, limit: int) -> None:
        super().__init__(
            f"Message of {size} bytes needs {chunks} chunks of {chunk_size} bytes; "
            f"GELF allows at most {limit}"
        )
        self.size = size
        self.chunk_size = chunk_size
        self.chunks = chunks
        self.limit = limit


class TransportError(GELFError):
    """Socket-level failure while resolving, opening or writing."""


class ClientClosedError(TransportError):
    """Raised when sending through a client that is closing or closed."""


class ConfigurationError(GELFError, ValueError):
    """Raised when configuration validation fails."""
