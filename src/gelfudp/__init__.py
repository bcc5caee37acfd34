"""gelfudp public API."""

from .api import create_client
from .core.errors import (
    ClientClosedError,
    CompressionError,
    ConfigurationError,
    GELFError,
    ProtocolLimitError,
    SerializationError,
    TransportError,
)
from .core.events import ErrorChannel
from .core.levels import Severity
from .core.message import FieldProvider
from .handlers.gelf_udp import GELFUDPHandler
from .transport.client import ClientState, GraylogClient
from .version import __version__

__all__ = [
    "ClientClosedError",
    "ClientState",
    "CompressionError",
    "ConfigurationError",
    "ErrorChannel",
    "FieldProvider",
    "GELFError",
    "GELFUDPHandler",
    "GraylogClient",
    "ProtocolLimitError",
    "SerializationError",
    "Severity",
    "TransportError",
    "create_client",
    "__version__",
]
