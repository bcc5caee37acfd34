"""Configuration schema definition for gelfudp."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from ..protocol.codec import DEFAULT_CHUNK_SIZE

DEFAULT_CONFIG: Dict[str, Any] = {
    "client": {
        "host": "localhost",
        "port": 12201,
        "chunk_size": DEFAULT_CHUNK_SIZE,
        "compression": "gzip",
        "level": "INFO",
        "hostname": None,
    },
    "defaults": {},
    "errors": {
        "history_size": 100,
    },
}


def default_config() -> Dict[str, Any]:
    """Return a deep copy of the default configuration mapping."""

    return deepcopy(DEFAULT_CONFIG)


@dataclass(slots=True)
class ClientConfig:
    host: str = "localhost"
    port: int = 12201
    chunk_size: int = DEFAULT_CHUNK_SIZE
    compression: str = "gzip"
    level: str | int = "INFO"
    hostname: str | None = None


@dataclass(slots=True)
class GelfConfig:
    client: ClientConfig
    defaults: Dict[str, Any] = field(default_factory=dict)
    history_size: int = 100


def _to_client(data: Mapping[str, Any]) -> ClientConfig:
    hostname = data.get("hostname")
    return ClientConfig(
        host=str(data.get("host", "localhost")),
        port=int(data.get("port", 12201)),
        chunk_size=int(data.get("chunk_size", DEFAULT_CHUNK_SIZE)),
        compression=str(data.get("compression", "gzip")).lower(),
        level=data.get("level", "INFO"),
        hostname=str(hostname) if hostname else None,
    )


def _to_defaults(data: Any) -> Dict[str, Any]:
    if not isinstance(data, Mapping):
        return {}
    return {str(key): value for key, value in data.items()}


def build_config(data: Mapping[str, Any]) -> GelfConfig:
    client_raw = data.get("client", {})
    errors_raw = data.get("errors", {})
    client = _to_client(client_raw if isinstance(client_raw, Mapping) else {})
    history_size = int(errors_raw.get("history_size", 100)) if isinstance(errors_raw, Mapping) else 100

    return GelfConfig(
        client=client,
        defaults=_to_defaults(data.get("defaults", {})),
        history_size=history_size,
    )
