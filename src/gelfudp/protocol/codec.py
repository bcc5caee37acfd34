"""GELF UDP wire codec: serialization, compression and chunk framing.

A compressed payload that fits in ``chunk_size`` bytes travels as a single
datagram with no header. Larger payloads are split into chunks, each one a
datagram laid out as::

    0x1e 0x0f | message id (8) | index (1) | count (1) | payload slice

All chunks of a message share one random message id. GELF caps a message at
128 chunks; anything larger is refused outright. Nothing is acknowledged or
retransmitted, so losing any chunk on the wire loses the whole message.
"""

from __future__ import annotations

import gzip
import math
import secrets
import zlib
from typing import Any, Callable, Dict, List, Mapping

from ..core.errors import CompressionError, ConfigurationError, ProtocolLimitError
from ..core.fields import dumps

__all__ = [
    "CHUNK_HEADER_SIZE",
    "CHUNK_MAGIC",
    "COMPRESSORS",
    "DEFAULT_CHUNK_SIZE",
    "MAX_CHUNKS",
    "MESSAGE_ID_SIZE",
    "chunk_count",
    "chunk_header",
    "compress",
    "encode",
    "new_message_id",
    "serialize",
    "split",
]

# Payload bytes per datagram. 1400 plus the chunk header and IP/UDP headers
# stays below a 1500 byte Ethernet MTU.
DEFAULT_CHUNK_SIZE = 1400

CHUNK_MAGIC = b"\x1e\x0f"
MESSAGE_ID_SIZE = 8
CHUNK_HEADER_SIZE = len(CHUNK_MAGIC) + MESSAGE_ID_SIZE + 2
MAX_CHUNKS = 128

COMPRESSORS: Dict[str, Callable[[bytes], bytes]] = {
    "gzip": gzip.compress,
    "zlib": zlib.compress,
}


def serialize(envelope: Mapping[str, Any]) -> bytes:
    return dumps(dict(envelope)).encode("utf-8")


def compress(data: bytes, method: str = "gzip") -> bytes:
    compressor = COMPRESSORS.get(method)
    if compressor is None:
        raise ConfigurationError(f"Unknown compression method: {method}")
    try:
        return compressor(data)
    except (zlib.error, OSError, ValueError, TypeError, MemoryError) as exc:
        raise CompressionError(f"{method} compression failed: {exc}") from exc


def new_message_id() -> bytes:
    return secrets.token_bytes(MESSAGE_ID_SIZE)


def chunk_count(length: int, chunk_size: int) -> int:
    return math.ceil(length / chunk_size)


def chunk_header(message_id: bytes, index: int, count: int) -> bytes:
    if len(message_id) != MESSAGE_ID_SIZE:
        raise ValueError(f"Message id must be {MESSAGE_ID_SIZE} bytes, got {len(message_id)}")
    return CHUNK_MAGIC + message_id + bytes((index, count))


def split(payload: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE, message_id: bytes | None = None) -> List[bytes]:
    """Frame ``payload`` into the datagrams that carry it.

    Raises :class:`ProtocolLimitError` without producing anything when the
    payload would need more than :data:`MAX_CHUNKS` chunks.
    """

    if chunk_size < 1:
        raise ConfigurationError(f"Chunk size must be positive, got {chunk_size}")
    length = len(payload)
    if length <= chunk_size:
        return [payload]

    count = chunk_count(length, chunk_size)
    if count > MAX_CHUNKS:
        raise ProtocolLimitError(length, chunk_size, count, MAX_CHUNKS)

    msg_id = message_id if message_id is not None else new_message_id()
    datagrams: List[bytes] = []
    for index in range(count):
        start = index * chunk_size
        datagrams.append(chunk_header(msg_id, index, count) + payload[start : start + chunk_size])
    return datagrams


def encode(
    envelope: Mapping[str, Any],
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    compression: str = "gzip",
) -> List[bytes]:
    """Serialize, compress and frame ``envelope`` in one synchronous call."""

    return split(compress(serialize(envelope), compression), chunk_size)
