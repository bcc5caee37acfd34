"""Asyncio GELF UDP client with in-flight tracking and draining close."""

from __future__ import annotations

import asyncio
import logging
import socket
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Set

from ..config.schema import GelfConfig
from ..core.errors import (
    ClientClosedError,
    CompressionError,
    ProtocolLimitError,
    SerializationError,
    TransportError,
)
from ..core.events import ErrorChannel
from ..core.fields import error_fields
from ..core.levels import DEFAULT_LEVEL, Severity
from ..core.message import MessageBuilder
from ..core.validation import validate_client_options
from ..protocol.codec import DEFAULT_CHUNK_SIZE, compress, serialize, split

__all__ = ["ClientState", "GraylogClient", "Record"]

logger = logging.getLogger("gelfudp")

Record = Mapping[str, Any] | BaseException


class ClientState(str, Enum):
    CREATED = "created"
    READY = "ready"
    DRAINING = "draining"
    CLOSED = "closed"


class GraylogClient:
    """Send GELF messages over UDP from an asyncio event loop.

    Every datagram of a message is written concurrently and the send finishes
    once each write has resolved. Nothing is retried. Failures are published
    on :attr:`errors` rather than raised: serialization, compression and
    chunk-limit errors drop one message, while a socket error also closes the
    client. :meth:`close` waits for every accepted send to finish before the
    socket is released.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 12201,
        *,
        defaults: Mapping[str, Any] | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        level: int | str = DEFAULT_LEVEL,
        compression: str = "gzip",
        hostname: str | None = None,
        errors: ErrorChannel | None = None,
    ) -> None:
        validate_client_options(host=host, port=port, chunk_size=chunk_size, compression=compression)
        self.host = host
        self.port = port
        self.chunk_size = chunk_size
        self.compression = compression
        self.builder = MessageBuilder(defaults, level=level, hostname=hostname)
        self._errors = errors if errors is not None else ErrorChannel()

        self._state = ClientState.CREATED
        self._pending = 0
        self._drained = asyncio.Event()
        self._open_lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._sock: socket.socket | None = None
        self._address: Any = None
        self._tasks: Set[asyncio.Task[None]] = set()

    @classmethod
    def from_config(cls, config: GelfConfig, *, errors: ErrorChannel | None = None) -> "GraylogClient":
        client_cfg = config.client
        return cls(
            client_cfg.host,
            client_cfg.port,
            defaults=config.defaults,
            chunk_size=client_cfg.chunk_size,
            level=client_cfg.level,
            compression=client_cfg.compression,
            hostname=client_cfg.hostname,
            errors=errors if errors is not None else ErrorChannel(history_size=config.history_size),
        )

    # ------------------------------------------------------------------
    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def pending(self) -> int:
        """Number of accepted sends whose datagram writes have not all resolved."""

        return self._pending

    @property
    def errors(self) -> ErrorChannel:
        return self._errors

    # ------------------------------------------------------------------
    async def open(self) -> None:
        """Resolve the collector address and create the UDP socket.

        Called implicitly by the first send. Raises :class:`TransportError`
        and leaves the client closed when resolution or socket creation fails.
        """

        async with self._open_lock:
            if self._state is ClientState.CLOSED:
                raise ClientClosedError("GraylogClient is closed")
            if self._sock is not None:
                return
            loop = asyncio.get_running_loop()
            try:
                infos = await loop.getaddrinfo(self.host, self.port, type=socket.SOCK_DGRAM)
                if self._state is ClientState.CLOSED:
                    raise ClientClosedError("GraylogClient was closed while opening")
                if not infos:
                    raise OSError(f"no address found for {self.host}:{self.port}")
                family, sock_type, proto, _, address = infos[0]
                sock = socket.socket(family, sock_type, proto)
                sock.setblocking(False)
            except OSError as exc:
                self._state = ClientState.CLOSED
                raise TransportError(f"Cannot open UDP socket to {self.host}:{self.port}: {exc}") from exc
            self._loop = loop
            self._sock = sock
            self._address = address
            if self._state is ClientState.CREATED:
                self._state = ClientState.READY

    async def close(self) -> None:
        """Wait for in-flight sends, then release the socket.

        New sends are refused as soon as close is requested.
        """

        if self._state is ClientState.CLOSED:
            return
        if self._pending:
            self._state = ClientState.DRAINING
            self._drained.clear()
            await self._drained.wait()
        self._release()
        self._state = ClientState.CLOSED

    async def __aenter__(self) -> "GraylogClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc: BaseException | None, tb) -> None:  # type: ignore[override]
        await self.close()

    # ------------------------------------------------------------------
    async def send(self, record: Record) -> int:
        """Send one message and return the number of datagrams written.

        Returns ``0`` when the message was dropped; the reason is published on
        :attr:`errors`. Raises :class:`ClientClosedError` once the client is
        closing or closed.
        """

        return await self._send(lambda: record)

    def submit(self, record: Record) -> None:
        """Schedule a send on the client's event loop without waiting for it.

        Safe to call from any thread once the client is bound to a loop (after
        :meth:`open` or a first :meth:`send`).
        """

        if self._state in (ClientState.DRAINING, ClientState.CLOSED):
            raise ClientClosedError(f"GraylogClient is {self._state.value}")
        loop = self._loop
        if loop is None:
            raise RuntimeError("GraylogClient is not bound to an event loop; call open() first")
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._spawn(record)
        else:
            loop.call_soon_threadsafe(self._spawn, record)

    async def log(self, level: int, message: str | Record, /, **fields: Any) -> int:
        return await self._send(lambda: _compose(level, message, fields))

    async def emergency(self, message: str | Record, /, **fields: Any) -> int:
        return await self.log(Severity.EMERGENCY, message, **fields)

    async def alert(self, message: str | Record, /, **fields: Any) -> int:
        return await self.log(Severity.ALERT, message, **fields)

    async def critical(self, message: str | Record, /, **fields: Any) -> int:
        return await self.log(Severity.CRITICAL, message, **fields)

    async def error(self, message: str | Record, /, **fields: Any) -> int:
        return await self.log(Severity.ERROR, message, **fields)

    async def warning(self, message: str | Record, /, **fields: Any) -> int:
        return await self.log(Severity.WARNING, message, **fields)

    async def notice(self, message: str | Record, /, **fields: Any) -> int:
        return await self.log(Severity.NOTICE, message, **fields)

    async def info(self, message: str | Record, /, **fields: Any) -> int:
        return await self.log(Severity.INFO, message, **fields)

    async def debug(self, message: str | Record, /, **fields: Any) -> int:
        return await self.log(Severity.DEBUG, message, **fields)

    # ------------------------------------------------------------------
    def _begin(self) -> None:
        if self._state in (ClientState.DRAINING, ClientState.CLOSED):
            raise ClientClosedError(f"GraylogClient is {self._state.value}")
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._pending += 1

    async def _send(self, prepare: Callable[[], Record]) -> int:
        self._begin()
        try:
            return await self._deliver(prepare)
        finally:
            self._finish()

    def _finish(self) -> None:
        self._pending -= 1
        if self._pending == 0:
            self._drained.set()

    def _spawn(self, record: Record) -> None:
        try:
            self._begin()
        except ClientClosedError as exc:
            logger.debug("gelfudp dropped a submitted record: %s", exc)
            return
        assert self._loop is not None
        task = self._loop.create_task(self._run(record))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, record: Record) -> None:
        try:
            await self._deliver(lambda: record)
        finally:
            self._finish()

    async def _deliver(self, prepare: Callable[[], Record]) -> int:
        try:
            envelope = self.builder.build(prepare())
            payload = await self._compress(serialize(envelope))
            datagrams = split(payload, self.chunk_size)
        except (SerializationError, CompressionError, ProtocolLimitError) as exc:
            self._errors.publish(exc)
            return 0

        try:
            await self.open()
        except ClientClosedError:
            return 0
        except TransportError as exc:
            self._errors.publish(exc)
            return 0

        results = await asyncio.gather(*(self._write(datagram) for datagram in datagrams), return_exceptions=True)
        written = 0
        for result in results:
            if result is None:
                written += 1
            elif isinstance(result, ClientClosedError):
                continue
            elif isinstance(result, OSError):
                self._fail(TransportError(f"UDP send to {self.host}:{self.port} failed: {result}"), result)
            else:
                raise result
        return written

    async def _compress(self, data: bytes) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, compress, data, self.compression)

    async def _write(self, datagram: bytes) -> None:
        if self._sock is None or self._loop is None:
            raise ClientClosedError("GraylogClient socket was released")
        await self._loop.sock_sendto(self._sock, datagram, self._address)

    def _fail(self, error: TransportError, cause: BaseException) -> None:
        if self._sock is None:
            return
        error.__cause__ = cause
        self._release()
        self._state = ClientState.CLOSED
        self._errors.publish(error)

    def _release(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None


def _compose(level: int, message: str | Record, fields: Dict[str, Any]) -> Dict[str, Any]:
    record: Dict[str, Any]
    if isinstance(message, str):
        record = {"short_message": message}
    elif isinstance(message, BaseException):
        record = error_fields(message)
    elif isinstance(message, Mapping):
        record = dict(message)
    else:
        raise TypeError(f"Expected a message string, a mapping or an exception, got {type(message).__name__}")
    record.update(fields)
    record["level"] = int(level)
    return record
