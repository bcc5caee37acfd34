from __future__ import annotations

import gzip
import json
import os
import socket
from pathlib import Path
from typing import Any, Dict, Iterator, List

import pytest

from gelfudp.config import loader
from gelfudp.protocol.codec import CHUNK_HEADER_SIZE, CHUNK_MAGIC


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    user_dir = tmp_path / "user-config"
    monkeypatch.setattr(loader, "user_config_dir", lambda _: str(user_dir))
    for key in list(os.environ):
        if key.startswith("GELFUDP__"):
            monkeypatch.delenv(key)
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    yield


class UDPReceiver:
    """Plain UDP socket standing in for a Graylog GELF input."""

    def __init__(self) -> None:
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, 1 << 20)
        self.sock.bind(("127.0.0.1", 0))

    @property
    def port(self) -> int:
        return self.sock.getsockname()[1]

    def receive(self, count: int, timeout: float = 2.0) -> List[bytes]:
        self.sock.settimeout(timeout)
        return [self.sock.recvfrom(65535)[0] for _ in range(count)]

    def drain(self, timeout: float = 0.2) -> List[bytes]:
        self.sock.settimeout(timeout)
        datagrams: List[bytes] = []
        while True:
            try:
                datagrams.append(self.sock.recvfrom(65535)[0])
            except socket.timeout:
                return datagrams

    @staticmethod
    def decode(datagrams: List[bytes]) -> Dict[str, Any]:
        """Reassemble and decode one message from its datagrams."""

        if len(datagrams) == 1 and not datagrams[0].startswith(CHUNK_MAGIC):
            payload = datagrams[0]
        else:
            ordered = sorted(datagrams, key=lambda d: d[10])
            payload = b"".join(d[CHUNK_HEADER_SIZE:] for d in ordered)
        return json.loads(gzip.decompress(payload).decode("utf-8"))

    def close(self) -> None:
        self.sock.close()


@pytest.fixture
def receiver() -> Iterator[UDPReceiver]:
    udp = UDPReceiver()
    try:
        yield udp
    finally:
        udp.close()
