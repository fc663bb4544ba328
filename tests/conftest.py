"""
Pytest configuration for streamer tests.

This file contains shared fixtures and configuration
for all tests in the project.
"""

import io
import socket
import threading
from typing import Callable, Iterator, List, Tuple

import pytest

from streamer import Stream


class LoopbackServer:
    """Single-connection TCP server on an ephemeral loopback port."""

    def __init__(self, handler: Callable[[socket.socket], None]) -> None:
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen(1)
        self._handler = handler
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self.received: List[bytes] = []

    @property
    def port(self) -> int:
        return self._listener.getsockname()[1]

    @property
    def address(self) -> str:
        return f"tcp://127.0.0.1:{self.port}"

    def start(self) -> "LoopbackServer":
        self._thread.start()
        return self

    def _serve(self) -> None:
        try:
            conn, _ = self._listener.accept()
        except OSError:
            return
        with conn:
            self._handler(conn)

    def stop(self) -> None:
        self._listener.close()
        self._thread.join(timeout=5)


def _drain(conn: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = conn.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def serve() -> Iterator[Callable[[Callable[[socket.socket], None]], LoopbackServer]]:
    """Start loopback servers with a custom connection handler."""
    servers: List[LoopbackServer] = []

    def _start(handler: Callable[[socket.socket], None]) -> LoopbackServer:
        server = LoopbackServer(handler).start()
        servers.append(server)
        return server

    yield _start

    for server in servers:
        server.stop()


@pytest.fixture
def greeting_server(serve):
    """Server that sends a fixed payload and closes the connection."""
    return serve(lambda conn: conn.sendall(b"hello\nworld\n"))


@pytest.fixture
def echo_server(serve):
    """Server that echoes everything back until the client shuts down."""
    def _echo(conn: socket.socket) -> None:
        while True:
            chunk = conn.recv(4096)
            if not chunk:
                break
            conn.sendall(chunk)
    return serve(_echo)


@pytest.fixture
def sink_server(serve):
    """Server that records everything it receives."""
    server_ref: List[LoopbackServer] = []

    def _sink(conn: socket.socket) -> None:
        server_ref[0].received.append(_drain(conn))

    server = serve(_sink)
    server_ref.append(server)
    return server


@pytest.fixture
def socket_pair() -> Iterator[Tuple[socket.socket, socket.socket]]:
    """Connected pair of sockets; both ends are closed afterwards."""
    left, right = socket.socketpair()
    yield left, right
    left.close()
    right.close()


@pytest.fixture
def sample_file(tmp_path):
    """File holding a few lines of text."""
    path = tmp_path / "sample.txt"
    path.write_bytes(b"abc\ndef\nghi")
    return path


@pytest.fixture
def memory_stream() -> Iterator[Stream]:
    """Read/write stream over an in-memory buffer."""
    stream = Stream(io.BytesIO())
    yield stream
    if stream.is_open:
        stream.close()
