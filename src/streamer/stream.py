"""
Core stream abstraction for streamer.

This module defines the Stream class, a binary-safe wrapper that takes
ownership of one already-open handle (a binary file object, an in-memory
buffer or a socket) and exposes a single read/write/seek/metadata
contract regardless of the transport behind it.
"""

import io
import logging
import os
import socket
import ssl
from typing import Any, Callable, Dict, Optional, Union

from typing_extensions import Self

from .exceptions import InvalidArgumentError, LogicError, StreamRuntimeError
from .modes import is_readable_mode, is_writable_mode, normalize_mode

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]


def is_socket_handle(handle: Any) -> bool:
    """Check whether an object behaves like a socket."""
    return all(
        callable(getattr(handle, name, None))
        for name in ("recv", "send", "sendall", "gettimeout", "fileno")
    )


def is_open_handle(handle: Any) -> bool:
    """
    Check whether an object is a genuine, open I/O handle.

    Sockets must still own a descriptor. File-like objects must be able
    to read or write and report ``closed`` as False.

    Args:
        handle: Object to check

    Returns:
        True if the object can be wrapped in a Stream
    """
    if is_socket_handle(handle):
        try:
            return handle.fileno() != -1
        except OSError:
            return False

    if not (callable(getattr(handle, "read", None)) or callable(getattr(handle, "write", None))):
        return False

    return getattr(handle, "closed", True) is False


def _socket_stream_type(sock: socket.socket) -> str:
    family = getattr(sock, "family", None)
    kind = getattr(sock, "type", socket.SOCK_STREAM)

    if family is not None and family == getattr(socket, "AF_UNIX", None):
        name = "unix_socket" if kind == socket.SOCK_STREAM else "udg_socket"
    elif kind == socket.SOCK_DGRAM:
        name = "udp_socket"
    else:
        name = "tcp_socket"

    if isinstance(sock, ssl.SSLSocket):
        name += "/ssl"
    return name


def _has_descriptor(handle: Any) -> bool:
    try:
        handle.fileno()
    except (AttributeError, OSError, ValueError):
        return False
    return True


class Stream:
    """
    Binary-safe wrapper around one open I/O handle.

    The Stream becomes the sole owner of the handle it is given: every
    read, write and close goes through it, and the handle is released
    when the stream is closed, leaves a ``with`` block or is garbage
    collected.
    """

    DEFAULT_BUFFER_SIZE = 4096
    PIPE_CHUNK_SIZE = 65536

    def __init__(self, handle: Any) -> None:
        """
        Take ownership of an open handle.

        Args:
            handle: An open binary file object, in-memory buffer or socket.

        Raises:
            InvalidArgumentError: If the handle is not open or not binary.
        """
        if not is_open_handle(handle):
            raise InvalidArgumentError(
                "A Stream object requires an open stream handle as constructor argument"
            )
        if isinstance(handle, io.TextIOBase):
            raise InvalidArgumentError(
                "A Stream object requires a binary handle, got a text-mode handle"
            )

        self._handle = handle
        self._is_socket = is_socket_handle(handle)
        # Bytes received from a socket by get_line but not consumed yet
        self._pending = bytearray()
        self._buffer_size = self.DEFAULT_BUFFER_SIZE
        self._eof = False
        self._is_open = True

    def __repr__(self) -> str:
        if not self._is_open:
            return f"<{type(self).__name__} closed>"
        return (
            f"<{type(self).__name__} stream_type={self.get_stream_type()!r} "
            f"mode={self._current_mode()!r}>"
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._is_open:
            self.close()

    def __del__(self) -> None:
        if not getattr(self, "_is_open", False):
            return
        logger.debug(f"Releasing handle of unclosed {type(self).__name__}")
        try:
            self._release()
        except OSError as e:
            logger.warning(f"Error releasing stream handle: {e}")
        self._is_open = False

    def get_resource(self) -> Any:
        """Return the wrapped handle."""
        return self._handle

    # Metadata

    def get_metadata(self) -> Dict[str, Any]:
        """
        Describe the wrapped handle.

        Returns:
            Dictionary with the keys ``uri``, ``stream_type``,
            ``wrapper_type``, ``wrapper_data``, ``mode``, ``seekable`` and
            ``eof``. Sockets also report ``blocked``.

        Raises:
            LogicError: If the stream is closed.
        """
        self._ensure_open("inspect")
        if self._is_socket:
            return {
                "uri": None,
                "stream_type": _socket_stream_type(self._handle),
                "wrapper_type": None,
                "wrapper_data": None,
                "mode": "r+",
                "seekable": False,
                "eof": self._eof,
                "blocked": self._handle.gettimeout() != 0.0,
            }

        handle = self._handle
        has_descriptor = _has_descriptor(handle)
        name = getattr(handle, "name", None)
        uri = os.fsdecode(name) if isinstance(name, (str, bytes, os.PathLike)) else None

        return {
            "uri": uri,
            "stream_type": "STDIO" if has_descriptor else "MEMORY",
            "wrapper_type": "plainfile" if has_descriptor else "memory",
            "wrapper_data": None,
            "mode": self._file_mode(has_descriptor),
            "seekable": self._handle_seekable(),
            "eof": self.is_eof(),
        }

    def get_metadata_for_key(self, key: str) -> Any:
        """Return one metadata field, or None if the key is absent."""
        return self.get_metadata().get(key)

    def get_uri(self) -> Optional[str]:
        return self.get_metadata_for_key("uri")

    def get_stream_type(self) -> Optional[str]:
        return self.get_metadata_for_key("stream_type")

    def get_wrapper_type(self) -> Optional[str]:
        return self.get_metadata_for_key("wrapper_type")

    def get_wrapper_data(self) -> Any:
        return self.get_metadata_for_key("wrapper_data")

    def _file_mode(self, has_descriptor: bool) -> str:
        mode = getattr(self._handle, "mode", None)
        if isinstance(mode, str):
            return normalize_mode(mode)

        readable = self._handle.readable() if callable(getattr(self._handle, "readable", None)) else False
        writable = self._handle.writable() if callable(getattr(self._handle, "writable", None)) else False
        if readable and writable:
            return "r+b" if has_descriptor else "w+b"
        if readable:
            return "rb"
        if writable:
            return "wb"
        return ""

    def _handle_seekable(self) -> bool:
        seekable = getattr(self._handle, "seekable", None)
        return bool(seekable()) if callable(seekable) else False

    # Capabilities

    def is_local(self) -> bool:
        """
        Check whether the handle refers to a resource on this machine.

        Files, memory buffers and unix sockets are local. Network sockets
        are local only when the peer is a loopback address.
        """
        from .network.utils import is_localhost

        self._ensure_open("inspect")
        if not self._is_socket:
            return True

        if getattr(self._handle, "family", None) == getattr(socket, "AF_UNIX", None):
            return True
        try:
            peer = self._handle.getpeername()
        except OSError:
            return False
        return is_localhost(peer[0])

    def is_readable(self) -> bool:
        return is_readable_mode(self._current_mode())

    def is_writable(self) -> bool:
        return is_writable_mode(self._current_mode())

    def _current_mode(self) -> str:
        self._ensure_open("inspect")
        if self._is_socket:
            return "r+"
        return self._file_mode(_has_descriptor(self._handle))

    def is_seekable(self) -> bool:
        return bool(self.get_metadata_for_key("seekable"))

    @property
    def is_open(self) -> bool:
        """Check if the stream is still open."""
        return self._is_open

    @property
    def buffer_size(self) -> int:
        """Default chunk size, in bytes, for reads without an explicit length."""
        return self._buffer_size

    @buffer_size.setter
    def buffer_size(self, size: int) -> None:
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise InvalidArgumentError(f"Buffer size must be a positive integer, got {size!r}")
        self._buffer_size = size

    def set_buffer_size(self, size: int) -> None:
        self.buffer_size = size

    def get_buffer_size(self) -> int:
        return self._buffer_size

    # Reading

    def read(self, length: Optional[int] = None) -> bytes:
        """
        Read data from the stream.

        Binary-safe. Seekable handles return ``length`` bytes unless the
        end is reached first; other transports return whatever a single
        read delivers, up to ``length`` bytes.

        Args:
            length: Maximum number of bytes to read. Defaults to the
                buffer size.

        Returns:
            The data read from the stream, empty at end-of-stream.

        Raises:
            LogicError: If the stream is closed or not readable.
            StreamRuntimeError: If the underlying read fails.
        """
        self._ensure_readable()
        length = self._resolve_length(length)
        try:
            return self._read_chunk(length)
        except (OSError, ValueError) as e:
            raise StreamRuntimeError("Cannot read stream", cause=e) from e

    def get_line(self, length: Optional[int] = None, ending: bytes = b"\n") -> bytes:
        """
        Read one line from the stream.

        Binary-safe. Reading ends when ``length`` bytes have been read,
        when ``ending`` is found (it is consumed but not included in the
        return value), or at end-of-stream, whichever comes first.

        Args:
            length: Maximum number of bytes to read. Defaults to the
                buffer size.
            ending: Delimiter to stop at.

        Returns:
            The line without its delimiter, empty at end-of-stream.

        Raises:
            LogicError: If the stream is closed or not readable.
            StreamRuntimeError: If the underlying read fails.
        """
        self._ensure_readable()
        length = self._resolve_length(length)
        if not isinstance(ending, (bytes, bytearray)) or not ending:
            raise InvalidArgumentError("Line ending must be a non-empty bytes value")

        try:
            if self._is_socket:
                return self._read_line(length, bytes(ending), self._peek_socket, self._consume_pending)
            if callable(getattr(self._handle, "peek", None)):
                return self._read_line(length, bytes(ending), self._peek_buffered, self._handle.read)
            if self._handle_seekable():
                return self._read_line(length, bytes(ending), self._peek_seekable, self._skip)
            return self._read_line(length, bytes(ending), self._read_one, lambda count: None)
        except (OSError, ValueError) as e:
            raise StreamRuntimeError("Cannot read stream", cause=e) from e

    def get_content(self) -> bytes:
        """
        Read the remaining data from the stream until its end.

        Binary-safe. On a non-blocking socket this returns what has
        arrived so far.

        Returns:
            The data read from the stream
        """
        self._ensure_readable()
        if self._is_socket:
            return self._drain_socket()

        data = self._handle.read()
        self._eof = True
        return bytes(data) if data else b""

    def is_eof(self) -> bool:
        """
        Check whether the stream is positioned at the end.

        Seekable handles compare the position with the size. Other
        transports report whether the peer has signalled end-of-stream;
        a non-blocking socket with nothing pending is not at its end.
        """
        self._ensure_open("inspect")
        if not self._handle_seekable():
            return self._eof

        position = self._handle.tell()
        end = self._handle.seek(0, io.SEEK_END)
        self._handle.seek(position)
        return position >= end

    def _read_chunk(self, length: int) -> bytes:
        if self._is_socket:
            if self._pending:
                data = bytes(self._pending[:length])
                self._consume_pending(len(data))
                return data
            data = self._recv(length)
        elif self._handle_seekable():
            data = self._handle.read(length)
        else:
            read1 = getattr(self._handle, "read1", None)
            data = read1(length) if callable(read1) else self._handle.read(length)

        # None means a non-blocking handle had nothing pending
        if data is None:
            return b""
        self._eof = not data
        return bytes(data)

    def _read_line(
        self,
        length: int,
        ending: bytes,
        peek: Callable[[int], Optional[bytes]],
        consume: Callable[[int], Any],
    ) -> bytes:
        line = bytearray()
        while len(line) < length:
            window = peek(length - len(line))
            if window is None:
                break
            if not window:
                self._eof = True
                break
            self._eof = False

            candidate = line + window
            index = candidate.find(ending, max(0, len(line) - len(ending) + 1))
            if index != -1:
                consume(index + len(ending) - len(line))
                return bytes(candidate[:index])

            consume(len(window))
            line += window

        return bytes(line)

    def _peek_buffered(self, size: int) -> bytes:
        return self._handle.peek(size)[:size]

    def _peek_seekable(self, size: int) -> bytes:
        position = self._handle.tell()
        data = self._handle.read(size) or b""
        self._handle.seek(position)
        return data

    def _skip(self, count: int) -> None:
        self._handle.seek(count, io.SEEK_CUR)

    def _read_one(self, size: int) -> Optional[bytes]:
        return self._handle.read(1)

    def _peek_socket(self, size: int) -> Optional[bytes]:
        if not self._pending:
            data = self._recv(max(size, self._buffer_size))
            if not data:
                return data
            self._pending += data
        return bytes(self._pending[:size])

    def _consume_pending(self, count: int) -> None:
        del self._pending[:count]

    def _drain_socket(self) -> bytes:
        chunks = [bytes(self._pending)]
        self._pending.clear()
        while True:
            chunk = self._recv(max(self._buffer_size, self.PIPE_CHUNK_SIZE))
            if chunk is None:
                break
            if not chunk:
                self._eof = True
                break
            chunks.append(chunk)
        return b"".join(chunks)

    def _recv(self, size: int) -> Optional[bytes]:
        """One socket read; None when a non-blocking socket has nothing pending."""
        try:
            return self._handle.recv(size)
        except (BlockingIOError, ssl.SSLWantReadError, ssl.SSLWantWriteError):
            return None

    def _send(self, data: BytesLike) -> int:
        if self._handle.gettimeout() != 0.0:
            self._handle.sendall(data)
            return len(data)
        try:
            return self._handle.send(data)
        except (BlockingIOError, ssl.SSLWantReadError, ssl.SSLWantWriteError):
            return 0

    def _resolve_length(self, length: Optional[int]) -> int:
        if length is None or length == 0:
            return self._buffer_size
        if isinstance(length, bool) or not isinstance(length, int) or length < 0:
            raise InvalidArgumentError(f"Length must be a positive integer, got {length!r}")
        return length

    # Writing

    def write(self, data: BytesLike, length: Optional[int] = None) -> int:
        """
        Write data to the stream.

        Binary-safe.

        Args:
            data: The bytes to write.
            length: If given, writing stops after ``length`` bytes or at
                the end of ``data``, whichever comes first.

        Returns:
            Number of bytes written. A non-blocking socket may accept
            fewer bytes than given, or none.

        Raises:
            LogicError: If the stream is closed or not writable.
            StreamRuntimeError: If the underlying write fails.
        """
        self._ensure_writable()
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidArgumentError(f"Data must be bytes-like, got {type(data).__name__}")
        if length is not None:
            if isinstance(length, bool) or not isinstance(length, int) or length < 0:
                raise InvalidArgumentError(f"Length must be a non-negative integer, got {length!r}")
            data = data[:length]

        try:
            if self._is_socket:
                return self._send(data)
            written = self._handle.write(data)
            self._handle.flush()
        except (OSError, ValueError) as e:
            raise StreamRuntimeError("Cannot write on stream", cause=e) from e

        return written if written is not None else 0

    def pipe(self, stream: "Stream") -> int:
        """
        Copy the rest of this stream into another stream.

        Args:
            stream: The destination stream to write to

        Returns:
            Number of piped bytes
        """
        if not isinstance(stream, Stream):
            raise InvalidArgumentError(f"Can only pipe into a Stream, got {type(stream).__name__}")
        self._ensure_open("pipe from")
        stream._ensure_open("pipe into")

        chunk_size = max(self._buffer_size, self.PIPE_CHUNK_SIZE)
        total = 0
        while True:
            chunk = self._read_chunk(chunk_size)
            if not chunk:
                break
            stream._write_all(chunk)
            total += len(chunk)
        stream._flush()

        logger.debug(f"Piped {total} bytes")
        return total

    def _write_all(self, data: bytes) -> None:
        if self._is_socket:
            self._handle.sendall(data)
            return

        view = memoryview(data)
        while view:
            written = self._handle.write(view)
            if written is None:
                raise BlockingIOError("Destination stream is not ready for writing")
            view = view[written:]

    def _flush(self) -> None:
        if not self._is_socket:
            self._handle.flush()

    # Positioning and lifecycle

    def rewind(self) -> None:
        """
        Move back to the start of the stream.

        Raises:
            LogicError: If the stream is closed or not seekable.
            StreamRuntimeError: If the underlying seek fails.
        """
        self._ensure_open("rewind")
        if not self.is_seekable():
            raise LogicError(
                f"Cannot rewind a non seekable stream (stream type is {self.get_stream_type()})"
            )
        try:
            self._handle.seek(0)
        except (OSError, ValueError) as e:
            raise StreamRuntimeError("Cannot rewind stream", cause=e) from e
        self._eof = False

    def close(self) -> bool:
        """
        Close the stream and release its handle.

        Returns:
            True once the handle has been released

        Raises:
            LogicError: If the stream is already closed.
            StreamRuntimeError: If releasing the handle fails. The stream
                stays open so that the close can be retried.
        """
        if not self._is_open:
            raise LogicError("Stream is already closed")
        try:
            self._release()
        except OSError as e:
            raise StreamRuntimeError("Cannot close stream", cause=e) from e

        self._is_open = False
        logger.debug(f"{type(self).__name__} closed")
        return True

    def _release(self) -> None:
        self._pending.clear()
        self._handle.close()

    def _ensure_open(self, action: str) -> None:
        if not self._is_open:
            raise LogicError(f"Cannot {action} a closed stream")

    def _ensure_readable(self) -> None:
        if not self._is_open:
            raise LogicError("Cannot read from a closed stream")
        if not self.is_readable():
            raise LogicError(
                "Cannot read on a non readable stream "
                f"(current mode is {self._current_mode()})"
            )

    def _ensure_writable(self) -> None:
        if not self._is_open:
            raise LogicError("Cannot write on a closed stream")
        if not self.is_writable():
            raise LogicError(
                "Cannot write on a non-writable stream "
                f"(current mode is {self._current_mode()})"
            )
