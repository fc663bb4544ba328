"""
Network streams for streamer.

This module defines NetworkStream, which opens a client socket on a
scheme-qualified address and wraps it in a Stream. Connection errors
are the socket layer's own OSError, raised unchanged.
"""

import errno
import logging
import os
import socket
import ssl
from typing import Optional

from typing_extensions import Self

from ..context import ConnectFlags, SocketContext
from ..exceptions import InvalidArgumentError
from ..stream import Stream
from .utils import (
    Address,
    TLS_SCHEMES,
    create_socket,
    create_ssl_context,
    format_address,
    parse_address,
    set_socket_timeout,
    split_host_port,
)

logger = logging.getLogger(__name__)

_CONNECT_IN_PROGRESS = {
    0,
    errno.EINPROGRESS,
    errno.EWOULDBLOCK,
    errno.EAGAIN,
    getattr(errno, "WSAEWOULDBLOCK", errno.EWOULDBLOCK),
}


class NetworkStream(Stream):
    """Stream whose handle is a client socket."""

    DEFAULT_TIMEOUT = 60.0

    @classmethod
    def create(
        cls,
        address: str,
        timeout: Optional[float] = None,
        flags: Optional[ConnectFlags] = None,
        context: Optional[SocketContext] = None,
    ) -> Self:
        """
        Connect to ``address`` and wrap the socket in a stream.

        Args:
            address: ``tcp://host:port``, ``udp://host:port``,
                ``ssl://host:port``, ``tls://host:port``, ``unix:///path``,
                ``udg:///path`` or a bare ``host:port``
            timeout: Connect timeout in seconds. Reads and writes on the
                resulting stream block without a timeout.
            flags: Connection flags, defaults to ``ConnectFlags.CONNECT``
            context: Socket and TLS options

        Returns:
            A new stream owning the connected socket

        Raises:
            InvalidArgumentError: If the address, flags or context are invalid
            OSError: If the connection cannot be established
        """
        if context is None:
            context = SocketContext()
        elif not isinstance(context, SocketContext):
            raise InvalidArgumentError(
                f"context must be a SocketContext, got {type(context).__name__}"
            )
        flags = ConnectFlags.CONNECT if flags is None else ConnectFlags(flags)
        if timeout is None:
            timeout = cls.DEFAULT_TIMEOUT
        elif timeout < 0:
            raise InvalidArgumentError(f"timeout must be non-negative, got {timeout}")

        target = parse_address(address)
        if flags & ConnectFlags.ASYNC_CONNECT and target.scheme in TLS_SCHEMES:
            raise InvalidArgumentError("Asynchronous connect is not available for TLS addresses")

        if target.is_local_socket:
            sock = cls._connect_local(target, timeout, flags)
        else:
            sock = cls._connect_inet(target, timeout, flags, context)

        logger.debug(f"Connected to {address}")
        try:
            return cls(sock)
        except InvalidArgumentError:
            sock.close()
            raise

    @classmethod
    def _connect_inet(
        cls,
        target: Address,
        timeout: float,
        flags: ConnectFlags,
        context: SocketContext,
    ) -> socket.socket:
        infos = socket.getaddrinfo(target.host, target.port, 0, target.socket_type)
        error: Optional[OSError] = None

        for family, sock_type, proto, _, sockaddr in infos:
            sock = create_socket(
                family,
                sock_type,
                proto,
                nodelay=context.tcp_nodelay,
                keepalive=bool(flags & ConnectFlags.PERSISTENT),
            )
            try:
                if context.bind_to:
                    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                    sock.bind(split_host_port(context.bind_to))
                cls._connect(sock, sockaddr, timeout, flags)
                if target.scheme in TLS_SCHEMES:
                    sock = cls._wrap_tls(sock, target, context)
                set_socket_timeout(sock, None if not flags & ConnectFlags.ASYNC_CONNECT else 0.0)
                return sock
            except OSError as e:
                logger.debug(f"Connect to {format_address(*sockaddr[:2])} failed: {e}")
                sock.close()
                error = e

        if error is None:
            raise OSError(errno.EADDRNOTAVAIL, f"No usable address for {target.host}")
        raise error

    @classmethod
    def _connect_local(
        cls,
        target: Address,
        timeout: float,
        flags: ConnectFlags,
    ) -> socket.socket:
        if not hasattr(socket, "AF_UNIX"):
            raise InvalidArgumentError(f"{target.scheme}:// sockets are not supported on this platform")

        sock = create_socket(socket.AF_UNIX, target.socket_type)
        try:
            cls._connect(sock, target.path, timeout, flags)
            set_socket_timeout(sock, None if not flags & ConnectFlags.ASYNC_CONNECT else 0.0)
        except OSError:
            sock.close()
            raise
        return sock

    @staticmethod
    def _connect(sock: socket.socket, sockaddr, timeout: float, flags: ConnectFlags) -> None:
        if flags & ConnectFlags.ASYNC_CONNECT:
            sock.setblocking(False)
            code = sock.connect_ex(sockaddr)
            if code not in _CONNECT_IN_PROGRESS:
                raise OSError(code, os.strerror(code))
            return

        set_socket_timeout(sock, timeout)
        sock.connect(sockaddr)

    @staticmethod
    def _wrap_tls(sock: socket.socket, target: Address, context: SocketContext) -> ssl.SSLSocket:
        ssl_context = context.ssl_context
        if ssl_context is None:
            ssl_context = create_ssl_context(
                alpn_protocols=context.alpn_protocols,
                verify_mode=ssl.CERT_REQUIRED if context.verify_peer else ssl.CERT_NONE,
                check_hostname=context.verify_peer,
                cert_file=context.cert_file,
                key_file=context.key_file,
            )
        return ssl_context.wrap_socket(
            sock, server_hostname=context.server_hostname or target.host
        )

    def get_name(self, remote: bool = True) -> Optional[str]:
        """
        Return the address of one end of the connection.

        Args:
            remote: The peer's address if True, else the local one

        Returns:
            ``host:port`` for network sockets, the socket path for unix
            sockets, or None for non-socket handles and sockets that are
            not connected or bound
        """
        self._ensure_open("inspect")
        if not self._is_socket:
            return None

        try:
            name = self._handle.getpeername() if remote else self._handle.getsockname()
        except OSError:
            return None

        if isinstance(name, tuple):
            return format_address(name[0], name[1])
        if isinstance(name, bytes):
            name = os.fsdecode(name)
        return name or None


def open_connection(
    address: str,
    timeout: Optional[float] = None,
    flags: Optional[ConnectFlags] = None,
    context: Optional[SocketContext] = None,
) -> NetworkStream:
    """Open a network stream. Shortcut for ``NetworkStream.create``."""
    return NetworkStream.create(address, timeout, flags, context)
