"""
Transport configuration for streamer factories.

The factories accept an optional, explicitly typed configuration object
instead of an opaque context resource. Each object is immutable once
created so it can be shared between calls.
"""

import ssl
from dataclasses import dataclass, field
from enum import IntFlag
from typing import List, Optional

from .exceptions import InvalidArgumentError


class ConnectFlags(IntFlag):
    """Connection flags understood by ``NetworkStream.create``."""

    PERSISTENT = 1
    ASYNC_CONNECT = 2
    CONNECT = 4


@dataclass(frozen=True)
class FileContext:
    """
    Options forwarded to the open call of ``FileStream.create``.

    Attributes:
        buffering: Buffering policy as understood by ``open()``. ``0``
            gives an unbuffered handle, ``-1`` the platform default.
        permissions: Permission bits applied when the file is created.
    """

    buffering: int = -1
    permissions: int = 0o666

    def __post_init__(self) -> None:
        if not isinstance(self.buffering, int) or self.buffering < -1:
            raise InvalidArgumentError("buffering must be an int >= -1")
        if not isinstance(self.permissions, int) or not 0 <= self.permissions <= 0o7777:
            raise InvalidArgumentError("permissions must be a valid permission mask")


@dataclass(frozen=True)
class SocketContext:
    """
    Options forwarded to the connect call of ``NetworkStream.create``.

    Attributes:
        bind_to: Local ``host:port`` to bind before connecting.
        tcp_nodelay: Disable Nagle's algorithm on TCP sockets.
        ssl_context: Ready-made SSL context for ``ssl://``/``tls://``
            addresses. When absent one is built from the fields below.
        verify_peer: Verify the peer certificate and host name.
        server_hostname: Name used for SNI and certificate checks,
            defaults to the host of the address.
        alpn_protocols: Optional list of ALPN protocols to negotiate.
        cert_file: Client certificate file.
        key_file: Client private key file.
    """

    bind_to: Optional[str] = None
    tcp_nodelay: bool = False
    ssl_context: Optional[ssl.SSLContext] = None
    verify_peer: bool = True
    server_hostname: Optional[str] = None
    alpn_protocols: List[str] = field(default_factory=list)
    cert_file: Optional[str] = None
    key_file: Optional[str] = None

    def __post_init__(self) -> None:
        if self.ssl_context is not None and not isinstance(self.ssl_context, ssl.SSLContext):
            raise InvalidArgumentError("ssl_context must be an ssl.SSLContext")
        if (self.cert_file is None) != (self.key_file is None):
            raise InvalidArgumentError("cert_file and key_file must be given together")
