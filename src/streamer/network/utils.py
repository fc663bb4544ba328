"""
Network utilities for streamer.

This module provides utility functions for common network operations
including address parsing, socket creation and SSL context setup.
"""

import ipaddress
import socket
import ssl
from typing import NamedTuple, Optional, Tuple, Union

from ..exceptions import InvalidArgumentError


INET_SCHEMES = {"tcp", "udp", "ssl", "tls"}
LOCAL_SCHEMES = {"unix", "udg"}
TLS_SCHEMES = {"ssl", "tls"}
DATAGRAM_SCHEMES = {"udp", "udg"}


class Address(NamedTuple):
    """Components of a scheme-qualified socket address."""
    scheme: str
    host: str
    port: int
    path: str

    @property
    def is_local_socket(self) -> bool:
        return self.scheme in LOCAL_SCHEMES

    @property
    def socket_type(self) -> int:
        if self.scheme in DATAGRAM_SCHEMES:
            return socket.SOCK_DGRAM
        return socket.SOCK_STREAM


def split_host_port(value: str) -> Tuple[str, int]:
    """
    Split ``host:port`` (or ``[v6]:port``) into its parts.

    Args:
        value: Endpoint string

    Returns:
        Tuple of (host, port)

    Raises:
        InvalidArgumentError: If the endpoint is malformed
    """
    if value.startswith("["):
        host, sep, port = value[1:].partition("]:")
        if not sep or not host:
            raise InvalidArgumentError(f"Malformed address: {value!r}")
    else:
        host, sep, port = value.rpartition(":")
        if not sep or not host or ":" in host:
            raise InvalidArgumentError(f"Malformed address: {value!r}")

    return host, validate_port(port)


def parse_address(address: str) -> Address:
    """
    Parse a socket address into components.

    Accepted forms are ``tcp://host:port``, ``udp://host:port``,
    ``ssl://host:port``, ``tls://host:port``, ``unix:///path``,
    ``udg:///path`` and a bare ``host:port``, which means TCP.

    Args:
        address: Address string to parse

    Returns:
        Parsed Address

    Raises:
        InvalidArgumentError: If the address is malformed
    """
    if not isinstance(address, str) or not address:
        raise InvalidArgumentError(f"Address must be a non-empty string, got {address!r}")

    scheme, sep, rest = address.partition("://")
    if not sep:
        scheme, rest = "tcp", address
    scheme = scheme.lower()

    if scheme in LOCAL_SCHEMES:
        if not rest:
            raise InvalidArgumentError(f"No socket path found in address: {address!r}")
        return Address(scheme, "", 0, rest)

    if scheme not in INET_SCHEMES:
        raise InvalidArgumentError(f"Unsupported transport: {scheme!r}")

    host, port = split_host_port(rest)
    return Address(scheme, host, port, "")


def format_address(host: str, port: int) -> str:
    """
    Format an endpoint as ``host:port``.

    IPv6 hosts are wrapped in brackets so the result can be parsed back.
    """
    if is_ipv6_address(host):
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def create_socket(
    family: int = socket.AF_INET,
    type: int = socket.SOCK_STREAM,
    proto: int = 0,
    nodelay: bool = False,
    keepalive: bool = False,
) -> socket.socket:
    """
    Create a socket with the requested options.

    Args:
        family: Address family (default: AF_INET)
        type: Socket type (default: SOCK_STREAM)
        proto: Protocol (default: 0 for auto)
        nodelay: Disable Nagle's algorithm on TCP sockets
        keepalive: Enable TCP keep-alive probes

    Returns:
        Configured socket object

    Raises:
        OSError: If socket creation fails
    """
    sock = socket.socket(family, type, proto)

    try:
        tcp = type == socket.SOCK_STREAM and family in (socket.AF_INET, socket.AF_INET6)
        if tcp and nodelay:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        if tcp and keepalive:
            enable_keepalive(sock)
    except OSError:
        sock.close()
        raise

    return sock


def enable_keepalive(sock: socket.socket) -> None:
    """Turn on keep-alive probes with platform-specific tuning."""
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)

    if hasattr(socket, 'TCP_KEEPIDLE'):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, 60)
    if hasattr(socket, 'TCP_KEEPINTVL'):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, 10)
    if hasattr(socket, 'TCP_KEEPCNT'):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPCNT, 6)


def create_ssl_context(
    alpn_protocols: Optional[list] = None,
    verify_mode: int = ssl.CERT_REQUIRED,
    check_hostname: bool = True,
    cert_file: Optional[str] = None,
    key_file: Optional[str] = None,
) -> ssl.SSLContext:
    """
    Create a client SSL context.

    Args:
        alpn_protocols: Optional list of ALPN protocols to negotiate
        verify_mode: SSL verification mode
        check_hostname: Whether to verify hostname
        cert_file: Path to certificate file (for client auth)
        key_file: Path to private key file (for client auth)

    Returns:
        Configured SSL context

    Raises:
        ssl.SSLError: If SSL context creation fails
    """
    context = ssl.create_default_context()
    # check_hostname has to be relaxed before verification can be turned off
    context.check_hostname = check_hostname
    context.verify_mode = verify_mode

    if alpn_protocols:
        context.set_alpn_protocols(alpn_protocols)

    context.options |= ssl.OP_NO_COMPRESSION
    context.minimum_version = ssl.TLSVersion.TLSv1_2

    if cert_file and key_file:
        context.load_cert_chain(cert_file, key_file)

    return context


def is_ipv6_address(host: str) -> bool:
    """
    Check if a host string is an IPv6 address.

    Args:
        host: Host string to check

    Returns:
        True if the host is an IPv6 address
    """
    try:
        socket.inet_pton(socket.AF_INET6, host)
        return True
    except (OSError, ValueError):
        return False


def is_ipv4_address(host: str) -> bool:
    """
    Check if a host string is an IPv4 address.

    Args:
        host: Host string to check

    Returns:
        True if the host is an IPv4 address
    """
    try:
        socket.inet_pton(socket.AF_INET, host)
        return True
    except (OSError, ValueError):
        return False


def set_socket_timeout(sock: socket.socket, timeout: Optional[float]) -> None:
    """
    Set socket timeout.

    Args:
        sock: Socket object
        timeout: Timeout in seconds (None for blocking)
    """
    if timeout is not None:
        sock.settimeout(timeout)
    else:
        sock.settimeout(None)


def validate_port(port: Union[int, str]) -> int:
    """
    Validate and convert port to integer.

    Args:
        port: Port number (int or string)

    Returns:
        Port as integer

    Raises:
        InvalidArgumentError: If port is invalid
    """
    try:
        port_int = int(port)
    except (ValueError, TypeError):
        raise InvalidArgumentError(f"Invalid port: {port}")

    if not (0 <= port_int <= 65535):
        raise InvalidArgumentError(f"Port must be between 0 and 65535, got {port_int}")

    return port_int


def normalize_host(host: str) -> str:
    """
    Normalize hostname for consistent comparison.

    Args:
        host: Hostname to normalize

    Returns:
        Normalized hostname
    """
    # Remove trailing dots (common in DNS)
    host = host.rstrip('.')

    host = host.lower()

    # IPv4-mapped IPv6 peers come back as ::ffff:a.b.c.d
    if host.startswith("::ffff:") and is_ipv4_address(host[7:]):
        host = host[7:]

    return host


def is_localhost(host: str) -> bool:
    """
    Check if a host refers to the local machine.

    Args:
        host: Hostname or address to check

    Returns:
        True if the host is localhost
    """
    localhost_names = {
        'localhost',
        '0.0.0.0',
        '::',
    }

    host = normalize_host(host)
    if host in localhost_names:
        return True

    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False
