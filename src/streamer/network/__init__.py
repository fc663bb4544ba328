"""
Network components for streamer.

This module provides the socket-backed stream factory and the
address and socket helpers it is built on.
"""

from .stream import NetworkStream, open_connection
from .utils import (
    Address,
    parse_address,
    format_address,
    split_host_port,
    create_socket,
    create_ssl_context,
    enable_keepalive,
    is_ipv6_address,
    is_ipv4_address,
    set_socket_timeout,
    validate_port,
    normalize_host,
    is_localhost,
)

__all__ = [
    "NetworkStream",
    "open_connection",
    "Address",
    "parse_address",
    "format_address",
    "split_host_port",
    "create_socket",
    "create_ssl_context",
    "enable_keepalive",
    "is_ipv6_address",
    "is_ipv4_address",
    "set_socket_timeout",
    "validate_port",
    "normalize_host",
    "is_localhost",
]
