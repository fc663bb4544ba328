"""
streamer - Binary-safe streams over files and sockets

A small synchronous library that wraps open file and socket handles
in one Stream type with a common read/write/seek/metadata contract.
"""

__version__ = "0.1.0"
__author__ = "Developer"
__email__ = "dev@example.com"

# Import main components for easy access
from .exceptions import StreamerError, InvalidArgumentError, LogicError, StreamRuntimeError
from .modes import READABLE_MODES, WRITABLE_MODES, is_readable_mode, is_writable_mode
from .context import ConnectFlags, FileContext, SocketContext
from .stream import Stream
from .file_stream import (
    FileStream,
    open_file,
    register_wrapper,
    unregister_wrapper,
    get_wrappers,
)
from .network import NetworkStream, open_connection

__all__ = [
    "StreamerError",
    "InvalidArgumentError",
    "LogicError",
    "StreamRuntimeError",
    "READABLE_MODES",
    "WRITABLE_MODES",
    "is_readable_mode",
    "is_writable_mode",
    "ConnectFlags",
    "FileContext",
    "SocketContext",
    "Stream",
    "FileStream",
    "open_file",
    "register_wrapper",
    "unregister_wrapper",
    "get_wrappers",
    "NetworkStream",
    "open_connection",
]
