"""
Custom exceptions for streamer.

This module defines the exception hierarchy used throughout
the library to separate caller misuse from transport failures.
"""

from typing import Optional


class StreamerError(Exception):
    """Base exception for all streamer errors."""
    
    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class InvalidArgumentError(StreamerError, ValueError):
    """Raised when a value cannot represent what the call expects."""


class LogicError(StreamerError):
    """
    Raised when an operation is attempted in a state that forbids it.
    
    Closed streams, wrong-direction modes and double closes all end up
    here. These are always avoidable by checking ``is_open``,
    ``is_readable()`` or ``is_writable()`` first.
    """


class StreamRuntimeError(StreamerError):
    """Raised when the underlying transport operation itself fails."""
