"""
File-backed streams for streamer.

FileStream opens a handle on a filesystem path, or on any URI a
registered wrapper understands, and hands it to Stream.
"""

import io
import logging
import os
import re
import sys
import tempfile
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import unquote

from typing_extensions import Self

from .context import FileContext
from .exceptions import InvalidArgumentError
from .modes import to_python_mode
from .stream import Stream

logger = logging.getLogger(__name__)

PathType = Union[str, bytes, "os.PathLike[Any]"]
WrapperOpener = Callable[[str, str, FileContext], Any]

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.-]+)://")


def open_plain_file(path: str, mode: str, context: FileContext) -> Any:
    """
    Open a file on the local filesystem in binary mode.

    Args:
        path: Filesystem path
        mode: fopen-style mode string
        context: Options forwarded to ``open()``

    Returns:
        The open binary file object

    Raises:
        OSError: If the file cannot be opened
    """
    python_mode, truncate = to_python_mode(mode)

    def opener(file: str, flags: int) -> int:
        if not truncate:
            flags &= ~os.O_TRUNC
        return os.open(file, flags, context.permissions)

    return open(path, python_mode, buffering=context.buffering, opener=opener)


def _open_file_uri(uri: str, mode: str, context: FileContext) -> Any:
    path = uri[len("file://"):]
    if path.startswith("localhost/"):
        path = path[len("localhost"):]
    return open_plain_file(unquote(path), mode, context)


def _open_memory(uri: str, mode: str, context: FileContext) -> Any:
    return io.BytesIO()


def _open_temp(uri: str, mode: str, context: FileContext) -> Any:
    return tempfile.TemporaryFile(mode="w+b", buffering=context.buffering)


class WrapperRegistry:
    """Scheme-keyed openers for paths that are not plain filesystem paths."""

    def __init__(self) -> None:
        self._openers: Dict[str, WrapperOpener] = {}

    def register(self, scheme: str, opener: WrapperOpener) -> None:
        scheme = self._check_scheme(scheme)
        if scheme in self._openers:
            raise InvalidArgumentError(f"Wrapper {scheme!r} is already registered")
        if not callable(opener):
            raise InvalidArgumentError("Wrapper opener must be callable")
        self._openers[scheme] = opener

    def unregister(self, scheme: str) -> None:
        scheme = self._check_scheme(scheme)
        if self._openers.pop(scheme, None) is None:
            raise InvalidArgumentError(f"Wrapper {scheme!r} is not registered")

    def get(self, scheme: str) -> Optional[WrapperOpener]:
        return self._openers.get(scheme.lower())

    def schemes(self) -> List[str]:
        return sorted(self._openers)

    @staticmethod
    def _check_scheme(scheme: str) -> str:
        if not isinstance(scheme, str) or not _SCHEME_RE.match(scheme + "://"):
            raise InvalidArgumentError(f"Invalid wrapper scheme: {scheme!r}")
        return scheme.lower()


# singleton used by FileStream
_WRAPPERS = WrapperRegistry()
_WRAPPERS.register("file", _open_file_uri)
_WRAPPERS.register("memory", _open_memory)
_WRAPPERS.register("temp", _open_temp)


def register_wrapper(scheme: str, opener: WrapperOpener) -> None:
    """
    Make FileStream understand ``<scheme>://`` paths.

    Args:
        scheme: URI scheme, at least two characters long so drive
            letters are never mistaken for one
        opener: Callable receiving (uri, mode, context) and returning an
            open binary handle

    Raises:
        InvalidArgumentError: If the scheme is invalid or already taken
    """
    _WRAPPERS.register(scheme, opener)


def unregister_wrapper(scheme: str) -> None:
    """Remove a wrapper registered with ``register_wrapper``."""
    _WRAPPERS.unregister(scheme)


def get_wrappers() -> List[str]:
    """Return the schemes FileStream currently understands."""
    return _WRAPPERS.schemes()


class FileStream(Stream):
    """Stream whose handle was opened on a path."""

    # Directories searched when use_include_path is set. None means sys.path.
    include_path: Optional[List[str]] = None

    @classmethod
    def create(
        cls,
        path: PathType,
        mode: str,
        use_include_path: bool = False,
        context: Optional[FileContext] = None,
    ) -> Self:
        """
        Open ``path`` and wrap the handle in a stream.

        Args:
            path: Filesystem path, or ``<scheme>://...`` for a registered
                wrapper
            mode: fopen-style mode string (``r``, ``w+``, ``cb``, ...)
            use_include_path: Search relative paths in ``include_path``
            context: Options forwarded to the open call

        Returns:
            A new stream owning the opened handle

        Raises:
            InvalidArgumentError: If the mode, context or scheme is invalid
            OSError: If the underlying open fails
        """
        if context is None:
            context = FileContext()
        elif not isinstance(context, FileContext):
            raise InvalidArgumentError(
                f"context must be a FileContext, got {type(context).__name__}"
            )
        if not isinstance(path, (str, bytes, os.PathLike)):
            raise InvalidArgumentError(f"path must be str or os.PathLike, got {type(path).__name__}")

        path = os.fsdecode(os.fspath(path))
        to_python_mode(mode)

        match = _SCHEME_RE.match(path)
        if match:
            opener = _WRAPPERS.get(match.group(1))
            if opener is None:
                raise InvalidArgumentError(f"Unable to find the wrapper {match.group(1)!r}")
            handle = opener(path, mode, context)
        else:
            if use_include_path:
                path = cls.resolve_include_path(path)
            handle = open_plain_file(path, mode, context)

        logger.debug(f"Opened {path} (mode {mode})")
        try:
            return cls(handle)
        except InvalidArgumentError:
            if callable(getattr(handle, "close", None)):
                handle.close()
            raise

    @classmethod
    def resolve_include_path(cls, path: str) -> str:
        """
        Find a relative path in the include path.

        Returns:
            The first existing candidate, or ``path`` unchanged
        """
        if os.path.isabs(path):
            return path

        search = cls.include_path if cls.include_path is not None else sys.path
        for directory in search:
            candidate = os.path.join(directory or os.curdir, path)
            if os.path.exists(candidate):
                return candidate
        return path


def open_file(
    path: PathType,
    mode: str,
    use_include_path: bool = False,
    context: Optional[FileContext] = None,
) -> FileStream:
    """Open a file stream. Shortcut for ``FileStream.create``."""
    return FileStream.create(path, mode, use_include_path, context)
