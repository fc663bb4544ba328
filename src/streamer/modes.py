"""
Open-mode classification for streamer.

Mode strings follow the fopen syntax: a base mode (``r``, ``w``, ``a``,
``x`` or ``c``), an optional ``+`` for dual direction and an optional
``b`` (binary) or ``t`` (text) suffix.
"""

from typing import Optional, Tuple

from .exceptions import InvalidArgumentError


BASE_MODES = "rwaxc"

READABLE_MODES = frozenset({
    "r", "r+", "w+", "a+", "x+", "c+",
    "rb", "r+b", "w+b", "a+b", "x+b", "c+b",
    "rt", "r+t", "w+t", "a+t", "x+t", "c+t",
})

WRITABLE_MODES = frozenset({
    "r+", "w", "w+", "a", "a+", "x", "x+", "c", "c+",
    "r+b", "wb", "w+b", "ab", "a+b", "xb", "x+b", "cb", "c+b",
    "r+t", "wt", "w+t", "at", "a+t", "xt", "x+t", "ct", "c+t",
})


def is_readable_mode(mode: Optional[str]) -> bool:
    """Check whether a mode string permits reading."""
    return mode in READABLE_MODES


def is_writable_mode(mode: Optional[str]) -> bool:
    """Check whether a mode string permits writing."""
    return mode in WRITABLE_MODES


def _split_mode(mode: str) -> Optional[Tuple[str, bool, str]]:
    bases = [c for c in mode if c in BASE_MODES]
    suffixes = [c for c in mode if c in "bt"]
    plus = mode.count("+")
    if len(bases) != 1 or len(suffixes) > 1 or plus > 1:
        return None
    if len(bases) + len(suffixes) + plus != len(mode):
        return None
    return bases[0], plus == 1, suffixes[0] if suffixes else ""


def normalize_mode(mode: str) -> str:
    """
    Rewrite a mode string in fopen order.

    Python reports modes such as ``rb+`` or ``ab+`` for its file objects;
    these become ``r+b`` and ``a+b``. Strings that are not a valid mode
    are returned unchanged, so they classify as neither readable nor
    writable.

    Args:
        mode: Mode string as reported by a handle

    Returns:
        The normalized mode string
    """
    parts = _split_mode(mode)
    if parts is None:
        return mode
    base, plus, suffix = parts
    return base + ("+" if plus else "") + suffix


def to_python_mode(mode: str) -> Tuple[str, bool]:
    """
    Translate an fopen-style mode into something ``open()`` accepts.

    The handle is always opened in binary. The ``c`` family (create
    without truncating) has no ``open()`` equivalent; it maps onto the
    ``w`` family with truncation switched off.

    Args:
        mode: fopen-style mode string

    Returns:
        Tuple of (python_mode, truncate). When ``truncate`` is False the
        caller must strip ``O_TRUNC`` from the flags ``open()`` computes.

    Raises:
        InvalidArgumentError: If the mode string is not valid
    """
    parts = _split_mode(mode) if isinstance(mode, str) else None
    if parts is None:
        raise InvalidArgumentError(f"Invalid open mode: {mode!r}")

    base, plus, _ = parts
    suffix = "+b" if plus else "b"
    if base == "c":
        return "w" + suffix, False
    return base + suffix, True
