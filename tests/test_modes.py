"""
Unit tests for open-mode classification.
"""

import pytest

from streamer.exceptions import InvalidArgumentError
from streamer.modes import (
    READABLE_MODES,
    WRITABLE_MODES,
    is_readable_mode,
    is_writable_mode,
    normalize_mode,
    to_python_mode,
)


class TestModeTables:
    """Test the readable and writable mode sets."""

    @pytest.mark.parametrize("mode", sorted(READABLE_MODES))
    def test_readable_modes(self, mode: str) -> None:
        assert is_readable_mode(mode)

    @pytest.mark.parametrize("mode", sorted(WRITABLE_MODES))
    def test_writable_modes(self, mode: str) -> None:
        assert is_writable_mode(mode)

    @pytest.mark.parametrize("mode", ["r+", "r+b", "w+t", "a+", "x+b", "c+"])
    def test_plus_modes_are_both(self, mode: str) -> None:
        assert is_readable_mode(mode)
        assert is_writable_mode(mode)

    @pytest.mark.parametrize("mode", ["r", "rb", "rt"])
    def test_read_only_modes(self, mode: str) -> None:
        assert is_readable_mode(mode)
        assert not is_writable_mode(mode)

    @pytest.mark.parametrize("mode", ["w", "ab", "xt", "cb"])
    def test_write_only_modes(self, mode: str) -> None:
        assert not is_readable_mode(mode)
        assert is_writable_mode(mode)

    @pytest.mark.parametrize("mode", ["", "rw", "rb+", "q", "r++", "R", None])
    def test_other_strings_are_neither(self, mode) -> None:
        assert not is_readable_mode(mode)
        assert not is_writable_mode(mode)

    def test_tables_are_immutable(self) -> None:
        assert isinstance(READABLE_MODES, frozenset)
        assert isinstance(WRITABLE_MODES, frozenset)


class TestNormalizeMode:
    """Test rewriting Python handle modes in fopen order."""

    @pytest.mark.parametrize("python_mode, expected", [
        ("rb", "rb"),
        ("rb+", "r+b"),
        ("ab+", "a+b"),
        ("xb+", "x+b"),
        ("wb", "wb"),
        ("+rb", "r+b"),
        ("r", "r"),
    ])
    def test_normalize(self, python_mode: str, expected: str) -> None:
        assert normalize_mode(python_mode) == expected

    @pytest.mark.parametrize("mode", ["", "rw", "bb", "r++", "z"])
    def test_invalid_left_untouched(self, mode: str) -> None:
        assert normalize_mode(mode) == mode


class TestToPythonMode:
    """Test translating fopen modes for open()."""

    @pytest.mark.parametrize("mode, expected", [
        ("r", ("rb", True)),
        ("rt", ("rb", True)),
        ("r+", ("r+b", True)),
        ("w", ("wb", True)),
        ("a+b", ("a+b", True)),
        ("x", ("xb", True)),
        ("c", ("wb", False)),
        ("c+", ("w+b", False)),
    ])
    def test_translation(self, mode: str, expected) -> None:
        assert to_python_mode(mode) == expected

    @pytest.mark.parametrize("mode", ["", "rw", "q", "r+bt", 5])
    def test_invalid_mode(self, mode) -> None:
        with pytest.raises(InvalidArgumentError):
            to_python_mode(mode)
