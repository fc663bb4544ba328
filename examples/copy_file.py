"""
File copy example using streamer.

This example demonstrates how to open file streams, read them line by
line and pipe one stream into another.
"""

import logging
import sys
import tempfile
from pathlib import Path

from streamer import FileStream
from streamer.exceptions import StreamerError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def write_sample(path: Path) -> None:
    """Write a small CRLF-delimited file."""
    with FileStream.create(path, "w") as stream:
        for number in range(1, 4):
            stream.write(f"line {number}\r\n".encode())
    logger.info(f"Wrote {path}")


def read_lines(path: Path) -> None:
    """Read a file back one line at a time."""
    with FileStream.create(path, "r") as stream:
        while not stream.is_eof():
            line = stream.get_line(ending=b"\r\n")
            logger.info(f"Read line: {line!r}")


def copy(source: Path, target: Path) -> None:
    """Copy a file by piping one stream into another."""
    with FileStream.create(source, "r") as reader, FileStream.create(target, "w") as writer:
        copied = reader.pipe(writer)
    logger.info(f"Copied {copied} bytes to {target}")


def spool_in_memory() -> None:
    """Use the memory:// wrapper as a scratch buffer."""
    with FileStream.create("memory://", "w+") as stream:
        stream.write(b"scratch data")
        stream.rewind()
        logger.info(f"Memory stream holds {stream.get_content()!r}")
        logger.info(f"Metadata: {stream.get_metadata()}")


def main():
    """Run all examples."""
    with tempfile.TemporaryDirectory() as directory:
        source = Path(directory) / "source.txt"
        target = Path(directory) / "target.txt"

        try:
            write_sample(source)
            read_lines(source)
            copy(source, target)
            spool_in_memory()
        except StreamerError as e:
            logger.error(f"Stream error: {e}")
            sys.exit(1)


if __name__ == "__main__":
    main()
