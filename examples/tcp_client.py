"""
TCP client example using streamer.

This example demonstrates how to open a network stream, send a request
and read the reply line by line.

Usage:
    python tcp_client.py [host:port]
"""

import logging
import sys

from streamer import ConnectFlags, NetworkStream, SocketContext
from streamer.exceptions import StreamerError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def fetch_head(address: str) -> None:
    """Send a HEAD request and log the response headers."""
    context = SocketContext(tcp_nodelay=True)
    flags = ConnectFlags.CONNECT | ConnectFlags.PERSISTENT

    with NetworkStream.create(address, timeout=10, flags=flags, context=context) as stream:
        logger.info(f"Connected {stream.get_name(remote=False)} -> {stream.get_name()}")
        logger.info(f"Stream type: {stream.get_stream_type()}")

        host = address.rsplit("://", 1)[-1].rsplit(":", 1)[0]
        stream.write(f"HEAD / HTTP/1.1\r\nHost: {host}\r\nConnection: close\r\n\r\n".encode())

        while True:
            line = stream.get_line(ending=b"\r\n")
            if not line:
                break
            logger.info(f"< {line.decode('latin-1')}")


def main():
    """Run the example."""
    address = sys.argv[1] if len(sys.argv) > 1 else "tcp://example.com:80"

    try:
        fetch_head(address)
    except OSError as e:
        logger.error(f"Connection failed: {e}")
        sys.exit(1)
    except StreamerError as e:
        logger.error(f"Stream error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
