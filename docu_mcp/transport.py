"""
MCP Transport layer.

Messages are framed as one JSON document per line (UTF-8) over
stdin/stdout. Any failure of the underlying streams is a TransportError,
which the server treats as fatal.
"""

import sys
from abc import ABC, abstractmethod
from typing import BinaryIO, Optional


class TransportError(Exception):
    """The input or output stream failed."""


class Transport(ABC):
    """Abstract base class for MCP transports."""

    @abstractmethod
    def send(self, message: str) -> None:
        """Send one serialized message."""
        pass

    @abstractmethod
    def receive(self) -> Optional[bytes]:
        """Receive one raw message. Returns None on EOF/close."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the transport."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class StdioTransport(Transport):
    """
    Transport using stdin/stdout for communication.

    Works on the binary buffers so that undecodable input reaches the
    protocol layer as a parse error instead of breaking the stream.
    """

    def __init__(
        self,
        input_stream: Optional[BinaryIO] = None,
        output_stream: Optional[BinaryIO] = None,
    ):
        self.input = input_stream if input_stream is not None else sys.stdin.buffer
        self.output = output_stream if output_stream is not None else sys.stdout.buffer
        self._closed = False

    def send(self, message: str) -> None:
        """Write one line to stdout and flush."""
        if self._closed:
            raise TransportError("Transport is closed")

        try:
            self.output.write(message.encode("utf-8") + b"\n")
            self.output.flush()
        except (OSError, ValueError) as e:
            raise TransportError(f"Failed to write response to stdout: {e}") from e

    def receive(self) -> Optional[bytes]:
        """Read one line from stdin, without the line terminator."""
        if self._closed:
            return None

        try:
            line = self.input.readline()
        except (OSError, ValueError) as e:
            raise TransportError(f"Failed to read from stdin: {e}") from e

        if not line:
            return None  # EOF

        return line.rstrip(b"\r\n")

    def close(self) -> None:
        """Close the transport. The process streams themselves stay open."""
        self._closed = True
