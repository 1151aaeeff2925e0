"""Byte-level framing for the two Hyprland sockets.

Event socket:
- The server pushes one event per line, terminated by ``\\n``.
- Lines are framed out of a fixed-size buffer that is refilled by partial
  reads and compacted when its tail runs out of room.

Request socket:
- Send: the whole request in one prepared buffer, NUL terminated. Hyprland
  does not cope with fragmented requests, so the buffer is built first and
  then written until every byte is accepted.
- Receive: read until the peer closes the connection.
"""

from __future__ import annotations

import socket

# Field-agreed ceiling on a single event line
DEFAULT_BUFFER_SIZE = 4 * 1024

# Initial size of the response buffer; it doubles whenever it fills up
READ_CHUNK_SIZE = 1024

LINE_DELIMITER = b"\n"


class HyprlandTransportError(Exception):
    """Raised when a socket connect, read or write fails."""

    pass


class EventStreamClosedError(HyprlandTransportError):
    """Raised when the event socket peer closes the connection."""

    def __init__(self) -> None:
        super().__init__("Hyprland closed the event socket")


class BufferFullError(Exception):
    """Raised when a single line does not fit in the framing buffer."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        super().__init__(
            f"Event line exceeds the {capacity} byte buffer. "
            "Open the event socket with a larger buffer_size."
        )


class LineFramer:
    """Turns a raw byte stream into newline-delimited lines.

    The buffer holds unconsumed data in ``[start, end)``. Lines returned by
    read_line() are copies, so they stay valid after the buffer moves on.
    """

    def __init__(self, sock: socket.socket, capacity: int = DEFAULT_BUFFER_SIZE) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.sock = sock
        self._buffer = bytearray(capacity)
        self._view = memoryview(self._buffer)
        self.start = 0
        self.end = 0

    @property
    def capacity(self) -> int:
        return len(self._buffer)

    @property
    def pending(self) -> bytes:
        """Unconsumed bytes currently held in the buffer."""
        return bytes(self._view[self.start:self.end])

    def read_from_socket(self) -> int:
        """Append one read's worth of data at the tail of the buffer.

        Returns:
            Number of bytes read.

        Raises:
            EventStreamClosedError: If the peer closed the connection.
            HyprlandTransportError: If the read fails.
        """
        try:
            count = self.sock.recv_into(self._view[self.end:])
        except OSError as e:
            raise HyprlandTransportError(f"Event socket read failed: {e}") from e
        if count == 0:
            raise EventStreamClosedError()
        self.end += count
        return count

    def compact(self) -> None:
        """Move unconsumed data to the start of the buffer."""
        length = self.end - self.start
        if self.start:
            self._buffer[:length] = self._buffer[self.start:self.end]
        self.start = 0
        self.end = length

    def read_line(self) -> bytes:
        """Return the next line without its delimiter, without consuming it.

        Consecutive calls return the same line until consume_line() is called.

        Raises:
            BufferFullError: If the buffer fills up without a delimiter.
            EventStreamClosedError: If the peer closed the connection.
        """
        while True:
            index = self._buffer.find(LINE_DELIMITER, self.start, self.end)
            if index != -1:
                return bytes(self._view[self.start:index])
            if self.end == self.capacity:
                self.compact()
            if self.end == self.capacity:
                raise BufferFullError(self.capacity)
            self.read_from_socket()

    def consume_line(self) -> bytes:
        """Return the next line and advance past it and its delimiter."""
        line = self.read_line()
        self.start += len(line) + len(LINE_DELIMITER)
        return line


def encode_request(request: str) -> bytes:
    """Build the complete NUL-terminated request buffer."""
    return request.encode("utf-8") + b"\x00"


def send_all(sock: socket.socket, data: bytes) -> int:
    """Write data until the peer has accepted every byte.

    A short write is not an error; the loop resumes where the previous
    call stopped.

    Raises:
        HyprlandTransportError: If a write fails.
    """
    view = memoryview(data)
    sent = 0
    while sent < len(data):
        try:
            sent += sock.send(view[sent:])
        except OSError as e:
            raise HyprlandTransportError(f"Request socket write failed: {e}") from e
    return sent


def recv_until_closed(sock: socket.socket, initial_size: int = READ_CHUNK_SIZE) -> bytes:
    """Read from socket until the peer closes the connection.

    The buffer doubles whenever it fills up.

    Raises:
        HyprlandTransportError: If a read fails.
    """
    buffer = bytearray(initial_size)
    total = 0
    while True:
        if total == len(buffer):
            buffer.extend(bytes(len(buffer)))
        try:
            count = sock.recv_into(memoryview(buffer)[total:])
        except OSError as e:
            raise HyprlandTransportError(f"Request socket read failed: {e}") from e
        if count == 0:
            break
        total += count
    return bytes(buffer[:total])
