"""Stream-like access to a TCP connection."""

from __future__ import annotations

import select
import socket
from typing import Union

BufferLike = Union[bytes, bytearray, memoryview]


class SocketStream:
    """Blocking stream over a connected TCP socket.

    ``tell`` reports the total number of bytes sent and received.
    """

    def __init__(self, sock: socket.socket):
        self._socket = sock
        self._closed = False
        self._total_bytes = 0

    @classmethod
    def connect(cls, ip_address: str, port: int, blocking: bool = True) -> "SocketStream":
        """Open a TCP connection to an IPv4 address; OSError if it fails."""
        if not blocking:
            raise ValueError("non-blocking socket streams are not supported")
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            sock.connect((ip_address, port))
        except OSError:
            sock.close()
            raise
        return cls(sock)

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed stream")

    def readable(self) -> bool:
        """True if bytes are waiting to be read right now."""
        if self._closed or self._socket.fileno() == -1:
            return False
        ready, _, _ = select.select([self._socket], [], [], 0)
        if not ready:
            return False
        try:
            return bool(self._socket.recv(1, socket.MSG_PEEK))
        except OSError:
            return False

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def close(self) -> None:
        self._closed = True
        if self._socket.fileno() != -1:
            self._socket.close()

    def read(self, size: int, count: int = 1) -> bytes:
        """Receive once, up to ``size * count`` bytes; may return fewer.

        An empty result means the connection has been closed.
        """
        self._check_open()
        if size < 0 or count < 0:
            raise ValueError("size and count must not be negative")
        if size == 0 or count == 0:
            return b""
        try:
            data = self._socket.recv(size * count)
        except OSError:
            data = b""
        if not data:
            self._closed = True
        self._total_bytes += len(data)
        return data

    def readline(self, limit: int) -> bytes:
        """Read at most ``limit`` bytes, stopping after the first CR or LF.

        EOFError is raised if the connection ends first.
        """
        if limit <= 0:
            raise ValueError("limit must be positive")
        line = bytearray()
        while len(line) < limit:
            byte = self.read(1) if not self._closed else b""
            if not byte:
                raise EOFError("connection closed while reading a line")
            line += byte
            if byte in (b"\r", b"\n"):
                break
        return bytes(line)

    def write(self, data: BufferLike, size: int = 1) -> int:
        """Send the data once; return the number of whole elements sent."""
        self._check_open()
        if size <= 0:
            raise ValueError("size must be positive")
        sent = self._socket.send(bytes(data))
        self._total_bytes += sent
        return sent // size

    def eof(self) -> bool:
        return self._closed

    def tell(self) -> int:
        return self._total_bytes

    def __enter__(self) -> "SocketStream":
        return self

    def __exit__(self, *args) -> None:
        self.close()