"""Stream-like access to in-memory byte buffers."""

from __future__ import annotations

import io
from typing import Optional, Union

BufferLike = Union[bytes, bytearray, memoryview]


class MemoryStream:
    """Stream over a memory buffer.

    Without a buffer the stream owns a growable buffer that is extended on
    writes past its end.  With a buffer the stream has a fixed size; writes
    go straight into the given buffer when it is writable.
    """

    def __init__(self, buffer: Optional[BufferLike] = None, writable: Optional[bool] = None):
        self._cursor = 0
        if buffer is None:
            self._growable = True
            self._writable = True
            self._data: Union[bytearray, memoryview] = bytearray()
            return

        view = memoryview(buffer).cast("B")
        if writable is None:
            writable = not view.readonly
        elif writable and view.readonly:
            raise ValueError("cannot open a read-only buffer for writing")
        self._growable = False
        self._writable = writable
        self._data = view

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return self._writable

    def seekable(self) -> bool:
        return True

    def close(self) -> None:
        """Drop the buffer; the stream becomes empty."""
        self._cursor = 0
        if self._growable:
            self._data = bytearray()
        else:
            self._data = memoryview(b"")
            self._writable = False

    def read(self, size: int, count: int = 1) -> bytes:
        """Read up to ``count`` whole elements of ``size`` bytes each."""
        if size < 0 or count < 0:
            raise ValueError("size and count must not be negative")
        if size == 0:
            return b""
        remaining = max(0, len(self._data) - self._cursor)
        elements = min(remaining, size * count) // size
        nbytes = elements * size
        chunk = bytes(self._data[self._cursor:self._cursor + nbytes])
        self._cursor += nbytes
        return chunk

    def readline(self, limit: int) -> bytes:
        """Read at most ``limit`` bytes, stopping after the first CR or LF."""
        if limit <= 0:
            raise ValueError("limit must be positive")
        end = min(len(self._data), self._cursor + limit)
        segment = bytes(self._data[self._cursor:end])
        for index, byte in enumerate(segment):
            if byte in (0x0D, 0x0A):
                segment = segment[:index + 1]
                break
        self._cursor += len(segment)
        return segment

    def write(self, data: BufferLike, size: int = 1) -> int:
        """Write whole elements of ``size`` bytes; return how many were written."""
        if size <= 0:
            raise ValueError("size must be positive")
        if not self._writable:
            raise io.UnsupportedOperation("stream is not writable")
        payload = bytes(data)
        total = (len(payload) // size) * size
        if self._growable:
            nbytes = total
        else:
            nbytes = min(max(0, len(self._data) - self._cursor), total)
        if nbytes == 0:
            return 0
        elements = nbytes // size
        if self._growable and self._cursor + nbytes > len(self._data):
            self._data.extend(bytes(self._cursor + nbytes - len(self._data)))
        nbytes = elements * size
        self._data[self._cursor:self._cursor + nbytes] = payload[:nbytes]
        self._cursor += nbytes
        return elements

    def eof(self) -> bool:
        return self._cursor >= len(self._data)

    def tell(self) -> int:
        return self._cursor

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move the cursor; positions outside the buffer raise ValueError."""
        if whence == io.SEEK_SET:
            base = 0
        elif whence == io.SEEK_CUR:
            base = self._cursor
        elif whence == io.SEEK_END:
            base = len(self._data)
        else:
            raise ValueError(f"invalid whence: {whence}")
        position = base + offset
        if not 0 <= position <= len(self._data):
            raise ValueError(f"position {position} is outside the stream")
        self._cursor = position
        return position

    def rewind(self) -> None:
        self._cursor = 0

    def getvalue(self) -> bytes:
        """Return the whole underlying buffer."""
        return bytes(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __enter__(self) -> "MemoryStream":
        return self

    def __exit__(self, *args) -> None:
        self.close()