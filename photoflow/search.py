"""Find a byte pattern in a binary stream and read on from there."""

from __future__ import annotations

from typing import BinaryIO

SEARCH_BUFFER_SIZE = 32 * 1024


class SliceReader:
    """A binary reader that serves a prefix first, then the rest of a stream."""

    def __init__(self, reader: BinaryIO, prefix: bytes = b"") -> None:
        self._reader = reader
        self._prefix = bytes(prefix)

    def read(self, size: int | None = -1) -> bytes:
        """Read up to size bytes; a negative size reads everything left."""
        if size is None or size < 0:
            out = self._prefix + (self._reader.read() or b"")
            self._prefix = b""
            return out
        if self._prefix:
            out = self._prefix[:size]
            self._prefix = self._prefix[size:]
            return out
        return self._reader.read(size) or b""

    def read_slice(self, length: int) -> bytes:
        """Read exactly length bytes; raise EOFError when the stream ends first."""
        data = bytearray()
        while len(data) < length:
            chunk = self.read(length - len(data))
            if not chunk:
                raise EOFError(f"expected {length} bytes, got {len(data)}")
            data += chunk
        return bytes(data)


def search_pattern(
    reader: BinaryIO, pattern: bytes, buffer_size: int = SEARCH_BUFFER_SIZE
) -> SliceReader:
    """Return a reader positioned on the first occurrence of pattern.

    The stream is read in chunks of buffer_size bytes. EOFError is raised
    when the pattern is not found before the end of the stream.
    """
    if not pattern:
        raise ValueError("empty search pattern")
    if buffer_size < len(pattern):
        raise ValueError("search buffer smaller than the pattern")
    keep = len(pattern) - 1
    window = b""
    while True:
        chunk = reader.read(buffer_size - len(window))
        if not chunk:
            raise EOFError(f"pattern {pattern!r} not found")
        window += chunk
        index = window.find(pattern)
        if index >= 0:
            return SliceReader(reader, window[index:])
        window = window[len(window) - keep:] if keep else b""