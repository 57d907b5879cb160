"""Hashing byte source and line buffer used by the message parser."""

import hashlib
from typing import BinaryIO, Optional

MIN_BUFFER_SIZE = 16
MAX_BUFFER_SIZE = 4096
MAX_LINE_SIZE = 4096
DISCARD_CHUNK_SIZE = 64 * 1024


class LineTooLong(Exception):
    """Raised when a line does not fit in the line buffer."""

    pass


class HashingReader:
    """
    Byte source wrapper that counts and hashes every byte it delivers.

    Every read returns the source's bytes unchanged, advances `nread` and
    feeds the same bytes into a running SHA-256 digest, no matter which
    field the bytes end up belonging to.
    """

    def __init__(self, source: BinaryIO):
        self._source = source
        self._hash = hashlib.sha256()
        self.nread = 0

    def read(self, size: int) -> bytes:
        data = self._source.read(size)
        if data:
            self.nread += len(data)
            self._hash.update(data)
        return data or b""

    def digest(self) -> bytes:
        """SHA-256 of everything read so far."""
        return self._hash.digest()

    def content_digest(self) -> bytes:
        """First 160 bits of the digest."""
        return self.digest()[:20]


class LineReader:
    """
    Line buffer on top of a HashingReader.

    `buffer_size` is how many bytes one read pulls from the source;
    `max_line_size` is the longest line accepted, terminator included.
    A line may span several reads.

    Bytes pulled into the buffer have already been counted by the hashing
    reader, so the stream offset of the next byte handed to the caller is
    `source.nread - buffered` (see tell()).
    """

    def __init__(
        self,
        source: HashingReader,
        buffer_size: int = MAX_BUFFER_SIZE,
        max_line_size: int = MAX_LINE_SIZE,
    ):
        self._source = source
        self._size = max(buffer_size, MIN_BUFFER_SIZE)
        self._max_line = max(max_line_size, MIN_BUFFER_SIZE)
        self._buf = b""
        self._pos = 0
        self._eof = False

    @property
    def buffer_size(self) -> int:
        return self._size

    @property
    def max_line_size(self) -> int:
        return self._max_line

    @property
    def buffered(self) -> int:
        """Bytes held in the buffer that the caller has not received yet."""
        return len(self._buf) - self._pos

    def tell(self) -> int:
        """Stream offset of the next byte the caller will receive."""
        return self._source.nread - self.buffered

    def _fill(self) -> bool:
        if self._eof:
            return False
        if self._pos:
            self._buf = self._buf[self._pos:]
            self._pos = 0
        chunk = self._source.read(min(self._size, self._max_line - len(self._buf)))
        if not chunk:
            self._eof = True
            return False
        self._buf += chunk
        return True

    def readline(self) -> Optional[bytes]:
        """
        Read one line without its terminator.

        Returns:
            Line bytes (a trailing "\\r" is removed too), or None at end of stream

        Raises:
            LineTooLong: If max_line_size bytes arrive without a newline
        """
        scanned = 0
        while True:
            i = self._buf.find(b"\n", self._pos + scanned)
            if i != -1:
                line = self._buf[self._pos:i]
                self._pos = i + 1
                break
            if self.buffered >= self._max_line:
                raise LineTooLong(f"line exceeds {self._max_line} bytes")
            # _fill() compacts the buffer, so remember the searched span relative to _pos
            scanned = self.buffered
            if not self._fill():
                if not self.buffered:
                    return None
                line = self._buf[self._pos:]
                self._pos = len(self._buf)
                break
        if line.endswith(b"\r"):
            line = line[:-1]
        return line

    def read_exact(self, size: int) -> bytes:
        """
        Read up to `size` bytes; fewer are returned only at end of stream.
        """
        taken = self._take(size)
        parts = [taken]
        remaining = size - len(taken)
        while remaining > 0 and not self._eof:
            chunk = self._source.read(remaining)
            if not chunk:
                self._eof = True
                break
            parts.append(chunk)
            remaining -= len(chunk)
        return b"".join(parts)

    def discard(self, size: int) -> int:
        """
        Skip up to `size` bytes without keeping them.

        The skipped bytes still pass through the hashing reader.

        Returns:
            Number of bytes actually skipped
        """
        skipped = len(self._take(size))
        while skipped < size and not self._eof:
            chunk = self._source.read(min(size - skipped, DISCARD_CHUNK_SIZE))
            if not chunk:
                self._eof = True
                break
            skipped += len(chunk)
        return skipped

    def _take(self, size: int) -> bytes:
        end = min(self._pos + size, len(self._buf))
        data = self._buf[self._pos:end]
        self._pos = end
        return data


def buffer_size_for(approximate_size: Optional[int]) -> int:
    """
    Read size of the line buffer for a source of roughly `approximate_size`
    bytes. It does not limit line length (see MAX_LINE_SIZE).

    One extra byte leaves room for the final read at end of stream. The
    result is rounded down to a power of two and kept within
    MIN_BUFFER_SIZE..MAX_BUFFER_SIZE.

    Examples:
        >>> buffer_size_for(100)
        64
        >>> buffer_size_for(None)
        4096
    """
    if approximate_size is None or approximate_size < 0:
        return MAX_BUFFER_SIZE
    size = min(approximate_size + 1, MAX_BUFFER_SIZE)
    size = 1 << (size.bit_length() - 1) if size > 1 else 1
    return max(size, MIN_BUFFER_SIZE)
