"""
Paged, checksum-verified byte stream.

E57 stores every binary structure in fixed-size physical pages. Each page is
a payload region followed by a 4-byte CRC-32C of that payload, stored
big-endian. The payload regions of consecutive pages form one logical byte
stream:

    Physical page (page_size bytes)
    -------------------------------
    | payload (page_size - 4) | CRC-32C (4) |

    logical offset L  ->  page  L // payload_size
                          byte  L %  payload_size

The final page of a stream is zero-padded to a full page before its
checksum is computed.
"""

import crc32c

from e57codec.core.config import settings
from e57codec.core.logging_config import get_logger
from e57codec.errors import ChecksumMismatch, StreamExhausted, TruncatedSection

from .source import FileSource

logger = get_logger(__name__)

CHECKSUM_SIZE = 4


def validate_page_size(page_size: int) -> int:
    """Return `page_size` if it can hold a payload and checksum, else raise ValueError."""
    if page_size <= CHECKSUM_SIZE or page_size % 4 != 0:
        raise ValueError(f"Invalid page size {page_size}: must be a multiple of 4 greater than {CHECKSUM_SIZE}")
    return page_size


def page_checksum(payload: bytes) -> int:
    """CRC-32C (Castagnoli) of a page payload."""
    return crc32c.crc32c(payload)


def physical_length(logical_length: int, page_size: int | None = None) -> int:
    """Number of physical bytes occupied by `logical_length` bytes of payload."""
    page_size = validate_page_size(page_size or settings.PAGE_SIZE)
    payload_size = page_size - CHECKSUM_SIZE
    pages = -(-logical_length // payload_size)
    return pages * page_size


class PagedReader:
    """
    Read a logical byte range out of checksummed pages.

    Every page touched by a read is verified before any of its bytes are
    returned. The most recently verified page is kept so sequential reads
    verify each page once.
    """

    def __init__(
        self,
        source: FileSource,
        offset: int = 0,
        logical_length: int | None = None,
        page_size: int | None = None,
    ):
        """
        Initialize a paged reader.

        Args:
            source: Byte source holding the pages
            offset: Physical offset of the first page
            logical_length: Declared payload length; defaults to every whole
                page between `offset` and the end of the source
            page_size: Physical page size (defaults to settings.PAGE_SIZE)
        """
        if offset < 0:
            raise ValueError(f"Invalid offset: {offset}")
        self.source = source
        self.offset = offset
        self.page_size = validate_page_size(page_size or settings.PAGE_SIZE)
        self.payload_size = self.page_size - CHECKSUM_SIZE

        if logical_length is None:
            whole_pages = max(0, source.size() - offset) // self.page_size
            logical_length = whole_pages * self.payload_size
        if logical_length < 0:
            raise ValueError(f"Invalid logical length: {logical_length}")
        self.logical_length = logical_length

        self._cached_index: int | None = None
        self._cached_payload = b""

    @property
    def page_count(self) -> int:
        """Number of pages spanned by the declared logical length."""
        return -(-self.logical_length // self.payload_size)

    def _load_page(self, page_index: int) -> bytes:
        if page_index == self._cached_index:
            return self._cached_payload

        physical = self.offset + page_index * self.page_size
        data = self.source.read_at(physical, self.page_size)
        if len(data) < self.page_size:
            raise TruncatedSection(
                f"Page {page_index} at offset {physical} is truncated: "
                f"got {len(data)} of {self.page_size} bytes"
            )

        payload = data[:self.payload_size]
        expected = int.from_bytes(data[self.payload_size:], "big")
        actual = page_checksum(payload)
        if actual != expected:
            raise ChecksumMismatch(page_index, expected, actual)

        logger.debug(f"Verified page {page_index} at offset {physical}")
        self._cached_index = page_index
        self._cached_payload = payload
        return payload

    def read(self, logical_offset: int, length: int) -> bytes:
        """
        Read `length` logical bytes starting at `logical_offset`.

        Args:
            logical_offset: Offset in the page-boundary-free byte stream
            length: Number of bytes to read

        Returns:
            A fresh bytes object; no page buffer is shared with the caller

        Raises:
            StreamExhausted: If the range ends past the declared length
            TruncatedSection: If the source ends before a needed page does
            ChecksumMismatch: If a touched page fails verification
        """
        if logical_offset < 0 or length < 0:
            raise ValueError(f"Invalid read range: offset={logical_offset}, length={length}")
        end = logical_offset + length
        if end > self.logical_length:
            raise StreamExhausted(
                f"Read of {length} bytes at {logical_offset} exceeds "
                f"declared length {self.logical_length}"
            )

        out = bytearray()
        position = logical_offset
        while position < end:
            page_index, start = divmod(position, self.payload_size)
            payload = self._load_page(page_index)
            take = min(self.payload_size - start, end - position)
            out += payload[start:start + take]
            position += take
        return bytes(out)

    def verify(self) -> int:
        """
        Verify every page spanned by the declared length.

        Returns:
            The number of pages verified

        Raises:
            ChecksumMismatch: On the first failing page
            TruncatedSection: If the source ends early
        """
        for page_index in range(self.page_count):
            self._load_page(page_index)
        return self.page_count


class PagedWriter:
    """
    Append payload bytes as checksummed pages.

    Full pages are written as soon as they fill up. The partially filled last
    page is written, zero-padded, on flush() and rewritten in place by later
    flushes until it is full.

    Usage:
        with PagedWriter(source, offset=1024) as writer:
            writer.write(b"...")
        writer.logical_length
    """

    def __init__(self, source: FileSource, offset: int = 0, page_size: int | None = None):
        if offset < 0:
            raise ValueError(f"Invalid offset: {offset}")
        self.source = source
        self.offset = offset
        self.page_size = validate_page_size(page_size or settings.PAGE_SIZE)
        self.payload_size = self.page_size - CHECKSUM_SIZE

        self.logical_length = 0
        self.closed = False
        self._page_index = 0
        self._buffer = bytearray()

    @property
    def physical_length(self) -> int:
        """Physical bytes the stream occupies once flushed."""
        return physical_length(self.logical_length, self.page_size)

    def _write_page(self, page_index: int, payload: bytes) -> None:
        padded = bytes(payload).ljust(self.payload_size, b"\x00")
        checksum = page_checksum(padded)
        physical = self.offset + page_index * self.page_size
        self.source.write_at(physical, padded + checksum.to_bytes(CHECKSUM_SIZE, "big"))
        logger.debug(f"Wrote page {page_index} at offset {physical} ({len(payload)} payload bytes)")

    def write(self, data: bytes) -> tuple[int, int]:
        """
        Append bytes to the logical stream.

        Returns:
            The (start, end) logical range the bytes occupy

        Raises:
            IoFailure: If a completed page cannot be written
        """
        if self.closed:
            raise ValueError("Write to a closed paged writer")

        start = self.logical_length
        self._buffer += data
        self.logical_length += len(data)
        while len(self._buffer) >= self.payload_size:
            self._write_page(self._page_index, self._buffer[:self.payload_size])
            del self._buffer[:self.payload_size]
            self._page_index += 1
        return start, self.logical_length

    def flush(self) -> None:
        """Write the partial last page (zero-padded) and flush the source."""
        if self._buffer:
            self._write_page(self._page_index, self._buffer)
        self.source.flush()

    def close(self) -> None:
        if self.closed:
            return
        self.flush()
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
