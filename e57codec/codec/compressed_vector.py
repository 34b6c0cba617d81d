"""
Streaming encoder and decoder for compressed-vector sections.

A section is the packed rows of one point cloud laid out over checksummed
pages:

    rows      : row 0 | row 1 | ... | row N-1 | zero pad to byte
    row       : field 0 bits | field 1 bits | ... (prototype order)
    bytes     : written through PagedWriter, read through PagedReader

Both directions are forward-only. The writer pushes completed bytes into
the paged stream as soon as each row is packed; the reader pulls a few
pages at a time and never holds the whole section in memory.
"""
from typing import Any, Iterable, Mapping

from e57codec.core.config import settings
from e57codec.core.logging_config import get_logger
from e57codec.errors import EndOfData, SchemaMismatch, TruncatedSection
from e57codec.io.paged import PagedReader, PagedWriter
from e57codec.io.source import FileSource

from .bitpack import BitReader, BitWriter, decode_value, encode_value
from .record import Prototype
from .section import SectionDescriptor

logger = get_logger(__name__)


class CompressedVectorWriter:
    """
    Encode point records into a new section.

    Usage:
        with CompressedVectorWriter(source, prototype, offset=1024) as writer:
            for row in rows:
                writer.add_row(row)
        section = writer.section
    """

    def __init__(
        self,
        source: FileSource,
        prototype: Prototype,
        offset: int = 0,
        page_size: int | None = None,
        strict: bool | None = None,
    ):
        """
        Initialize a section writer.

        Args:
            source: Byte source receiving the pages
            prototype: Field layout of each row
            offset: Physical offset of the section's first page
            page_size: Physical page size (defaults to settings.PAGE_SIZE)
            strict: Reject rows with names outside the prototype
                (defaults to settings.STRICT_FIELDS)
        """
        self.prototype = prototype
        self.strict = settings.STRICT_FIELDS if strict is None else strict
        self.stream = PagedWriter(source, offset=offset, page_size=page_size)
        self.record_count = 0
        self.section: SectionDescriptor | None = None

        self._bits = BitWriter()
        self._fields = [(r.name, r.data_type, r.bit_width) for r in prototype]

    def add_row(self, row: Mapping[str, Any]) -> None:
        """
        Pack one row.

        The whole row is validated before any of its bits are buffered, so a
        rejected row leaves the section unchanged.

        Raises:
            SchemaMismatch: If a prototype field is missing, or an unknown
                field is present in strict mode
            ValueOutOfRange: If a value violates its field's bounds
        """
        if self.section is not None:
            raise ValueError("Section already finished")

        if self.strict:
            unknown = [name for name in row if name not in self.prototype]
            if unknown:
                raise SchemaMismatch(unknown[0], f"Row {self.record_count} has unknown field '{unknown[0]}'")

        packed = []
        for name, data_type, width in self._fields:
            try:
                value = row[name]
            except KeyError:
                raise SchemaMismatch(name, f"Row {self.record_count} is missing field '{name}'") from None
            packed.append((encode_value(data_type, value, name), width))

        for bits, width in packed:
            self._bits.write_bits(bits, width)

        completed = self._bits.take_bytes()
        if completed:
            self.stream.write(completed)
        self.record_count += 1

    def add_rows(self, rows: Iterable[Mapping[str, Any]]) -> int:
        """Pack every row of `rows`; returns the number of rows added."""
        count = 0
        for row in rows:
            self.add_row(row)
            count += 1
        return count

    def finish(self) -> SectionDescriptor:
        """
        Pad the last byte and page and close the stream.

        Returns:
            The descriptor to record in the file metadata
        """
        if self.section is not None:
            return self.section

        tail = self._bits.finish()
        if tail:
            self.stream.write(tail)
        self.stream.close()

        self.section = SectionDescriptor(
            offset=self.stream.offset,
            logical_length=self.stream.logical_length,
            record_count=self.record_count,
        )
        logger.info(
            f"Encoded {self.record_count} rows into {self.section.logical_length} bytes "
            f"at offset {self.section.offset}"
        )
        return self.section

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.finish()
        else:
            # Keep what was already paged out; nothing is rolled back.
            self.stream.close()


def encode_section(
    source: FileSource,
    prototype: Prototype,
    rows: Iterable[Mapping[str, Any]],
    offset: int = 0,
    page_size: int | None = None,
    strict: bool | None = None,
) -> SectionDescriptor:
    """
    Encode `rows` as a section starting at `offset`.

    Returns:
        Descriptor with the section's logical length and row count
    """
    writer = CompressedVectorWriter(source, prototype, offset=offset, page_size=page_size, strict=strict)
    with writer:
        writer.add_rows(rows)
    return writer.section


class CompressedVectorReader:
    """
    Decode the rows of an existing section, one at a time.
    """

    def __init__(
        self,
        source: FileSource,
        section: SectionDescriptor,
        prototype: Prototype,
        page_size: int | None = None,
        read_ahead_pages: int | None = None,
    ):
        """
        Initialize a section reader.

        Args:
            source: Byte source holding the pages
            section: Where the section is and how many rows it holds
            prototype: Field layout of each row
            page_size: Physical page size (defaults to settings.PAGE_SIZE)
            read_ahead_pages: Pages of payload fetched per refill
                (defaults to settings.READ_AHEAD_PAGES)
        """
        self.section = section
        self.prototype = prototype
        self.stream = PagedReader(
            source,
            offset=section.offset,
            logical_length=section.logical_length,
            page_size=page_size,
        )
        if read_ahead_pages is None:
            read_ahead_pages = settings.READ_AHEAD_PAGES
        if read_ahead_pages < 1:
            raise ValueError(f"read_ahead_pages must be >= 1, got {read_ahead_pages}")
        self.chunk_size = self.stream.payload_size * read_ahead_pages
        self.rows_read = 0

        self._position = 0
        self._bits = BitReader(self._fetch)
        self._fields = [(r.name, r.data_type, r.bit_width) for r in prototype]

        logger.debug(
            f"Opened section at offset {section.offset}: {section.record_count} rows, "
            f"{section.logical_length} bytes, {prototype.record_bits} bits per row"
        )

    @property
    def remaining(self) -> int:
        """Rows not yet decoded."""
        return self.section.record_count - self.rows_read

    def _fetch(self) -> bytes:
        remaining = self.stream.logical_length - self._position
        if remaining <= 0:
            return b""
        n = min(self.chunk_size, remaining)
        data = self.stream.read(self._position, n)
        self._position += n
        return data

    def read_row(self) -> dict[str, Any] | None:
        """
        Decode the next row.

        Returns:
            The row as a {field name: value} dict, or None once all declared
            rows have been decoded

        Raises:
            TruncatedSection: If the data ends before the declared row count
            ChecksumMismatch: If a page fails verification
            ValueOutOfRange: If a field decodes above its declared maximum
        """
        if self.rows_read >= self.section.record_count:
            return None

        row: dict[str, Any] = {}
        try:
            for name, data_type, width in self._fields:
                row[name] = decode_value(data_type, self._bits.read_bits(width), name)
        except EndOfData as e:
            raise TruncatedSection(
                f"Section at offset {self.section.offset} ended after "
                f"{self.rows_read} of {self.section.record_count} rows: {e}",
                rows_decoded=self.rows_read,
                rows_expected=self.section.record_count,
            ) from e

        self.rows_read += 1
        if self.rows_read == self.section.record_count:
            self._check_trailing()
        return row

    def _check_trailing(self) -> None:
        leftover = self._bits.available_bits + (self.stream.logical_length - self._position) * 8
        if leftover >= 8:
            logger.warning(
                f"Section at offset {self.section.offset} has {leftover} undecoded bits "
                f"after its last row; ignoring them"
            )
