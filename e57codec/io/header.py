"""
E57 file header.

The header occupies the first 48 bytes of the first physical page and is
covered by that page's checksum:

    Offset | Size | Type    | Description
    -------|------|---------|------------
    0      | 8    | char[8] | Signature "ASTM-E57"
    8      | 4    | uint32  | Major version (1)
    12     | 4    | uint32  | Minor version (0)
    16     | 8    | uint64  | File physical length
    24     | 8    | uint64  | XML physical offset
    32     | 8    | uint64  | XML logical length
    40     | 8    | uint64  | Page size

All fields are little-endian.
"""
import struct
from dataclasses import dataclass

from e57codec.core.config import settings
from e57codec.errors import InvalidFileHeader

from .paged import CHECKSUM_SIZE, PagedReader, PagedWriter, validate_page_size
from .source import FileSource

SIGNATURE = b"ASTM-E57"
MAJOR_VERSION = 1
MINOR_VERSION = 0
HEADER_FORMAT = "<8sIIQQQQ"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)  # 48 bytes


@dataclass(frozen=True)
class E57Header:
    """Fixed-size file header locating the XML section."""

    phys_length: int
    phys_xml_offset: int
    xml_length: int
    page_size: int = settings.PAGE_SIZE
    major: int = MAJOR_VERSION
    minor: int = MINOR_VERSION

    def to_bytes(self) -> bytes:
        return struct.pack(
            HEADER_FORMAT,
            SIGNATURE,
            self.major,
            self.minor,
            self.phys_length,
            self.phys_xml_offset,
            self.xml_length,
            self.page_size,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "E57Header":
        """
        Parse a header from its 48-byte representation.

        Raises:
            InvalidFileHeader: If the data is short, the signature is wrong,
                the major version is unsupported or the page size is unusable
        """
        if len(data) < HEADER_SIZE:
            raise InvalidFileHeader(f"File header needs {HEADER_SIZE} bytes, got {len(data)}")

        (signature, major, minor, phys_length, xml_offset,
         xml_length, page_size) = struct.unpack(HEADER_FORMAT, data[:HEADER_SIZE])

        if signature != SIGNATURE:
            raise InvalidFileHeader(f"Invalid signature: {signature!r}")
        if major != MAJOR_VERSION:
            raise InvalidFileHeader(f"Unsupported major version: {major}")
        try:
            validate_page_size(page_size)
        except ValueError as e:
            raise InvalidFileHeader(str(e)) from e
        if page_size < HEADER_SIZE + CHECKSUM_SIZE:
            raise InvalidFileHeader(f"Page size {page_size} cannot hold the {HEADER_SIZE}-byte header")

        return cls(
            phys_length=phys_length,
            phys_xml_offset=xml_offset,
            xml_length=xml_length,
            page_size=page_size,
            major=major,
            minor=minor,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "major": self.major,
            "minor": self.minor,
            "phys_length": self.phys_length,
            "phys_xml_offset": self.phys_xml_offset,
            "xml_length": self.xml_length,
            "page_size": self.page_size,
        }


def read_header(source: FileSource) -> E57Header:
    """
    Read and verify the header at the start of `source`.

    The page size is taken from the raw header bytes, then the first page is
    checksum-verified with it before the header is trusted.

    Raises:
        InvalidFileHeader: If the header is malformed
        ChecksumMismatch: If the first page fails verification
    """
    header = E57Header.from_bytes(source.read_at(0, HEADER_SIZE))
    reader = PagedReader(source, offset=0, logical_length=HEADER_SIZE, page_size=header.page_size)
    return E57Header.from_bytes(reader.read(0, HEADER_SIZE))


def write_header(source: FileSource, header: E57Header) -> None:
    """Write `header` as the start of the first page of `source`."""
    if header.page_size < HEADER_SIZE + CHECKSUM_SIZE:
        raise ValueError(f"Page size {header.page_size} cannot hold the {HEADER_SIZE}-byte header")
    with PagedWriter(source, offset=0, page_size=header.page_size) as writer:
        writer.write(header.to_bytes())
