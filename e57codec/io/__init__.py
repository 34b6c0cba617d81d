"""
Byte-level I/O: raw sources, checksummed pages and the file header.
"""
from .source import FileSource
from .paged import CHECKSUM_SIZE, PagedReader, PagedWriter, page_checksum, physical_length
from .header import E57Header, read_header, write_header

__all__ = [
    "FileSource",
    "CHECKSUM_SIZE",
    "PagedReader",
    "PagedWriter",
    "page_checksum",
    "physical_length",
    "E57Header",
    "read_header",
    "write_header",
]
