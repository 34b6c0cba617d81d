"""
e57codec - streaming codec for the binary sections of E57 point-cloud files.

The package reads and writes the page-checksummed, bit-packed point records
of compressed-vector sections. Section locations and prototypes come from
the file's XML metadata, which is handled elsewhere.
"""
from .errors import (
    ChecksumMismatch,
    E57Error,
    EndOfData,
    InvalidFieldDescriptor,
    InvalidFileHeader,
    IoFailure,
    SchemaMismatch,
    StreamExhausted,
    TruncatedSection,
    ValueOutOfRange,
)
from .io import E57Header, FileSource, PagedReader, PagedWriter, read_header, write_header
from .codec import (
    CompressedVectorReader,
    CompressedVectorWriter,
    Float,
    FloatPrecision,
    Integer,
    PointCloudIterator,
    Prototype,
    Record,
    ScaledInteger,
    SectionDescriptor,
    encode_section,
)
from .models import ColorLimits, IntensityLimits, Point

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ChecksumMismatch",
    "E57Error",
    "EndOfData",
    "InvalidFieldDescriptor",
    "InvalidFileHeader",
    "IoFailure",
    "SchemaMismatch",
    "StreamExhausted",
    "TruncatedSection",
    "ValueOutOfRange",
    "E57Header",
    "FileSource",
    "PagedReader",
    "PagedWriter",
    "read_header",
    "write_header",
    "CompressedVectorReader",
    "CompressedVectorWriter",
    "Float",
    "FloatPrecision",
    "Integer",
    "PointCloudIterator",
    "Prototype",
    "Record",
    "ScaledInteger",
    "SectionDescriptor",
    "encode_section",
    "ColorLimits",
    "IntensityLimits",
    "Point",
]
