"""
Typed errors raised by the E57 codec.

Every failure in the paged stream, the bit packer and the compressed-vector
codec surfaces as a subclass of E57Error so callers can catch the whole family
or a single kind.
"""
from typing import Any


class E57Error(Exception):
    """Base class for all e57codec errors."""


class IoFailure(E57Error, OSError):
    """The underlying byte source failed to read or write."""


class InvalidFileHeader(E57Error):
    """The file header signature, version or sizes are not acceptable."""


class ChecksumMismatch(E57Error):
    """A page's stored checksum does not match its payload."""

    def __init__(self, page_index: int, expected: int, actual: int):
        self.page_index = page_index
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Checksum mismatch in page {page_index}: "
            f"stored 0x{expected:08x}, computed 0x{actual:08x}"
        )


class EndOfData(E57Error):
    """
    A read went past the available data.

    `truncated` is True when the data ended before its declared length and
    False when the declared length itself was exhausted.
    """

    truncated: bool = False


class StreamExhausted(EndOfData):
    """Normal end of a section's declared logical length."""

    truncated = False


class TruncatedSection(EndOfData):
    """A section holds fewer bytes or rows than declared."""

    truncated = True

    def __init__(
        self,
        message: str,
        rows_decoded: int | None = None,
        rows_expected: int | None = None,
    ):
        self.rows_decoded = rows_decoded
        self.rows_expected = rows_expected
        super().__init__(message)


class ValueOutOfRange(E57Error, ValueError):
    """A value does not fit the bounds declared by its field."""

    def __init__(self, field: str | None, value: Any, message: str):
        self.field = field
        self.value = value
        prefix = f"Field '{field}': " if field is not None else ""
        super().__init__(prefix + message)


class InvalidFieldDescriptor(E57Error, ValueError):
    """A field descriptor has inverted bounds, a bad scale or an unknown type."""


class SchemaMismatch(E57Error, ValueError):
    """A row does not match the prototype it is encoded against."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)
