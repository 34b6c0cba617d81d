"""
Bit-level packing of field values.

Rows are packed into one continuous bit sequence with no alignment between
fields or rows. Within a byte the first bit of the sequence is the most
significant one, and each field's bit run is written most-significant bit
first:

    Integer(min, max)          bits = value - min
    ScaledInteger(min, max,    raw  = floor((value - offset) / scale + 0.5)
                  scale, off)  bits = raw - min
    Float(single|double)       bits = IEEE-754 pattern of the value

Only the end of the whole sequence is padded with zero bits up to a byte.

Single-precision NaNs decode to numpy.float32 scalars so that their payload
bits, including the signaling bit, survive being encoded again.
"""
import math
import numbers
import operator
import struct
from typing import Any, Callable

import numpy as np

from e57codec.errors import InvalidFieldDescriptor, StreamExhausted, ValueOutOfRange

from .record import Float, FloatPrecision, Integer, RecordType, ScaledInteger, check_raw_width


class BitWriter:
    """
    Accumulates bit runs and hands out completed bytes.

    Bits that do not yet form a whole byte stay pending until more bits
    arrive or finish() pads them.
    """

    def __init__(self):
        self._acc = 0
        self._pending = 0
        self._out = bytearray()
        self.bits_written = 0

    @property
    def pending_bits(self) -> int:
        """Bits written but not yet part of a completed byte."""
        return self._pending

    def write_bits(self, value: int, width: int) -> None:
        """
        Append the low `width` bits of `value`, most significant first.

        Raises:
            ValueOutOfRange: If `value` is negative or needs more than `width` bits
        """
        if width == 0:
            if value != 0:
                raise ValueOutOfRange(None, value, f"{value} does not fit in 0 bits")
            return
        if not check_raw_width(value, width):
            raise ValueOutOfRange(None, value, f"{value} does not fit in {width} bits")

        self._acc = (self._acc << width) | value
        self._pending += width
        self.bits_written += width

        if self._pending >= 8:
            nbytes = self._pending // 8
            rest = self._pending - nbytes * 8
            self._out += (self._acc >> rest).to_bytes(nbytes, "big")
            self._acc &= (1 << rest) - 1
            self._pending = rest

    def take_bytes(self) -> bytes:
        """Return and forget the completed bytes."""
        out = bytes(self._out)
        self._out.clear()
        return out

    def finish(self) -> bytes:
        """Pad the pending bits with zeros to a full byte and return all remaining bytes."""
        if self._pending:
            pad = 8 - self._pending
            self._out.append((self._acc << pad) & 0xFF)
            self._acc = 0
            self._pending = 0
        return self.take_bytes()


class BitReader:
    """
    Reads bit runs from bytes pulled on demand.

    The reader keeps one small buffer and an explicit bit offset into it.
    Consumed bytes are dropped whenever more data is fetched, so memory use
    is bounded by the size of the fetched chunks.
    """

    def __init__(self, fetch: Callable[[], bytes] | None = None, data: bytes = b""):
        """
        Initialize a bit reader.

        Args:
            fetch: Callable returning the next chunk of bytes, or b"" at the end
            data: Initial bytes to read from
        """
        self._fetch = fetch
        self._buffer = bytearray(data)
        self._bit_pos = 0
        self._eof = fetch is None
        self.bits_read = 0

    @property
    def available_bits(self) -> int:
        """Bits already buffered and not yet read."""
        return len(self._buffer) * 8 - self._bit_pos

    @property
    def at_end(self) -> bool:
        """True when the fetch callable has reported the end of data."""
        return self._eof

    def _fill(self, width: int) -> None:
        while self.available_bits < width:
            if self._eof:
                raise StreamExhausted(
                    f"Need {width} bits, only {self.available_bits} remain"
                )
            chunk = self._fetch()
            if not chunk:
                self._eof = True
                continue
            consumed = self._bit_pos // 8
            if consumed:
                del self._buffer[:consumed]
                self._bit_pos -= consumed * 8
            self._buffer += chunk

    def read_bits(self, width: int) -> int:
        """
        Read the next `width` bits as an unsigned integer.

        Raises:
            StreamExhausted: If the data ends first
        """
        if width == 0:
            return 0
        self._fill(width)

        start = self._bit_pos // 8
        end = (self._bit_pos + width + 7) // 8
        chunk = int.from_bytes(self._buffer[start:end], "big")
        shift = end * 8 - (self._bit_pos + width)

        self._bit_pos += width
        self.bits_read += width
        return (chunk >> shift) & ((1 << width) - 1)


def _as_integer(value: Any, field: str | None) -> int:
    try:
        return operator.index(value)
    except TypeError:
        pass
    if isinstance(value, numbers.Real) and math.isfinite(value) and float(value).is_integer():
        return int(value)
    raise ValueOutOfRange(field, value, f"expected an integer value, got {value!r}")


def _as_real(value: Any, field: str | None) -> float:
    if isinstance(value, numbers.Real):
        return float(value)
    raise ValueOutOfRange(field, value, f"expected a numeric value, got {value!r}")


def encode_value(data_type: RecordType, value: Any, field: str | None = None) -> int:
    """
    Convert a field value into the unsigned bit pattern that gets packed.

    Args:
        data_type: Descriptor of the field
        value: Value from the point record
        field: Field name used in error messages

    Returns:
        Unsigned integer of exactly `data_type.bit_width` bits

    Raises:
        ValueOutOfRange: If the value violates the field's bounds or type
    """
    match data_type:
        case Integer(minimum=minimum, maximum=maximum):
            number = _as_integer(value, field)
            if not minimum <= number <= maximum:
                raise ValueOutOfRange(field, value, f"{number} is outside [{minimum}, {maximum}]")
            return number - minimum

        case ScaledInteger(minimum=minimum, maximum=maximum, scale=scale, offset=offset):
            number = _as_real(value, field)
            scaled = (number - offset) / scale + 0.5
            if not math.isfinite(scaled):
                raise ValueOutOfRange(field, value, f"{number} cannot be scaled to an integer")
            raw = math.floor(scaled)
            if not minimum <= raw <= maximum:
                raise ValueOutOfRange(
                    field, value,
                    f"{number} scales to {raw}, outside [{minimum}, {maximum}]"
                )
            return raw - minimum

        case Float(precision=FloatPrecision.SINGLE):
            if isinstance(value, np.float32):
                return int(value.view(np.uint32))
            number = _as_real(value, field)
            try:
                packed = struct.pack(">f", number)
            except OverflowError:
                raise ValueOutOfRange(field, value, f"{number} overflows single precision") from None
            return int.from_bytes(packed, "big")

        case Float():
            number = _as_real(value, field)
            return int.from_bytes(struct.pack(">d", number), "big")

        case _:
            raise InvalidFieldDescriptor(f"Unknown field descriptor: {data_type!r}")


def decode_value(data_type: RecordType, bits: int, field: str | None = None) -> int | float:
    """
    Convert a packed bit pattern back into a field value.

    Raises:
        ValueOutOfRange: If the bits decode to an integer above the field's
            maximum, which only happens for corrupt data
    """
    match data_type:
        case Integer(minimum=minimum, maximum=maximum):
            number = minimum + bits
            if number > maximum:
                raise ValueOutOfRange(field, number, f"decoded {number} exceeds maximum {maximum}")
            return number

        case ScaledInteger(minimum=minimum, maximum=maximum, scale=scale, offset=offset):
            raw = minimum + bits
            if raw > maximum:
                raise ValueOutOfRange(field, raw, f"decoded raw {raw} exceeds maximum {maximum}")
            return raw * scale + offset

        case Float(precision=FloatPrecision.SINGLE):
            number = struct.unpack(">f", bits.to_bytes(4, "big"))[0]
            if math.isnan(number):
                # A Python float would quiet signaling NaNs
                return np.uint32(bits).view(np.float32)
            return number

        case Float():
            return struct.unpack(">d", bits.to_bytes(8, "big"))[0]

        case _:
            raise InvalidFieldDescriptor(f"Unknown field descriptor: {data_type!r}")


def pack_field(writer: BitWriter, data_type: RecordType, value: Any, field: str | None = None) -> None:
    """Encode `value` and append it to `writer`."""
    writer.write_bits(encode_value(data_type, value, field), data_type.bit_width)


def unpack_field(reader: BitReader, data_type: RecordType, field: str | None = None) -> int | float:
    """Read one value of `data_type` from `reader`."""
    return decode_value(data_type, reader.read_bits(data_type.bit_width), field)
