"""
Field descriptors and prototypes.

A prototype is the ordered list of named fields stored for each point. Each
field is described by one of three descriptor variants:

    Integer(minimum, maximum)
    ScaledInteger(minimum, maximum, scale, offset)
    Float(precision)

Integer-like fields occupy the minimal number of bits able to hold
`maximum - minimum + 1` distinct values; float fields hold a raw 32- or
64-bit IEEE-754 pattern.
"""
import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping, Union

import numpy as np

from e57codec.errors import InvalidFieldDescriptor, SchemaMismatch

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class FloatPrecision(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"

    @property
    def bits(self) -> int:
        return 32 if self is FloatPrecision.SINGLE else 64


def _check_bounds(kind: str, minimum: Any, maximum: Any) -> tuple[int, int]:
    if isinstance(minimum, bool) or not isinstance(minimum, numbers.Integral):
        raise InvalidFieldDescriptor(f"{kind} minimum must be an integer, got {minimum!r}")
    if isinstance(maximum, bool) or not isinstance(maximum, numbers.Integral):
        raise InvalidFieldDescriptor(f"{kind} maximum must be an integer, got {maximum!r}")
    minimum, maximum = int(minimum), int(maximum)
    if minimum > maximum:
        raise InvalidFieldDescriptor(f"{kind} minimum {minimum} is greater than maximum {maximum}")
    if minimum < INT64_MIN or maximum > INT64_MAX:
        raise InvalidFieldDescriptor(f"{kind} bounds [{minimum}, {maximum}] exceed the 64-bit integer range")
    return minimum, maximum


@dataclass(frozen=True)
class Integer:
    """Integer in the inclusive range [minimum, maximum]."""

    minimum: int = INT64_MIN
    maximum: int = INT64_MAX

    def __post_init__(self):
        minimum, maximum = _check_bounds("Integer", self.minimum, self.maximum)
        object.__setattr__(self, "minimum", minimum)
        object.__setattr__(self, "maximum", maximum)

    @property
    def bit_width(self) -> int:
        return (self.maximum - self.minimum).bit_length()


@dataclass(frozen=True)
class ScaledInteger:
    """
    Integer stored in [minimum, maximum] representing `raw * scale + offset`.
    """

    minimum: int = INT64_MIN
    maximum: int = INT64_MAX
    scale: float = 1.0
    offset: float = 0.0

    def __post_init__(self):
        minimum, maximum = _check_bounds("ScaledInteger", self.minimum, self.maximum)
        object.__setattr__(self, "minimum", minimum)
        object.__setattr__(self, "maximum", maximum)

        if not isinstance(self.scale, numbers.Real) or not math.isfinite(self.scale) or self.scale <= 0:
            raise InvalidFieldDescriptor(f"ScaledInteger scale must be a finite number > 0, got {self.scale!r}")
        if not isinstance(self.offset, numbers.Real) or not math.isfinite(self.offset):
            raise InvalidFieldDescriptor(f"ScaledInteger offset must be a finite number, got {self.offset!r}")
        object.__setattr__(self, "scale", float(self.scale))
        object.__setattr__(self, "offset", float(self.offset))

    @property
    def bit_width(self) -> int:
        return (self.maximum - self.minimum).bit_length()


@dataclass(frozen=True)
class Float:
    """IEEE-754 floating point value of single or double precision."""

    precision: FloatPrecision = FloatPrecision.DOUBLE

    def __post_init__(self):
        try:
            object.__setattr__(self, "precision", FloatPrecision(self.precision))
        except ValueError:
            raise InvalidFieldDescriptor(f"Unknown float precision: {self.precision!r}") from None

    @property
    def bit_width(self) -> int:
        return self.precision.bits


RecordType = Union[Integer, ScaledInteger, Float]


def bit_width(data_type: RecordType) -> int:
    """Number of bits a value of `data_type` occupies in a packed row."""
    match data_type:
        case Integer() | ScaledInteger() | Float():
            return data_type.bit_width
        case _:
            raise InvalidFieldDescriptor(f"Unknown field descriptor: {data_type!r}")


def check_raw_width(raw: int, width: int) -> bool:
    """True if the unsigned integer `raw` fits in `width` bits."""
    return 0 <= raw < (1 << width)


def record_type_from_schema(schema: Mapping[str, Any]) -> RecordType:
    """
    Build a descriptor from its schema representation.

    The mapping uses the E57 attribute names: `type` ("Integer",
    "ScaledInteger" or "Float") plus `minimum`, `maximum`, `scale`,
    `offset` and `precision` as applicable. Missing bounds default to the
    full 64-bit range, `scale` to 1, `offset` to 0 and `precision` to double.

    Raises:
        InvalidFieldDescriptor: On unknown types or invalid attributes
    """
    kind = schema.get("type")
    try:
        if kind == "Integer":
            return Integer(
                minimum=schema.get("minimum", INT64_MIN),
                maximum=schema.get("maximum", INT64_MAX),
            )
        if kind == "ScaledInteger":
            return ScaledInteger(
                minimum=schema.get("minimum", INT64_MIN),
                maximum=schema.get("maximum", INT64_MAX),
                scale=schema.get("scale", 1.0),
                offset=schema.get("offset", 0.0),
            )
        if kind == "Float":
            return Float(precision=schema.get("precision", FloatPrecision.DOUBLE.value))
    except TypeError as e:
        raise InvalidFieldDescriptor(f"Malformed {kind} descriptor: {e}") from e
    raise InvalidFieldDescriptor(f"Unsupported field type: {kind!r}")


def record_type_to_schema(data_type: RecordType) -> dict[str, Any]:
    """Inverse of record_type_from_schema."""
    match data_type:
        case Integer(minimum=minimum, maximum=maximum):
            return {"type": "Integer", "minimum": minimum, "maximum": maximum}
        case ScaledInteger(minimum=minimum, maximum=maximum, scale=scale, offset=offset):
            return {
                "type": "ScaledInteger",
                "minimum": minimum,
                "maximum": maximum,
                "scale": scale,
                "offset": offset,
            }
        case Float(precision=precision):
            return {"type": "Float", "precision": precision.value}
        case _:
            raise InvalidFieldDescriptor(f"Unknown field descriptor: {data_type!r}")


def _numpy_type(data_type: RecordType) -> str:
    match data_type:
        case Integer():
            return "<i8"
        case ScaledInteger():
            return "<f8"
        case Float(precision=FloatPrecision.SINGLE):
            return "<f4"
        case Float():
            return "<f8"
        case _:
            raise InvalidFieldDescriptor(f"Unknown field descriptor: {data_type!r}")


@dataclass(frozen=True)
class Record:
    """A named field of the prototype."""

    name: str
    data_type: RecordType

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise InvalidFieldDescriptor(f"Field name must be a non-empty string, got {self.name!r}")
        if not isinstance(self.data_type, (Integer, ScaledInteger, Float)):
            raise InvalidFieldDescriptor(f"Field '{self.name}' has unknown descriptor {self.data_type!r}")

    @property
    def bit_width(self) -> int:
        return bit_width(self.data_type)


class Prototype:
    """
    Ordered, uniquely named set of fields that defines a packed row.

    Usage:
        prototype = Prototype([
            ("cartesianX", Float()),
            ("intensity", Integer(0, 255)),
        ])
    """

    def __init__(self, records: Iterable[Record | tuple[str, RecordType]]):
        self.records: tuple[Record, ...] = tuple(
            r if isinstance(r, Record) else Record(*r) for r in records
        )
        self._index: dict[str, int] = {}
        for i, record in enumerate(self.records):
            if record.name in self._index:
                raise SchemaMismatch(record.name, f"Duplicate field name in prototype: '{record.name}'")
            self._index[record.name] = i

    @classmethod
    def from_schema(cls, schema: Iterable[Mapping[str, Any]]) -> "Prototype":
        """Build a prototype from a list of `{"name": ..., "type": ..., ...}` mappings."""
        records = []
        for entry in schema:
            name = entry.get("name")
            records.append(Record(name, record_type_from_schema(entry)))
        return cls(records)

    def to_schema(self) -> list[dict[str, Any]]:
        return [{"name": r.name, **record_type_to_schema(r.data_type)} for r in self.records]

    @property
    def names(self) -> list[str]:
        return [r.name for r in self.records]

    @property
    def record_bits(self) -> int:
        """Bits occupied by one packed row."""
        return sum(r.bit_width for r in self.records)

    def numpy_dtype(self) -> np.dtype:
        """Structured dtype with one column per field, in prototype order."""
        return np.dtype([(r.name, _numpy_type(r.data_type)) for r in self.records])

    def get(self, name: str) -> Record | None:
        i = self._index.get(name)
        return None if i is None else self.records[i]

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __getitem__(self, i: int) -> Record:
        return self.records[i]

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Prototype):
            return NotImplemented
        return self.records == other.records

    def __repr__(self) -> str:
        return f"Prototype({list(self.records)!r})"
