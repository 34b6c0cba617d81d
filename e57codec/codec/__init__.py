"""
Point record codec: field descriptors, bit packing and section streaming.
"""
from .record import (
    Float,
    FloatPrecision,
    Integer,
    Prototype,
    Record,
    RecordType,
    ScaledInteger,
    bit_width,
    record_type_from_schema,
    record_type_to_schema,
)
from .bitpack import BitReader, BitWriter, decode_value, encode_value, pack_field, unpack_field
from .section import SectionDescriptor
from .compressed_vector import CompressedVectorReader, CompressedVectorWriter, encode_section
from .iterator import PointCloudIterator, records_to_array, rows_from_array

__all__ = [
    "Float",
    "FloatPrecision",
    "Integer",
    "Prototype",
    "Record",
    "RecordType",
    "ScaledInteger",
    "bit_width",
    "record_type_from_schema",
    "record_type_to_schema",
    "BitReader",
    "BitWriter",
    "decode_value",
    "encode_value",
    "pack_field",
    "unpack_field",
    "SectionDescriptor",
    "CompressedVectorReader",
    "CompressedVectorWriter",
    "encode_section",
    "PointCloudIterator",
    "records_to_array",
    "rows_from_array",
]
