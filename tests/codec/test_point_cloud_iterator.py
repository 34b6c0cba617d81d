"""
Unit tests for PointCloudIterator and the numpy batch helpers.
"""
import operator

import numpy as np
import pytest

from e57codec.codec import (
    Integer,
    PointCloudIterator,
    Prototype,
    ScaledInteger,
    SectionDescriptor,
    encode_section,
    records_to_array,
    rows_from_array,
)
from e57codec.errors import ChecksumMismatch, TruncatedSection
from e57codec.io import FileSource


@pytest.fixture
def counter_section():
    """Thirty one-byte rows spread over three 16-byte pages."""
    source = FileSource.in_memory()
    prototype = Prototype([("i", Integer(0, 255))])
    section = encode_section(source, prototype, [{"i": n} for n in range(30)], page_size=16)
    return source, section, prototype


class TestPointCloudIterator:
    """Tests for iteration semantics"""

    def test_yields_declared_row_count(self, memory_source, xyz_intensity_prototype, xyz_intensity_rows):
        section = encode_section(memory_source, xyz_intensity_prototype, xyz_intensity_rows)
        points = PointCloudIterator(memory_source, section, xyz_intensity_prototype)

        assert list(points) == xyz_intensity_rows
        assert points.rows_read == 3

    def test_exhaustion_is_not_an_error(self, counter_section):
        """Test that pulling past the end keeps returning nothing"""
        source, section, prototype = counter_section
        points = PointCloudIterator(source, section, prototype, page_size=16)
        rows = list(points)

        assert len(rows) == section.record_count
        with pytest.raises(StopIteration):
            next(points)
        assert next(points, None) is None

    def test_not_restartable(self, counter_section):
        """Test that a second pass needs a new iterator"""
        source, section, prototype = counter_section
        points = PointCloudIterator(source, section, prototype, page_size=16)
        assert len(list(points)) == 30
        assert list(points) == []

        again = PointCloudIterator(source, section, prototype, page_size=16)
        assert [r["i"] for r in again] == list(range(30))

    def test_length_hint(self, counter_section):
        source, section, prototype = counter_section
        points = PointCloudIterator(source, section, prototype, page_size=16)
        assert operator.length_hint(points) == 30
        next(points)
        assert operator.length_hint(points) == 29
        list(points)
        assert operator.length_hint(points) == 0

    def test_error_terminates_sequence(self, counter_section):
        """Test that a corrupt page ends the sequence after the error"""
        source, section, prototype = counter_section
        data = bytearray(source.getvalue())
        data[16] ^= 0xFF
        points = PointCloudIterator(
            FileSource.in_memory(bytes(data)), section, prototype, page_size=16, read_ahead_pages=1
        )

        rows = []
        with pytest.raises(ChecksumMismatch):
            for row in points:
                rows.append(row)

        assert [r["i"] for r in rows] == list(range(12))
        assert list(points) == []

    def test_truncation_terminates_sequence(self, counter_section):
        source, section, prototype = counter_section
        declared = SectionDescriptor(section.offset, section.logical_length, record_count=31)
        points = PointCloudIterator(source, declared, prototype, page_size=16)

        with pytest.raises(TruncatedSection):
            list(points)
        assert points.rows_read == 30
        assert next(points, None) is None

    def test_stop_early(self, counter_section):
        """Test that abandoning an iterator leaves the source usable"""
        source, section, prototype = counter_section
        points = PointCloudIterator(source, section, prototype, page_size=16)
        next(points)
        del points

        assert len(list(PointCloudIterator(source, section, prototype, page_size=16))) == 30


class TestBatches:
    """Tests for numpy batch access"""

    def test_iter_batches(self, counter_section):
        source, section, prototype = counter_section
        points = PointCloudIterator(source, section, prototype, page_size=16)
        batches = list(points.iter_batches(12))

        assert [len(b) for b in batches] == [12, 12, 6]
        assert batches[0].dtype == prototype.numpy_dtype()
        np.testing.assert_array_equal(np.concatenate(batches)["i"], np.arange(30))

    def test_invalid_batch_size(self, counter_section):
        source, section, prototype = counter_section
        points = PointCloudIterator(source, section, prototype, page_size=16)
        with pytest.raises(ValueError):
            next(points.iter_batches(0))

    def test_to_array_after_partial_read(self, counter_section):
        source, section, prototype = counter_section
        points = PointCloudIterator(source, section, prototype, page_size=16)
        next(points)
        array = points.to_array()
        np.testing.assert_array_equal(array["i"], np.arange(1, 30))

    def test_records_to_array_empty(self):
        prototype = Prototype([("i", Integer(0, 3))])
        array = records_to_array([], prototype)
        assert array.shape == (0,)
        assert array.dtype.names == ("i",)

    def test_rows_from_array_roundtrip(self, memory_source):
        """Test encoding straight from a structured array"""
        prototype = Prototype([("x", ScaledInteger(-1000, 1000, scale=0.01)), ("i", Integer(0, 15))])
        array = np.zeros(5, dtype=prototype.numpy_dtype())
        array["x"] = [-1.5, 0.0, 2.25, 9.99, -10.0]
        array["i"] = [0, 3, 7, 15, 1]

        rows = list(rows_from_array(array))
        assert rows[2] == {"x": 2.25, "i": 7}
        assert type(rows[2]["i"]) is int

        section = encode_section(memory_source, prototype, rows)
        decoded = PointCloudIterator(memory_source, section, prototype).to_array()
        np.testing.assert_array_almost_equal(decoded["x"], array["x"])
        np.testing.assert_array_equal(decoded["i"], array["i"])

    def test_rows_from_plain_array(self):
        with pytest.raises(ValueError):
            list(rows_from_array(np.arange(3)))
