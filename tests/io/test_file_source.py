"""
Unit tests for FileSource - positioned byte access over files and buffers.
"""
import io

import pytest

from e57codec.errors import IoFailure
from e57codec.io import FileSource


class TestInMemorySource:
    """Tests for sources backed by a BytesIO buffer"""

    def test_read_at(self):
        """Test reading a byte range"""
        source = FileSource.in_memory(b"0123456789")
        assert source.read_at(2, 3) == b"234"

    def test_read_past_end_returns_short(self):
        """Test that reading past EOF returns fewer bytes instead of failing"""
        source = FileSource.in_memory(b"abc")
        assert source.read_at(1, 10) == b"bc"
        assert source.read_at(10, 5) == b""

    def test_write_at_extends_and_overwrites(self):
        """Test positioned writes"""
        source = FileSource.in_memory()
        source.write_at(0, b"hello")
        source.write_at(1, b"E")
        source.write_at(8, b"!")
        data = source.getvalue()
        assert data[:5] == b"hEllo"
        assert data[8:] == b"!"
        assert source.size() == 9

    def test_negative_range_rejected(self):
        """Test that negative offsets raise ValueError"""
        source = FileSource.in_memory(b"abc")
        with pytest.raises(ValueError):
            source.read_at(-1, 2)
        with pytest.raises(ValueError):
            source.write_at(-1, b"x")

    def test_close_does_not_close_borrowed_file(self):
        """Test that a borrowed file object stays open"""
        buf = io.BytesIO(b"abc")
        source = FileSource(buf)
        source.close()
        assert source.closed
        assert not buf.closed

    def test_use_after_close_fails(self):
        """Test that a closed source raises IoFailure"""
        source = FileSource.in_memory(b"abc")
        source.close()
        with pytest.raises(IoFailure):
            source.read_at(0, 1)


class TestFileBackedSource:
    """Tests for sources that open a path"""

    def test_write_then_read(self, tmp_path):
        """Test writing a new file and reading it back"""
        path = tmp_path / "data.bin"
        with FileSource(path, mode="w+b") as source:
            source.write_at(0, b"\x01\x02\x03")

        with FileSource(path) as source:
            assert source.read_at(0, 3) == b"\x01\x02\x03"
            assert source.size() == 3

    def test_missing_file(self, tmp_path):
        """Test that a missing path raises IoFailure, which is also an OSError"""
        with pytest.raises(IoFailure) as exc_info:
            FileSource(tmp_path / "missing.e57")
        assert isinstance(exc_info.value, OSError)

    def test_context_manager_closes_file(self, tmp_path):
        """Test that leaving the context closes an owned file"""
        path = tmp_path / "data.bin"
        path.write_bytes(b"xyz")
        with FileSource(path) as source:
            f = source._file
        assert f.closed
        assert source.closed
