"""
Raw byte-range access to the file that hosts E57 sections.

The paged stream never touches a file object directly; it goes through a
FileSource so that every OSError becomes an IoFailure and in-memory buffers
can stand in for files.
"""
import io
from pathlib import Path
from typing import BinaryIO

from e57codec.core.logging_config import get_logger
from e57codec.errors import IoFailure

logger = get_logger(__name__)


class FileSource:
    """
    Positioned read/write access over a binary file object.

    Usage:
        with FileSource("scan.e57", mode="rb") as source:
            data = source.read_at(0, 1024)
    """

    def __init__(self, file: str | Path | BinaryIO, mode: str = "rb"):
        """
        Initialize a byte source.

        Args:
            file: Path to open, or an already-open binary file object
            mode: Open mode used when `file` is a path ("rb", "r+b" or "w+b")

        Raises:
            IoFailure: If the path cannot be opened
        """
        if isinstance(file, (str, Path)):
            self.path: Path | None = Path(file)
            try:
                self._file: BinaryIO | None = open(self.path, mode)
            except OSError as e:
                raise IoFailure(f"Cannot open {self.path}: {e}") from e
            self._owns_file = True
        else:
            self.path = None
            self._file = file
            self._owns_file = False

    @classmethod
    def in_memory(cls, data: bytes = b"") -> "FileSource":
        """Create a source backed by an in-memory buffer."""
        return cls(io.BytesIO(data))

    @property
    def closed(self) -> bool:
        return self._file is None

    def _require_open(self) -> BinaryIO:
        if self._file is None:
            raise IoFailure("Source is closed")
        return self._file

    def read_at(self, offset: int, length: int) -> bytes:
        """
        Read up to `length` bytes starting at `offset`.

        Fewer bytes are returned when the end of the file is reached.

        Raises:
            IoFailure: If the underlying read fails
        """
        if offset < 0 or length < 0:
            raise ValueError(f"Invalid byte range: offset={offset}, length={length}")
        f = self._require_open()
        try:
            f.seek(offset)
            return f.read(length)
        except OSError as e:
            raise IoFailure(f"Read of {length} bytes at {offset} failed: {e}") from e

    def write_at(self, offset: int, data: bytes) -> None:
        """
        Write `data` at `offset`, overwriting whatever was there.

        Raises:
            IoFailure: If the underlying write fails
        """
        if offset < 0:
            raise ValueError(f"Invalid offset: {offset}")
        f = self._require_open()
        try:
            f.seek(offset)
            f.write(data)
        except OSError as e:
            raise IoFailure(f"Write of {len(data)} bytes at {offset} failed: {e}") from e

    def size(self) -> int:
        """Return the current size of the underlying file in bytes."""
        f = self._require_open()
        try:
            return f.seek(0, io.SEEK_END)
        except OSError as e:
            raise IoFailure(f"Cannot determine source size: {e}") from e

    def flush(self) -> None:
        f = self._require_open()
        try:
            f.flush()
        except OSError as e:
            raise IoFailure(f"Flush failed: {e}") from e

    def getvalue(self) -> bytes:
        """Return the whole content (for in-memory sources and small files)."""
        return self.read_at(0, self.size())

    def close(self) -> None:
        """Close the file if this source opened it."""
        if self._file is None:
            return
        try:
            if self._owns_file:
                self._file.close()
                logger.debug(f"Closed {self.path}")
        except OSError as e:
            raise IoFailure(f"Close failed: {e}") from e
        finally:
            self._file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
