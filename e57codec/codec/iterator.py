"""
Forward-only iteration over the rows of a compressed-vector section.
"""
from typing import Any, Iterable, Iterator, Mapping

import numpy as np

from e57codec.errors import E57Error
from e57codec.io.source import FileSource

from .compressed_vector import CompressedVectorReader
from .record import Prototype
from .section import SectionDescriptor


def records_to_array(rows: Iterable[Mapping[str, Any]], prototype: Prototype) -> np.ndarray:
    """
    Collect rows into a structured numpy array.

    Args:
        rows: Point records keyed by field name
        prototype: Field layout; defines the columns and their order

    Returns:
        Array of shape (N,) with dtype prototype.numpy_dtype()
    """
    names = prototype.names
    return np.array(
        [tuple(row[name] for name in names) for row in rows],
        dtype=prototype.numpy_dtype(),
    )


def rows_from_array(array: np.ndarray) -> Iterator[dict[str, Any]]:
    """
    Yield each element of a structured array as a {field name: value} dict.

    Values are converted to Python scalars.
    """
    names = array.dtype.names
    if names is None:
        raise ValueError("rows_from_array needs a structured array")
    for item in array:
        yield {name: item[name].item() for name in names}


class PointCloudIterator:
    """
    Lazy sequence of the point records stored in one section.

    The iterator is not restartable: build a new one from the same section
    descriptor for another pass. Any error ends the sequence.

    Usage:
        for record in PointCloudIterator(source, section, prototype):
            process(record["cartesianX"])
    """

    def __init__(
        self,
        source: FileSource,
        section: SectionDescriptor,
        prototype: Prototype,
        page_size: int | None = None,
        read_ahead_pages: int | None = None,
    ):
        self.prototype = prototype
        self.section = section
        self._reader = CompressedVectorReader(
            source,
            section,
            prototype,
            page_size=page_size,
            read_ahead_pages=read_ahead_pages,
        )
        self._finished = False

    @property
    def rows_read(self) -> int:
        return self._reader.rows_read

    def __iter__(self) -> "PointCloudIterator":
        return self

    def __next__(self) -> dict[str, Any]:
        if self._finished:
            raise StopIteration
        try:
            row = self._reader.read_row()
        except E57Error:
            self._finished = True
            raise
        if row is None:
            self._finished = True
            raise StopIteration
        return row

    def __length_hint__(self) -> int:
        return 0 if self._finished else self._reader.remaining

    def iter_batches(self, size: int) -> Iterator[np.ndarray]:
        """
        Yield the remaining rows as structured arrays of at most `size` rows.
        """
        if size < 1:
            raise ValueError(f"Batch size must be >= 1, got {size}")
        batch: list[dict[str, Any]] = []
        for row in self:
            batch.append(row)
            if len(batch) == size:
                yield records_to_array(batch, self.prototype)
                batch = []
        if batch:
            yield records_to_array(batch, self.prototype)

    def to_array(self) -> np.ndarray:
        """Decode every remaining row into one structured array."""
        return records_to_array(self, self.prototype)
