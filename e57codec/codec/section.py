"""
Location of a compressed-vector section inside a file.
"""
from dataclasses import asdict, dataclass

from e57codec.io.paged import physical_length


@dataclass(frozen=True)
class SectionDescriptor:
    """Physical offset, logical byte length and row count of a section."""

    offset: int
    logical_length: int
    record_count: int

    def __post_init__(self):
        if self.offset < 0:
            raise ValueError(f"Section offset must be >= 0, got {self.offset}")
        if self.logical_length < 0:
            raise ValueError(f"Section length must be >= 0, got {self.logical_length}")
        if self.record_count < 0:
            raise ValueError(f"Section record count must be >= 0, got {self.record_count}")

    def physical_length(self, page_size: int | None = None) -> int:
        """Physical bytes occupied by the section's pages."""
        return physical_length(self.logical_length, page_size)

    def end_offset(self, page_size: int | None = None) -> int:
        """Physical offset just past the section's last page."""
        return self.offset + self.physical_length(page_size)

    def to_dict(self) -> dict[str, int]:
        return asdict(self)
