import pytest

from e57codec.codec import Float, Integer, Prototype
from e57codec.io import FileSource


@pytest.fixture
def memory_source():
    source = FileSource.in_memory()
    yield source
    source.close()


@pytest.fixture
def xyz_intensity_prototype():
    return Prototype([
        ("x", Float()),
        ("intensity", Integer(0, 255)),
    ])


@pytest.fixture
def xyz_intensity_rows():
    return [
        {"x": 1.5, "intensity": 10},
        {"x": 2.25, "intensity": 200},
        {"x": 3.0, "intensity": 0},
    ]
