"""
Unit tests for Point conversion and normalization limits.
"""
import pytest

from e57codec.codec import Float, Integer, ScaledInteger
from e57codec.errors import ValueOutOfRange
from e57codec.models import (
    CartesianCoordinate,
    Color,
    ColorLimits,
    CoordinateState,
    IntensityLimits,
    Limits,
    Point,
    SphericalCoordinate,
    iter_points,
)


class TestLimits:
    """Tests for Limits"""

    def test_normalize(self):
        limits = Limits(0.0, 2047.0)
        assert limits.normalize(0) == 0.0
        assert limits.normalize(2047) == 1.0
        assert limits.normalize(1023.5) == pytest.approx(0.5)

    def test_zero_span(self):
        assert Limits(5.0, 5.0).normalize(5.0) == 0.0

    def test_inverted(self):
        with pytest.raises(ValueError):
            Limits(2.0, 1.0)

    def test_from_record_type(self):
        """Test limits implied by field bounds"""
        assert Limits.from_record_type(Integer(0, 255)) == Limits(0.0, 255.0)
        assert Limits.from_record_type(ScaledInteger(0, 1000, scale=0.5, offset=1.0)) == Limits(1.0, 501.0)
        assert Limits.from_record_type(Float()) == Limits(0.0, 1.0)

    def test_intensity_limits_type(self):
        assert isinstance(IntensityLimits.from_record_type(Integer(0, 10)), IntensityLimits)

    def test_uniform_color_limits(self):
        limits = ColorLimits.uniform(0.0, 65535.0)
        assert limits.red == limits.green == limits.blue == Limits(0.0, 65535.0)


class TestPointFromRecord:
    """Tests for Point.from_record"""

    def test_full_record(self):
        record = {
            "cartesianX": 1.0,
            "cartesianY": 2.0,
            "cartesianZ": 3.0,
            "cartesianInvalidState": 0,
            "sphericalRange": 10.0,
            "sphericalAzimuth": 0.5,
            "sphericalElevation": -0.25,
            "colorRed": 255,
            "colorGreen": 0,
            "colorBlue": 51,
            "intensity": 1024,
            "rowIndex": 4,
            "columnIndex": 7,
            "returnIndex": 1,
        }
        point = Point.from_record(record, intensity_limits=IntensityLimits(0.0, 2048.0))

        assert point.cartesian == CartesianCoordinate(1.0, 2.0, 3.0, CoordinateState.VALID)
        assert point.spherical == SphericalCoordinate(10.0, 0.5, -0.25)
        assert point.color == Color(1.0, 0.0, pytest.approx(0.2))
        assert point.intensity == 0.5
        assert (point.row, point.column, point.return_index) == (4, 7, 1)

    def test_missing_groups(self):
        """Test that absent field groups stay None"""
        point = Point.from_record({"cartesianX": 1.0, "cartesianY": 2.0})
        assert point.cartesian is None
        assert point.spherical is None
        assert point.color is None
        assert point.intensity is None
        assert point.row == -1

    def test_invalid_state(self):
        point = Point.from_record({"cartesianX": 0.0, "cartesianY": 0.0, "cartesianZ": 1.0, "cartesianInvalidState": 1})
        assert point.cartesian.state is CoordinateState.DIRECTION

    def test_unknown_state(self):
        """Test that a state outside 0..2 names the offending field"""
        record = {"sphericalRange": 1.0, "sphericalAzimuth": 0.0, "sphericalElevation": 0.0, "sphericalInvalidState": 3}
        with pytest.raises(ValueOutOfRange) as exc_info:
            Point.from_record(record)
        assert exc_info.value.field == "sphericalInvalidState"
        assert exc_info.value.value == 3

    def test_color_limits(self):
        point = Point.from_record(
            {"colorRed": 100, "colorGreen": 200, "colorBlue": 0},
            color_limits=ColorLimits.uniform(0.0, 200.0),
        )
        assert point.color == Color(0.5, 1.0, 0.0)

    def test_iter_points(self):
        records = [{"intensity": v} for v in (0.0, 0.25, 1.0)]
        assert [p.intensity for p in iter_points(records)] == [0.0, 0.25, 1.0]
