"""
Typed points built from decoded records that use the standard E57 field names.
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Iterable, Iterator, Mapping

from e57codec.errors import ValueOutOfRange

from .limits import ColorLimits, IntensityLimits


class CoordinateState(IntEnum):
    """Values of the cartesianInvalidState / sphericalInvalidState fields."""

    VALID = 0
    DIRECTION = 1
    INVALID = 2


def _coordinate_state(record: Mapping[str, Any], name: str) -> CoordinateState:
    value = record.get(name, 0)
    try:
        return CoordinateState(int(value))
    except (TypeError, ValueError):
        raise ValueOutOfRange(name, value, f"{value!r} is not a coordinate state") from None


@dataclass(frozen=True)
class CartesianCoordinate:
    x: float
    y: float
    z: float
    state: CoordinateState = CoordinateState.VALID


@dataclass(frozen=True)
class SphericalCoordinate:
    range: float
    azimuth: float
    elevation: float
    state: CoordinateState = CoordinateState.VALID


@dataclass(frozen=True)
class Color:
    """Normalized color, each channel in [0, 1]."""

    red: float
    green: float
    blue: float


@dataclass(frozen=True)
class Point:
    cartesian: CartesianCoordinate | None = None
    spherical: SphericalCoordinate | None = None
    color: Color | None = None
    intensity: float | None = None
    row: int = -1
    column: int = -1
    return_index: int = 0

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        intensity_limits: IntensityLimits | None = None,
        color_limits: ColorLimits | None = None,
    ) -> "Point":
        """
        Build a point from a decoded record.

        Args:
            record: Decoded row keyed by E57 field names
            intensity_limits: Range mapped to [0, 1] for `intensity`
            color_limits: Ranges mapped to [0, 1] for the color channels

        Returns:
            A Point; groups whose fields are absent stay None
        """
        cartesian = None
        if all(k in record for k in ("cartesianX", "cartesianY", "cartesianZ")):
            cartesian = CartesianCoordinate(
                float(record["cartesianX"]),
                float(record["cartesianY"]),
                float(record["cartesianZ"]),
                _coordinate_state(record, "cartesianInvalidState"),
            )

        spherical = None
        if all(k in record for k in ("sphericalRange", "sphericalAzimuth", "sphericalElevation")):
            spherical = SphericalCoordinate(
                float(record["sphericalRange"]),
                float(record["sphericalAzimuth"]),
                float(record["sphericalElevation"]),
                _coordinate_state(record, "sphericalInvalidState"),
            )

        color = None
        if all(k in record for k in ("colorRed", "colorGreen", "colorBlue")):
            limits = color_limits or ColorLimits()
            color = Color(
                limits.red.normalize(record["colorRed"]),
                limits.green.normalize(record["colorGreen"]),
                limits.blue.normalize(record["colorBlue"]),
            )

        intensity = None
        if "intensity" in record:
            limits = intensity_limits or IntensityLimits()
            intensity = limits.normalize(record["intensity"])

        return cls(
            cartesian=cartesian,
            spherical=spherical,
            color=color,
            intensity=intensity,
            row=int(record.get("rowIndex", -1)),
            column=int(record.get("columnIndex", -1)),
            return_index=int(record.get("returnIndex", 0)),
        )


def iter_points(
    records: Iterable[Mapping[str, Any]],
    intensity_limits: IntensityLimits | None = None,
    color_limits: ColorLimits | None = None,
) -> Iterator[Point]:
    """Convert each decoded record into a Point."""
    for record in records:
        yield Point.from_record(record, intensity_limits, color_limits)
