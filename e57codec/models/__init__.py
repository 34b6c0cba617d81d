"""
Value objects built on top of decoded point records.
"""
from .limits import ColorLimits, IntensityLimits, Limits
from .point import CartesianCoordinate, Color, CoordinateState, Point, SphericalCoordinate, iter_points

__all__ = [
    "ColorLimits",
    "IntensityLimits",
    "Limits",
    "CartesianCoordinate",
    "Color",
    "CoordinateState",
    "Point",
    "SphericalCoordinate",
    "iter_points",
]
