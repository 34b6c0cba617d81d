"""
Normalization limits for intensity and color fields.
"""
from dataclasses import dataclass

from e57codec.codec.record import Float, Integer, RecordType, ScaledInteger


@dataclass(frozen=True)
class Limits:
    """Inclusive value range used to map a raw field value to [0, 1]."""

    minimum: float = 0.0
    maximum: float = 1.0

    def __post_init__(self):
        if self.minimum > self.maximum:
            raise ValueError(f"Limits minimum {self.minimum} is greater than maximum {self.maximum}")

    @classmethod
    def from_record_type(cls, data_type: RecordType) -> "Limits":
        """Limits implied by a field's own bounds when none are declared."""
        match data_type:
            case Integer(minimum=minimum, maximum=maximum):
                return cls(float(minimum), float(maximum))
            case ScaledInteger(minimum=minimum, maximum=maximum, scale=scale, offset=offset):
                return cls(minimum * scale + offset, maximum * scale + offset)
            case Float():
                return cls(0.0, 1.0)
            case _:
                raise ValueError(f"Unknown field descriptor: {data_type!r}")

    def normalize(self, value: float) -> float:
        span = self.maximum - self.minimum
        if span == 0:
            return 0.0
        return (float(value) - self.minimum) / span


class IntensityLimits(Limits):
    """Limits of the `intensity` field."""


@dataclass(frozen=True)
class ColorLimits:
    """Limits of the `colorRed`, `colorGreen` and `colorBlue` fields."""

    red: Limits = Limits(0.0, 255.0)
    green: Limits = Limits(0.0, 255.0)
    blue: Limits = Limits(0.0, 255.0)

    @classmethod
    def uniform(cls, minimum: float, maximum: float) -> "ColorLimits":
        limits = Limits(minimum, maximum)
        return cls(limits, limits, limits)
