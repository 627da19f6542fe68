"""
geo.coords
==========

Fixed-point geographic coordinates.

Latitudes and longitudes are integers at a 1e6-degree scale (6 decimal places,
roughly 11 cm at the equator). Everything that ends up inside a commitment or
a proof witness is an integer: floats only appear at the edges (user input and
display).

    37.7749°   → 37_774_900
    -122.4194° → -122_419_400
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Tuple, Union

COORDINATE_SCALE = 1_000_000
MAX_LAT_SCALED = 90 * COORDINATE_SCALE
MAX_LON_SCALED = 180 * COORDINATE_SCALE

Degrees = Union[int, float, str, Decimal]


class CoordinateError(ValueError):
    """Coordinate outside the valid range or not parseable."""


def _to_decimal(value: Degrees) -> Decimal:
    if isinstance(value, bool):
        raise CoordinateError("boolean is not a coordinate")
    try:
        # str() first so 37.7749 is read as written, not as its binary float
        d = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as e:
        raise CoordinateError(f"not a number: {value!r}") from e
    if not d.is_finite():
        raise CoordinateError(f"not a finite number: {value!r}")
    return d


def degrees_to_scaled(degrees: Degrees) -> int:
    """
    Convert decimal degrees to the scaled integer representation.

    Rounds half up (toward +∞), matching JavaScript's Math.round so kits
    produced by web clients and by this library agree.
    """
    d = _to_decimal(degrees) * COORDINATE_SCALE
    return int((d + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def scaled_to_degrees(scaled: int) -> float:
    return int(scaled) / COORDINATE_SCALE


def is_valid_degrees(lat: Degrees, lon: Degrees) -> bool:
    try:
        la, lo = _to_decimal(lat), _to_decimal(lon)
    except CoordinateError:
        return False
    return -90 <= la <= 90 and -180 <= lo <= 180


@dataclass(frozen=True)
class ScaledCoordinate:
    """A point as (lat, lon) integers at 1e6-degree scale."""

    lat: int
    lon: int

    def __post_init__(self) -> None:
        for name, v, bound in (
            ("lat", self.lat, MAX_LAT_SCALED),
            ("lon", self.lon, MAX_LON_SCALED),
        ):
            if isinstance(v, bool) or not isinstance(v, int):
                raise CoordinateError(f"{name} must be an int, got {type(v).__name__}")
            if not -bound <= v <= bound:
                raise CoordinateError(f"{name} out of range: |{v}| > {bound}")

    @classmethod
    def from_degrees(cls, lat: Degrees, lon: Degrees) -> "ScaledCoordinate":
        return cls(degrees_to_scaled(lat), degrees_to_scaled(lon))

    def to_degrees(self) -> Tuple[float, float]:
        return scaled_to_degrees(self.lat), scaled_to_degrees(self.lon)

    def offset(self, dlat: int, dlon: int) -> "ScaledCoordinate":
        return ScaledCoordinate(self.lat + dlat, self.lon + dlon)

    def __str__(self) -> str:
        return format_coordinates(self.lat, self.lon)


def format_coordinates(lat: Union[int, float], lon: Union[int, float], *, scaled: bool = True) -> str:
    """
    Human display, e.g. "37.769400° N, 122.486200° W".

    `scaled=False` accepts plain degrees.
    """
    if scaled:
        lat_d, lon_d = scaled_to_degrees(int(lat)), scaled_to_degrees(int(lon))
    else:
        lat_d, lon_d = float(lat), float(lon)
    lat_dir = "N" if lat_d >= 0 else "S"
    lon_dir = "E" if lon_d >= 0 else "W"
    return f"{abs(lat_d):.6f}° {lat_dir}, {abs(lon_d):.6f}° {lon_dir}"


__all__ = [
    "COORDINATE_SCALE",
    "MAX_LAT_SCALED",
    "MAX_LON_SCALED",
    "CoordinateError",
    "ScaledCoordinate",
    "degrees_to_scaled",
    "scaled_to_degrees",
    "is_valid_degrees",
    "format_coordinates",
]
