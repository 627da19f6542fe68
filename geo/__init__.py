"""
geo: fixed-point coordinates and the integer distance predicate.

Coordinates are acquired elsewhere (device GPS, QR scan); this package only
converts them to the scaled-integer form that commitments and proofs use.
"""

from __future__ import annotations

from .coords import (
    COORDINATE_SCALE,
    CoordinateError,
    ScaledCoordinate,
    degrees_to_scaled,
    format_coordinates,
    is_valid_degrees,
    scaled_to_degrees,
)
from .distance import (
    RADIUS_SQUARED,
    distance_meters,
    distance_squared,
    radius_squared_for_meters,
    random_offset,
    scaled_to_meters,
    within_radius,
)

__all__ = [
    "COORDINATE_SCALE",
    "RADIUS_SQUARED",
    "CoordinateError",
    "ScaledCoordinate",
    "degrees_to_scaled",
    "scaled_to_degrees",
    "is_valid_degrees",
    "format_coordinates",
    "distance_squared",
    "distance_meters",
    "within_radius",
    "scaled_to_meters",
    "radius_squared_for_meters",
    "random_offset",
]
