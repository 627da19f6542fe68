"""
geo.distance
============

Integer distance predicate used while building a claim witness.

The check is planar: squared Euclidean distance over scaled degrees, compared
against a squared radius. There is no cos(lat) correction for longitude, so
east-west distances are overestimated away from the equator (the accepted
region is an ellipse narrower in longitude). Under 1 km and at moderate
latitude the error stays around 1%, which is fine for "stand next to the
marker" hunts. The same arithmetic runs inside the circuit, which is why it is
integer-only.
"""

from __future__ import annotations

import math
import random
from typing import Optional

from .coords import COORDINATE_SCALE, ScaledCoordinate

METERS_PER_DEGREE = 111_000

RADIUS_SCALED = 100  # ~11 m
RADIUS_SQUARED = RADIUS_SCALED * RADIUS_SCALED


def distance_squared(a: ScaledCoordinate, b: ScaledCoordinate) -> int:
    dlat = a.lat - b.lat
    dlon = a.lon - b.lon
    return dlat * dlat + dlon * dlon


def within_radius(
    finder: ScaledCoordinate,
    target: ScaledCoordinate,
    radius_squared: int = RADIUS_SQUARED,
) -> bool:
    if radius_squared < 0:
        raise ValueError("radius_squared must be non-negative")
    return distance_squared(finder, target) <= radius_squared


def scaled_to_meters(scaled_distance: float) -> float:
    """Approximate meters for a distance expressed in scaled units."""
    return scaled_distance * METERS_PER_DEGREE / COORDINATE_SCALE


def distance_meters(a: ScaledCoordinate, b: ScaledCoordinate) -> float:
    """Display-only estimate; never used for acceptance decisions."""
    return scaled_to_meters(math.sqrt(distance_squared(a, b)))


def radius_squared_for_meters(meters: float) -> int:
    """
    Squared radius (scaled units) admitting points within roughly `meters`.

    Floors the scaled radius so the accepted region never exceeds the request.
    """
    if meters < 0:
        raise ValueError("meters must be non-negative")
    radius = int(meters * COORDINATE_SCALE // METERS_PER_DEGREE)
    return radius * radius


def random_offset(
    center: ScaledCoordinate,
    max_units: int,
    rng: Optional[random.Random] = None,
) -> ScaledCoordinate:
    """
    A point at most `max_units` scaled units from `center` (Euclidean).

    Used by demos and tests to simulate a finder standing near the marker.
    """
    if max_units < 0:
        raise ValueError("max_units must be non-negative")
    rng = rng or random.Random()
    limit = max_units * max_units
    while True:
        dlat = rng.randint(-max_units, max_units)
        dlon = rng.randint(-max_units, max_units)
        if dlat * dlat + dlon * dlon <= limit:
            lat = max(-90 * COORDINATE_SCALE, min(90 * COORDINATE_SCALE, center.lat + dlat))
            lon = max(-180 * COORDINATE_SCALE, min(180 * COORDINATE_SCALE, center.lon + dlon))
            return ScaledCoordinate(lat, lon)


__all__ = [
    "METERS_PER_DEGREE",
    "RADIUS_SCALED",
    "RADIUS_SQUARED",
    "distance_squared",
    "within_radius",
    "scaled_to_meters",
    "distance_meters",
    "radius_squared_for_meters",
    "random_offset",
]
