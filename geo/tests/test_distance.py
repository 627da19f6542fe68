import pytest

from geo.coords import ScaledCoordinate
from geo.distance import (
    RADIUS_SQUARED,
    distance_meters,
    distance_squared,
    radius_squared_for_meters,
    random_offset,
    scaled_to_meters,
    within_radius,
)
from geo.tests import seeded_rng

TARGET = ScaledCoordinate(37_769_400, -122_486_200)


def test_distance_squared_is_integer_and_symmetric():
    finder = TARGET.offset(50, 50)
    assert distance_squared(finder, TARGET) == 5_000
    assert distance_squared(TARGET, finder) == 5_000
    assert isinstance(distance_squared(finder, TARGET), int)


def test_within_radius_boundary_is_inclusive():
    assert within_radius(TARGET.offset(100, 0), TARGET, RADIUS_SQUARED)
    assert within_radius(TARGET.offset(60, 80), TARGET, RADIUS_SQUARED)
    assert not within_radius(TARGET.offset(60, 81), TARGET, RADIUS_SQUARED)
    assert not within_radius(TARGET.offset(101, 0), TARGET, RADIUS_SQUARED)


def test_within_radius_rejects_negative_radius():
    with pytest.raises(ValueError):
        within_radius(TARGET, TARGET, -1)


def test_across_the_equator_and_meridian():
    a = ScaledCoordinate(-30, -40)
    b = ScaledCoordinate(30, 40)
    assert distance_squared(a, b) == 60 * 60 + 80 * 80
    assert within_radius(a, b, 10_000)


def test_meters_helpers():
    assert scaled_to_meters(100) == pytest.approx(11.1)
    assert distance_meters(TARGET.offset(60, 80), TARGET) == pytest.approx(11.1)
    assert radius_squared_for_meters(111) == 1_000 * 1_000
    assert radius_squared_for_meters(0) == 0
    with pytest.raises(ValueError):
        radius_squared_for_meters(-1)


def test_random_offset_stays_within_bound():
    rng = seeded_rng()
    for _ in range(200):
        p = random_offset(TARGET, 100, rng)
        assert within_radius(p, TARGET, RADIUS_SQUARED)


def test_random_offset_clamps_at_the_pole():
    pole = ScaledCoordinate(90_000_000, 0)
    rng = seeded_rng(1)
    for _ in range(50):
        p = random_offset(pole, 500, rng)
        assert p.lat <= 90_000_000
