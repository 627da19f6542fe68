from decimal import Decimal

import pytest

from geo.coords import (
    MAX_LAT_SCALED,
    MAX_LON_SCALED,
    CoordinateError,
    ScaledCoordinate,
    degrees_to_scaled,
    format_coordinates,
    is_valid_degrees,
    scaled_to_degrees,
)


@pytest.mark.parametrize(
    "degrees, scaled",
    [
        (37.7749, 37_774_900),
        (-122.4194, -122_419_400),
        ("37.7694", 37_769_400),
        (Decimal("-0.0000025"), -2),  # half rounds toward +inf
        (Decimal("0.0000025"), 3),
        (0, 0),
        (90, MAX_LAT_SCALED),
    ],
)
def test_degrees_to_scaled(degrees, scaled):
    assert degrees_to_scaled(degrees) == scaled


def test_scaled_to_degrees_inverts_within_precision():
    assert scaled_to_degrees(37_774_900) == pytest.approx(37.7749)
    assert scaled_to_degrees(-122_419_400) == pytest.approx(-122.4194)


def test_degrees_to_scaled_rejects_garbage():
    with pytest.raises(CoordinateError):
        degrees_to_scaled("north")
    with pytest.raises(CoordinateError):
        degrees_to_scaled(float("nan"))


def test_scaled_coordinate_bounds():
    ScaledCoordinate(MAX_LAT_SCALED, -MAX_LON_SCALED)
    with pytest.raises(CoordinateError):
        ScaledCoordinate(MAX_LAT_SCALED + 1, 0)
    with pytest.raises(CoordinateError):
        ScaledCoordinate(0, -MAX_LON_SCALED - 1)
    with pytest.raises(CoordinateError):
        ScaledCoordinate(1.5, 0)  # type: ignore[arg-type]


def test_from_degrees_and_back():
    c = ScaledCoordinate.from_degrees(37.7694, -122.4862)
    assert (c.lat, c.lon) == (37_769_400, -122_486_200)
    lat, lon = c.to_degrees()
    assert lat == pytest.approx(37.7694)
    assert lon == pytest.approx(-122.4862)


def test_format_coordinates():
    assert format_coordinates(37_769_400, -122_486_200) == "37.769400° N, 122.486200° W"
    assert format_coordinates(-33.8688, 151.2093, scaled=False) == "33.868800° S, 151.209300° E"
    assert str(ScaledCoordinate(0, 0)) == "0.000000° N, 0.000000° E"


def test_is_valid_degrees():
    assert is_valid_degrees(45, 170)
    assert is_valid_degrees(-90, -180)
    assert not is_valid_degrees(90.000001, 0)
    assert not is_valid_degrees(0, 181)
    assert not is_valid_degrees("x", 0)
