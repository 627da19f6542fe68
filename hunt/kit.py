"""
Hunt kit: the payload a creator prints as a QR code at the hiding spot.

    {
      "hunt_id": 0,
      "secret": "1234…",               # decimal string
      "lat": 37769400, "lon": -122486200,
      "radius_squared": 10000,
      "location_commitment": "5678…"   # decimal string
    }

Whoever scans it learns the secret and the target; the proof they build still
binds the claim to their own identity.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import msgspec

from geo.coords import ScaledCoordinate
from geo.distance import RADIUS_SQUARED
from zk.commitments import field_element, generate_secret, location_commitment


class HuntKit(msgspec.Struct, frozen=True):
    hunt_id: int
    secret: str
    lat: int
    lon: int
    radius_squared: int
    location_commitment: str

    @property
    def target(self) -> ScaledCoordinate:
        return ScaledCoordinate(self.lat, self.lon)

    @property
    def secret_int(self) -> int:
        return field_element(self.secret, "secret")

    @property
    def commitment(self) -> int:
        return field_element(self.location_commitment, "location_commitment")

    def validate(self) -> "HuntKit":
        """Recompute the location commitment; raise ValueError on mismatch."""
        if self.hunt_id < 0:
            raise ValueError("hunt_id must be non-negative")
        field_element(self.secret, "secret")
        expected = location_commitment(self.lat, self.lon, self.radius_squared)
        if expected != self.commitment:
            raise ValueError("location_commitment does not match lat/lon/radius_squared")
        return self

    def with_hunt_id(self, hunt_id: int) -> "HuntKit":
        return msgspec.structs.replace(self, hunt_id=int(hunt_id))


def new_kit(
    target: ScaledCoordinate,
    radius_squared: int = RADIUS_SQUARED,
    secret: Optional[int] = None,
    hunt_id: int = 0,
) -> HuntKit:
    """Fresh kit for `target`; draws a random secret unless one is given."""
    s = generate_secret() if secret is None else field_element(secret, "secret")
    loc = location_commitment(target.lat, target.lon, radius_squared)
    return HuntKit(
        hunt_id=hunt_id,
        secret=str(s),
        lat=target.lat,
        lon=target.lon,
        radius_squared=radius_squared,
        location_commitment=str(loc),
    )


_encoder = msgspec.json.Encoder()
_decoder = msgspec.json.Decoder(HuntKit)


def encode_kit(kit: HuntKit) -> bytes:
    return _encoder.encode(kit)


def decode_kit(data: Union[bytes, str]) -> HuntKit:
    return _decoder.decode(data).validate()


def write_kit(kit: HuntKit, path: Union[str, Path]) -> Path:
    p = Path(path)
    p.write_bytes(encode_kit(kit))
    return p


def read_kit(path: Union[str, Path]) -> HuntKit:
    return decode_kit(Path(path).read_bytes())


__all__ = [
    "HuntKit",
    "new_kit",
    "encode_kit",
    "decode_kit",
    "write_kit",
    "read_kit",
]
