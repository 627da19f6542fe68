"""
zk.commitments
==============

Poseidon commitments shared by the claim circuit, the prover and hunt
creation:

    locationCommitment = H3(targetLat, targetLon, radiusSquared)
    secretHash         = H1(secret)
    claimCommitment    = H3(locationCommitment, secretHash, claimerIdentity)

Every argument must be a canonical BN254 scalar. Coordinates are the one
signed quantity: a negative scaled coordinate `v` enters the hash as `r + v`,
the same element the circuit computes for it.

Identities are 20-byte account addresses written as "0x" + 40 hex digits and
enter the hash as their integer value.
"""

from __future__ import annotations

import re
import secrets
from typing import Union

from geo.coords import MAX_LON_SCALED

from .errors import FieldRangeError
from .verifiers.pairing_bn254 import curve_order
from .verifiers.poseidon import check_field_element, poseidon_hash

FIELD_MODULUS = int(curve_order())

_ADDR_RE = re.compile(r"^0x[0-9a-f]{40}$")

Identity = Union[str, bytes, int]


def field_element(value: Union[int, str], name: str = "value") -> int:
    """Parse an int / decimal / 0x-hex string and require 0 <= v < r."""
    if isinstance(value, str):
        s = value.strip().lower()
        try:
            value = int(s, 16) if s.startswith("0x") else int(s, 10)
        except ValueError as e:
            raise FieldRangeError(f"{name} is not an integer: {value!r}") from e
    return check_field_element(value, name)


def encode_signed(value: int, name: str = "coordinate") -> int:
    """Field encoding of a bounded signed coordinate (negatives become r + v)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise FieldRangeError(f"{name} must be an int")
    if not -MAX_LON_SCALED <= value <= MAX_LON_SCALED:
        raise FieldRangeError(f"{name} out of coordinate range: {value}")
    return value % FIELD_MODULUS


def normalize_identity(identity: Identity) -> str:
    """Canonical lower-case "0x" + 40 hex form of an account identity."""
    if isinstance(identity, bool):
        raise ValueError("boolean is not an identity")
    if isinstance(identity, int):
        if not 0 <= identity < (1 << 160):
            raise ValueError("identity integer must fit in 160 bits")
        return "0x" + format(identity, "040x")
    if isinstance(identity, (bytes, bytearray)):
        if len(identity) != 20:
            raise ValueError("identity bytes must be 20 bytes long")
        return "0x" + bytes(identity).hex()
    if isinstance(identity, str):
        s = identity.strip().lower()
        if not s.startswith("0x"):
            s = "0x" + s
        if not _ADDR_RE.match(s):
            raise ValueError(f"malformed identity: {identity!r}")
        return s
    raise TypeError(f"unsupported identity type: {type(identity).__name__}")


def identity_to_field(identity: Identity) -> int:
    return int(normalize_identity(identity), 16)


def location_commitment(target_lat: int, target_lon: int, radius_squared: int) -> int:
    return poseidon_hash(
        [
            encode_signed(target_lat, "target_lat"),
            encode_signed(target_lon, "target_lon"),
            check_field_element(radius_squared, "radius_squared"),
        ]
    )


def secret_hash(secret: int) -> int:
    return poseidon_hash([check_field_element(secret, "secret")])


def claim_commitment(location_commitment: int, secret_hash: int, claimer: Identity) -> int:
    """Bind a location, a secret and the claimer's identity into one public value."""
    return poseidon_hash(
        [
            check_field_element(location_commitment, "location_commitment"),
            check_field_element(secret_hash, "secret_hash"),
            identity_to_field(claimer),
        ]
    )


def generate_secret() -> int:
    """Uniformly random field element from the OS CSPRNG."""
    return secrets.randbelow(FIELD_MODULUS)


__all__ = [
    "FIELD_MODULUS",
    "field_element",
    "encode_signed",
    "normalize_identity",
    "identity_to_field",
    "location_commitment",
    "secret_hash",
    "claim_commitment",
    "generate_secret",
]
