import random

import pytest

from zk.commitments import (
    FIELD_MODULUS,
    claim_commitment,
    encode_signed,
    field_element,
    generate_secret,
    identity_to_field,
    location_commitment,
    normalize_identity,
    secret_hash,
)
from zk.errors import FieldRangeError
from zk.verifiers.poseidon import poseidon_hash

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20

LAT, LON, R2 = 37_774_900, -122_419_400, 10_000


def test_commitments_are_poseidon_compositions():
    loc = location_commitment(LAT, LON, R2)
    assert loc == poseidon_hash([LAT, FIELD_MODULUS + LON, R2])
    sh = secret_hash(12345)
    assert sh == poseidon_hash([12345])
    assert claim_commitment(loc, sh, ALICE) == poseidon_hash([loc, sh, int(ALICE, 16)])


def test_deterministic():
    a = claim_commitment(location_commitment(LAT, LON, R2), secret_hash(99), ALICE)
    b = claim_commitment(location_commitment(LAT, LON, R2), secret_hash(99), ALICE)
    assert a == b


def test_binding_on_claimer_sampled():
    rng = random.Random(1337)
    loc = location_commitment(LAT, LON, R2)
    for _ in range(5):
        sh = secret_hash(rng.randrange(FIELD_MODULUS))
        other = "0x" + format(rng.getrandbits(160), "040x")
        assert claim_commitment(loc, sh, ALICE) != claim_commitment(loc, sh, other)


def test_binding_on_secret_and_location():
    loc = location_commitment(LAT, LON, R2)
    assert claim_commitment(loc, secret_hash(1), ALICE) != claim_commitment(loc, secret_hash(2), ALICE)
    loc2 = location_commitment(LAT + 1, LON, R2)
    assert claim_commitment(loc, secret_hash(1), ALICE) != claim_commitment(loc2, secret_hash(1), ALICE)


def test_signed_encoding():
    assert encode_signed(5) == 5
    assert encode_signed(-5) == FIELD_MODULUS - 5
    assert location_commitment(0, -1, 0) != location_commitment(0, 1, 0)
    with pytest.raises(FieldRangeError):
        encode_signed(181_000_000)
    with pytest.raises(FieldRangeError):
        encode_signed(1.5)  # type: ignore[arg-type]


def test_out_of_field_rejected_not_reduced():
    with pytest.raises(FieldRangeError):
        secret_hash(FIELD_MODULUS)
    with pytest.raises(FieldRangeError):
        claim_commitment(FIELD_MODULUS + 3, 1, ALICE)
    with pytest.raises(FieldRangeError):
        location_commitment(LAT, LON, -1)


def test_field_element_parsing():
    assert field_element("0x10") == 16
    assert field_element(" 42 ") == 42
    assert field_element(7) == 7
    with pytest.raises(FieldRangeError):
        field_element("zz")
    with pytest.raises(FieldRangeError):
        field_element(str(FIELD_MODULUS))


def test_identity_normalization():
    assert normalize_identity(ALICE.upper().replace("0X", "0x")) == ALICE
    assert normalize_identity("a1" * 20) == ALICE
    assert normalize_identity(bytes.fromhex("a1" * 20)) == ALICE
    assert normalize_identity(1) == "0x" + "0" * 39 + "1"
    assert identity_to_field(ALICE) == int(ALICE, 16)
    for bad in ("0x1234", "0x" + "g" * 40, b"\x00" * 19, -1, 1 << 160):
        with pytest.raises(ValueError):
            normalize_identity(bad)
    with pytest.raises(ValueError):
        normalize_identity(True)


def test_generate_secret_in_field():
    for _ in range(20):
        s = generate_secret()
        assert 0 <= s < FIELD_MODULUS
    assert generate_secret() != generate_secret()
