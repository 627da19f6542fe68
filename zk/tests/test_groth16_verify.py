"""
Groth16 (BN254) verification against synthetic proofs, plus an optional run
against real snarkjs artifacts.

Real artifacts are looked up in $HUNT_CIRCUIT_DIR (proof.json, public.json,
verification_key.json); the test is skipped when they are absent.
"""

import copy
import json
import os
from pathlib import Path

import pytest

from zk.errors import ZKError
from zk.tests import configure_test_logging, g2_json, synthetic_groth16, twist_point_outside_subgroup
from zk.verifiers import Groth16Verifier, MockVerifier, make_verifier
from zk.verifiers.groth16_bn254 import load_proof, load_vk, verify_groth16
from zk.verifiers.pairing_bn254 import curve_order, field_modulus, g1_from_affine, is_on_curve_g2

configure_test_logging()

R = curve_order()
COMMITMENT = 0x1234_5678_9ABC_DEF0_1122_3344_5566_7788_99AA_BBCC_DDEE_FF00

pytestmark = pytest.mark.slow


@pytest.fixture(scope="module")
def artifacts():
    return synthetic_groth16([COMMITMENT])


def test_valid_proof_accepted(artifacts):
    vk, proof = artifacts
    assert verify_groth16(vk, proof, [COMMITMENT]) is True
    assert Groth16Verifier(vk).verify(proof, COMMITMENT) is True


def test_decimal_string_public_output_accepted(artifacts):
    vk, proof = artifacts
    assert Groth16Verifier(vk).verify(proof, str(COMMITMENT)) is True


def test_different_public_output_rejected(artifacts):
    vk, proof = artifacts
    assert Groth16Verifier(vk).verify(proof, COMMITMENT + 1) is False


def test_non_canonical_public_input_rejected(artifacts):
    vk, proof = artifacts
    # COMMITMENT + r is the same field element; accepting it would be malleable.
    assert verify_groth16(vk, proof, [COMMITMENT + R]) is False
    assert verify_groth16(vk, proof, [-1]) is False


def test_tampered_proof_rejected(artifacts):
    vk, proof = artifacts
    bad = copy.deepcopy(proof)
    bad["pi_a"], bad["pi_c"] = proof["pi_c"], proof["pi_a"]
    assert Groth16Verifier(vk).verify(bad, COMMITMENT) is False


def test_off_curve_point_rejected(artifacts):
    vk, proof = artifacts
    bad = copy.deepcopy(proof)
    bad["pi_a"][1] = str(int(bad["pi_a"][1]) + 1)
    assert Groth16Verifier(vk).verify(bad, COMMITMENT) is False



def test_b_outside_r_subgroup_rejected(artifacts):
    vk, proof = artifacts
    Q = twist_point_outside_subgroup()
    assert is_on_curve_g2(Q)
    bad = copy.deepcopy(proof)
    bad["pi_b"] = g2_json(Q)
    with pytest.raises(ValueError, match="subgroup"):
        load_proof(bad)
    assert Groth16Verifier(vk).verify(bad, COMMITMENT) is False


def test_vk_g2_outside_r_subgroup_rejected(artifacts):
    vk, _ = artifacts
    bad = copy.deepcopy(vk)
    bad["vk_delta_2"] = g2_json(twist_point_outside_subgroup())
    with pytest.raises(ValueError, match="subgroup"):
        load_vk(bad)
    with pytest.raises(ZKError):
        Groth16Verifier(bad)


def test_non_canonical_coordinates_rejected(artifacts):
    vk, proof = artifacts
    P = field_modulus()
    # x + p and x are the same base field element once reduced.
    for key, path in (("pi_a", (0,)), ("pi_c", (1,)), ("pi_b", (0, 1)), ("pi_b", (1, 0))):
        bad = copy.deepcopy(proof)
        node = bad[key]
        for i in path[:-1]:
            node = node[i]
        node[path[-1]] = str(int(node[path[-1]]) + P)
        with pytest.raises(ValueError, match="canonical"):
            load_proof(bad)
        assert Groth16Verifier(vk).verify(bad, COMMITMENT) is False
    with pytest.raises(ValueError):
        g1_from_affine(P, 0)

@pytest.mark.parametrize(
    "proof",
    [None, [], {}, {"pi_a": ["1"], "pi_b": [], "pi_c": []}, {"pi_a": "x"}],
)
def test_malformed_proof_returns_false(artifacts, proof):
    vk, _ = artifacts
    assert Groth16Verifier(vk).verify(proof, COMMITMENT) is False


def test_non_affine_z_rejected(artifacts):
    vk, proof = artifacts
    bad = copy.deepcopy(proof)
    bad["pi_a"][2] = "2"
    assert Groth16Verifier(vk).verify(bad, COMMITMENT) is False


def test_verifier_requires_single_public_signal():
    vk, _ = synthetic_groth16([1, 2], seed=3)
    with pytest.raises(ZKError):
        Groth16Verifier(vk)


def test_invalid_vk_raises_zkerror():
    with pytest.raises(ZKError):
        Groth16Verifier({"vk_alpha_1": ["1", "2", "1"]})


def test_from_file_and_factory(artifacts, tmp_path):
    vk, proof = artifacts
    path = tmp_path / "verification_key.json"
    path.write_text(json.dumps(vk))
    v = make_verifier("groth16", str(path))
    assert isinstance(v, Groth16Verifier)
    assert v.verify(proof, COMMITMENT)
    with pytest.raises(ZKError):
        make_verifier("groth16", None)
    with pytest.raises(ZKError):
        Groth16Verifier.from_file(str(tmp_path / "missing.json"))


def test_mock_verifier_records_calls():
    m = MockVerifier()
    assert m.verify({"anything": 1}, 5) is True
    assert m.calls == [({"anything": 1}, 5)]
    assert MockVerifier(accept=False).verify({}, 5) is False
    assert isinstance(make_verifier("mock"), MockVerifier)
    with pytest.raises(ZKError):
        make_verifier("plonk")


def _real_dir() -> Path:
    return Path(os.getenv("HUNT_CIRCUIT_DIR", "circuits")).expanduser().resolve()


def test_real_snarkjs_artifacts_if_present():
    base = _real_dir()
    files = [base / n for n in ("proof.json", "public.json", "verification_key.json")]
    if not all(p.exists() for p in files):
        pytest.skip(f"no snarkjs artifacts under {base} (set $HUNT_CIRCUIT_DIR)")
    proof = json.loads(files[0].read_text())
    publics = json.loads(files[1].read_text())
    v = Groth16Verifier.from_file(str(files[2]))
    assert v.verify(proof, publics[0])
    assert not v.verify(proof, (int(publics[0]) + 1) % R)
