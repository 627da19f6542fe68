"""
zk.verifiers.groth16_bn254
==========================

Groth16 verifier for BN254 (altbn128), compatible with the `snarkjs` JSON
layout produced by `snarkjs groth16 fullprove` / `zkey export verificationkey`.

Verification equation
---------------------
    e(A, B) == e(alpha1, beta2) * e(VK_x, gamma2) * e(C, delta2)

implemented as a product check in GT:
    e(A, B) * e(-alpha1, beta2) * e(-VK_x, gamma2) * e(-C, delta2) == 1

with VK_x = IC[0] + Σ input_i · IC[i+1].

JSON compatibility (snarkjs)
----------------------------
- Verifying key: vk_alpha_1, vk_beta_2, vk_gamma_2, vk_delta_2, IC
- Proof: pi_a, pi_b, pi_c

snarkjs writes points in projective form with a trailing z coordinate:
G1 as [x, y, "1"] and G2 as [[x0, x1], [y0, y1], ["1", "0"]]. The affine
two-element form is accepted as well. z = 0 marks the point at infinity;
any other z is rejected.

Coordinates must be canonical base field elements (0 <= c < p). G2 points
must lie in the order-r subgroup as well as on the twist; G1 has cofactor 1
so the curve equation suffices there.

Public inputs
-------------
Inputs must be canonical field elements (0 <= v < r). Out-of-range values are
rejected rather than reduced, so a verifier can never accept an input the
circuit could not have produced.

Public API
----------
- verify_groth16(vk_json, proof_json, public_inputs) -> bool
- load_vk(vk_json) -> VerifyingKey
- load_proof(proof_json) -> Proof
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence, Union

from core.logging import get_logger

from .pairing_bn254 import (
    check_pairing_product,
    curve_order,
    g1_add,
    g1_from_affine,
    g1_mul,
    g1_neg,
    g2_from_affine,
    g2_in_subgroup,
    is_on_curve_g1,
    is_on_curve_g2,
)

log = get_logger(__name__)

G1Point = Any
G2Point = Any

_FR = int(curve_order())


# ---------------------------
# Utilities
# ---------------------------


def _to_int(z: Union[int, str]) -> int:
    if isinstance(z, bool):
        raise ValueError("boolean is not a field element")
    if isinstance(z, int):
        return z
    s = str(z).strip().lower()
    if s.startswith("0x"):
        return int(s, 16)
    return int(s)


def _public_input(z: Union[int, str], idx: int) -> int:
    v = _to_int(z)
    if not 0 <= v < _FR:
        raise ValueError(f"public input {idx} is outside the scalar field")
    return v


def _g1(coords: Sequence[Union[int, str]]) -> G1Point:
    if len(coords) == 3:
        z = _to_int(coords[2])
        if z == 0:
            return g1_from_affine(0, 0)
        if z != 1:
            raise ValueError("G1 point must be affine (z = 1)")
    elif len(coords) != 2:
        raise ValueError("G1 point must have 2 or 3 coordinates")
    return g1_from_affine(_to_int(coords[0]), _to_int(coords[1]))


def _g2(coords: Sequence[Sequence[Union[int, str]]]) -> G2Point:
    if len(coords) == 3:
        z = (_to_int(coords[2][0]), _to_int(coords[2][1]))
        if z == (0, 0):
            return g2_from_affine((0, 0), (0, 0))
        if z != (1, 0):
            raise ValueError("G2 point must be affine (z = [1, 0])")
    elif len(coords) != 2:
        raise ValueError("G2 point must have 2 or 3 coordinates")
    xx, yy = coords[0], coords[1]
    return g2_from_affine(
        (_to_int(xx[0]), _to_int(xx[1])),
        (_to_int(yy[0]), _to_int(yy[1])),
    )


def _pick(obj: Mapping[str, Any], *names: str) -> Any:
    for n in names:
        if n in obj and obj[n] is not None:
            return obj[n]
    raise KeyError(names[0])


# ---------------------------
# Data classes
# ---------------------------


@dataclass(frozen=True)
class VerifyingKey:
    alpha1: G1Point
    beta2: G2Point
    gamma2: G2Point
    delta2: G2Point
    IC: List[G1Point]  # [IC0, IC1, ..., ICn]

    @property
    def n_public(self) -> int:
        return len(self.IC) - 1


@dataclass(frozen=True)
class Proof:
    A: G1Point
    B: G2Point
    C: G1Point


# ---------------------------
# Loaders (snarkjs JSON)
# ---------------------------


def load_vk(vk_json: Mapping[str, Any]) -> VerifyingKey:
    """Parse a snarkjs verifying key object. Raises ValueError/KeyError if malformed."""
    alpha1 = _g1(_pick(vk_json, "vk_alpha_1", "alpha_1", "alpha1"))
    beta2 = _g2(_pick(vk_json, "vk_beta_2", "beta_2", "beta2"))
    gamma2 = _g2(_pick(vk_json, "vk_gamma_2", "gamma_2", "gamma2"))
    delta2 = _g2(_pick(vk_json, "vk_delta_2", "delta_2", "delta2"))
    ic_pts = [_g1(p) for p in _pick(vk_json, "IC", "vk_ic", "ic")]
    if not ic_pts:
        raise ValueError("IC must not be empty")

    if not (
        is_on_curve_g1(alpha1)
        and is_on_curve_g2(beta2)
        and is_on_curve_g2(gamma2)
        and is_on_curve_g2(delta2)
    ):
        raise ValueError("VK points are not on curve")
    if not (g2_in_subgroup(beta2) and g2_in_subgroup(gamma2) and g2_in_subgroup(delta2)):
        raise ValueError("VK G2 points are not in the r-order subgroup")
    for P in ic_pts:
        if not is_on_curve_g1(P):
            raise ValueError("IC point not on G1 curve")

    return VerifyingKey(alpha1=alpha1, beta2=beta2, gamma2=gamma2, delta2=delta2, IC=ic_pts)


def load_proof(proof_json: Mapping[str, Any]) -> Proof:
    """Parse a snarkjs proof object. Raises ValueError/KeyError if malformed."""
    A = _g1(_pick(proof_json, "pi_a", "A"))
    B = _g2(_pick(proof_json, "pi_b", "B"))
    C = _g1(_pick(proof_json, "pi_c", "C"))
    if not (is_on_curve_g1(A) and is_on_curve_g2(B) and is_on_curve_g1(C)):
        raise ValueError("Proof points are not on curve")
    if not g2_in_subgroup(B):
        raise ValueError("Proof point B is not in the r-order subgroup")
    return Proof(A=A, B=B, C=C)


# ---------------------------
# Core verification
# ---------------------------


def _vk_x(IC: Sequence[G1Point], inputs: Sequence[int]) -> G1Point:
    """VK_x = IC[0] + Σ inputs[i] · IC[i+1] in G1."""
    if len(IC) != len(inputs) + 1:
        raise ValueError(f"IC length {len(IC)} != 1 + len(inputs) {len(inputs)}")
    acc = IC[0]
    for i, s in enumerate(inputs):
        if s != 0:
            acc = g1_add(acc, g1_mul(IC[i + 1], s))
    return acc


def verify_parsed(vk: VerifyingKey, pf: Proof, public_inputs: Sequence[Union[int, str]]) -> bool:
    """Verify with an already-parsed key and proof. Raises ValueError on bad inputs."""
    inputs = [_public_input(v, i) for i, v in enumerate(public_inputs)]
    vkx = _vk_x(vk.IC, inputs)
    pairs = [
        (pf.A, pf.B),
        (g1_neg(vk.alpha1), vk.beta2),
        (g1_neg(vkx), vk.gamma2),
        (g1_neg(pf.C), vk.delta2),
    ]
    return check_pairing_product(pairs)


def verify_groth16(
    vk_json: Mapping[str, Any],
    proof_json: Mapping[str, Any],
    public_inputs: Sequence[Union[int, str]],
) -> bool:
    """
    Verify a Groth16 proof given snarkjs-style VK/Proof JSON and public inputs.

    Returns True on success, False otherwise. Malformed input is a routine
    rejection and is logged at DEBUG rather than raised.
    """
    try:
        vk = load_vk(vk_json)
        pf = load_proof(proof_json)
        return verify_parsed(vk, pf, public_inputs)
    except (ValueError, KeyError, TypeError, IndexError) as e:
        log.debug("groth16 rejected malformed input", extra={"reason": str(e)})
        return False


__all__ = [
    "VerifyingKey",
    "Proof",
    "load_vk",
    "load_proof",
    "verify_parsed",
    "verify_groth16",
]
