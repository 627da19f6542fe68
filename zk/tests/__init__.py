"""
zk.tests helpers

Utilities shared by zk/* and hunt/* tests.

Exports:
- env_flag(name, default=False) -> bool
- configure_test_logging() -> None
- synthetic_groth16(public_inputs, seed=7) -> (vk_json, proof_json)
- g1_json(P) / g2_json(Q)
- twist_point_outside_subgroup() -> G2 point on the twist but not in G2

Environment toggles:
- ZK_TEST_LOG=1           → enable INFO logging for zk.*

synthetic_groth16
-----------------
Builds a verifying key and a proof that satisfy the Groth16 pairing equation
for the given public inputs without any circuit: pick α, β, γ, δ, IC scalars
and A = a·G1, B = b·G2, then solve

    a·b = α·β + x·γ + c·δ      with x = ic_0 + Σ in_i · ic_{i+1}

for c. The result is serialized in snarkjs layout (projective, z = 1), so it
exercises the same loaders and pairing check a real proof goes through.
"""

from __future__ import annotations

import logging
import os
import random
from typing import Any, Dict, List, Sequence, Tuple

from py_ecc.optimized_bn128 import FQ2, b2, field_modulus

from zk.verifiers.pairing_bn254 import (
    curve_order,
    g1_generator,
    g1_mul,
    g2_generator,
    g2_in_subgroup,
    g2_mul,
    normalize_g1,
    normalize_g2,
)


def env_flag(name: str, default: bool = False) -> bool:
    """Read an environment flag: "1", "true", "yes", "on" → True."""
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "on"}


def configure_test_logging(level: int | None = None) -> None:
    if level is None:
        level = logging.INFO
    if env_flag("ZK_TEST_LOG", False):
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        logging.getLogger("zk").setLevel(level)


def g1_json(P: Any) -> List[str]:
    aff = normalize_g1(P)
    if aff is None:
        return ["0", "1", "0"]
    return [str(aff[0]), str(aff[1]), "1"]


def g2_json(Q: Any) -> List[List[str]]:
    aff = normalize_g2(Q)
    if aff is None:
        return [["0", "0"], ["1", "0"], ["0", "0"]]
    (x0, x1), (y0, y1) = aff
    return [[str(x0), str(x1)], [str(y0), str(y1)], ["1", "0"]]


def synthetic_groth16(
    public_inputs: Sequence[int], seed: int = 7
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    r = curve_order()
    rng = random.Random(seed)

    def scalar() -> int:
        return rng.randrange(1, r)

    alpha, beta, gamma, delta = scalar(), scalar(), scalar(), scalar()
    ic = [scalar() for _ in range(len(public_inputs) + 1)]
    a, b = scalar(), scalar()

    x = ic[0]
    for i, v in enumerate(public_inputs):
        x = (x + v * ic[i + 1]) % r
    c = ((a * b - alpha * beta - x * gamma) * pow(delta, -1, r)) % r

    G1, G2 = g1_generator(), g2_generator()
    vk = {
        "protocol": "groth16",
        "curve": "bn128",
        "nPublic": len(public_inputs),
        "vk_alpha_1": g1_json(g1_mul(G1, alpha)),
        "vk_beta_2": g2_json(g2_mul(G2, beta)),
        "vk_gamma_2": g2_json(g2_mul(G2, gamma)),
        "vk_delta_2": g2_json(g2_mul(G2, delta)),
        "IC": [g1_json(g1_mul(G1, k)) for k in ic],
    }
    proof = {
        "protocol": "groth16",
        "curve": "bn128",
        "pi_a": g1_json(g1_mul(G1, a)),
        "pi_b": g2_json(g2_mul(G2, b)),
        "pi_c": g1_json(g1_mul(G1, c)),
    }
    return vk, proof



def _fq2_sqrt(a: Any) -> Any:
    # p = 3 mod 4: square root in Fp2 = Fp[i]/(i^2 + 1); None for non-squares.
    p = field_modulus
    a1 = a ** ((p - 3) // 4)
    alpha = a1 * a1 * a
    x0 = a1 * a
    if alpha == -FQ2.one():
        x = FQ2([0, 1]) * x0
    else:
        x = (FQ2.one() + alpha) ** ((p - 1) // 2) * x0
    return x if x * x == a else None


def twist_point_outside_subgroup() -> Any:
    """First point (k + i, y) on y^2 = x^3 + b2 whose order is not r."""
    k = 1
    while True:
        x = FQ2([k, 1])
        y = _fq2_sqrt(x ** 3 + b2)
        if y is not None:
            Q = (x, y, FQ2.one())
            if not g2_in_subgroup(Q):
                return Q
        k += 1


configure_test_logging()

__all__ = [
    "env_flag",
    "configure_test_logging",
    "g1_json",
    "g2_json",
    "synthetic_groth16",
    "twist_point_outside_subgroup",
]
