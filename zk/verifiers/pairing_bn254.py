"""
zk.verifiers.pairing_bn254
==========================

Thin BN254 (altbn128) Ate pairing wrapper over `py_ecc.optimized_bn128`.

Public API
----------
- pair(P, Q) -> GTElement
- product_of_pairings(pairs) -> GTElement
- check_pairing_product(pairs) -> bool
- is_on_curve_g1(P), is_on_curve_g2(Q)
- g1_from_affine(x, y), g2_from_affine((x0, x1), (y0, y1))
- normalize_g1(P) / normalize_g2(Q)  (to affine ints)
- g1_generator(), g2_generator(), g1_mul, g2_mul, g1_add, g1_neg
- curve_order(), field_modulus()

Notes
-----
- Point ordering follows the common convention e(P, Q) with P in G1, Q in G2.
  The underlying `py_ecc` pairing call expects (Q, P); this wrapper handles it.
- Points are py_ecc projective triples; affine ints only appear at the edges.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Tuple

from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    FQ12,
    G1 as _G1,
    G2 as _G2,
    add as _add,
    b as _B,
    b2 as _B2,
    curve_order as _Q,
    field_modulus as _P,
    is_on_curve as _is_on_curve,
    multiply as _mul,
    neg as _neg,
    normalize as _normalize,
    pairing as _pairing,
)

# Opaque py_ecc projective points.
G1Point = Any
G2Point = Any
GTElement = FQ12


def curve_order() -> int:
    """Return the BN254 subgroup order r (the scalar field modulus)."""
    return int(_Q)


def field_modulus() -> int:
    """Return the base field modulus p."""
    return int(_P)


def g1_generator() -> G1Point:
    return _G1


def g2_generator() -> G2Point:
    return _G2


def g1_mul(P: G1Point, k: int) -> G1Point:
    return _mul(P, int(k) % curve_order())


def g2_mul(Q: G2Point, k: int) -> G2Point:
    return _mul(Q, int(k) % curve_order())


def g1_add(P: G1Point, R: G1Point) -> G1Point:
    return _add(P, R)


def g1_neg(P: G1Point) -> G1Point:
    return _neg(P)


def _is_inf(P: Any) -> bool:
    # py_ecc projective points at infinity have z == 0.
    return P is None or P[2] == P[2].zero()


def _check_fq(*coords: int) -> None:
    for c in coords:
        if not 0 <= c < _P:
            raise ValueError("coordinate is not a canonical base field element")


def g1_from_affine(x: int, y: int) -> G1Point:
    """Build a projective G1 point; (0, 0) is the point at infinity. Raises ValueError for x, y >= p."""
    _check_fq(x, y)
    if x == 0 and y == 0:
        return (FQ.one(), FQ.one(), FQ.zero())
    return (FQ(x), FQ(y), FQ.one())


def g2_from_affine(x: Tuple[int, int], y: Tuple[int, int]) -> G2Point:
    """Build a projective G2 point from (c0, c1) limbs; all-zero is infinity. Raises ValueError for limbs >= p."""
    _check_fq(x[0], x[1], y[0], y[1])
    if x == (0, 0) and y == (0, 0):
        return (FQ2.one(), FQ2.one(), FQ2.zero())
    return (FQ2([x[0], x[1]]), FQ2([y[0], y[1]]), FQ2.one())


def is_on_curve_g1(P: G1Point) -> bool:
    """Return True if P is on G1 or is the point at infinity."""
    return _is_inf(P) or bool(_is_on_curve(P, _B))


def is_on_curve_g2(Q: G2Point) -> bool:
    """Return True if Q is on the twist or is the point at infinity."""
    return _is_inf(Q) or bool(_is_on_curve(Q, _B2))


def g2_in_subgroup(Q: G2Point) -> bool:
    """Return True if r·Q is the point at infinity (Q lies in the order-r subgroup of the twist)."""
    return _is_inf(Q) or _is_inf(_mul(Q, _Q))


def normalize_g1(P: G1Point) -> Optional[Tuple[int, int]]:
    """Affine (x, y) ints, or None for the point at infinity."""
    if _is_inf(P):
        return None
    ax, ay = _normalize(P)
    return int(ax.n), int(ay.n)


def normalize_g2(Q: G2Point) -> Optional[Tuple[Tuple[int, int], Tuple[int, int]]]:
    """Affine ((x_c0, x_c1), (y_c0, y_c1)) ints, or None for the point at infinity."""
    if _is_inf(Q):
        return None
    ax, ay = _normalize(Q)
    xc0, xc1 = int(ax.coeffs[0]), int(ax.coeffs[1])
    yc0, yc1 = int(ay.coeffs[0]), int(ay.coeffs[1])
    return (xc0, xc1), (yc0, yc1)


# -------------------------
# Pairing
# -------------------------


def pair(P: G1Point, Q: G2Point, *, validate: bool = True) -> GTElement:
    """
    Compute the Ate pairing e(P, Q) on BN254.

    Raises ValueError if `validate` is set and either point is off-curve.
    Pairings involving infinity return the identity in GT.
    """
    if validate:
        if not is_on_curve_g1(P):
            raise ValueError("G1 point is not on curve")
        if not is_on_curve_g2(Q):
            raise ValueError("G2 point is not on curve")
    if _is_inf(P) or _is_inf(Q):
        return FQ12.one()
    return _pairing(Q, P)


def product_of_pairings(
    pairs: Iterable[Tuple[G1Point, G2Point]], *, validate: bool = True
) -> GTElement:
    """Compute ∏ e(P_i, Q_i)."""
    acc = FQ12.one()
    for P, Q in pairs:
        acc *= pair(P, Q, validate=validate)
    return acc


def check_pairing_product(
    pairs: Iterable[Tuple[G1Point, G2Point]], *, validate: bool = True
) -> bool:
    """Return True iff ∏ e(P_i, Q_i) == 1 in GT."""
    return product_of_pairings(pairs, validate=validate) == FQ12.one()


__all__ = [
    "pair",
    "product_of_pairings",
    "check_pairing_product",
    "is_on_curve_g1",
    "is_on_curve_g2",
    "g2_in_subgroup",
    "g1_from_affine",
    "g2_from_affine",
    "normalize_g1",
    "normalize_g2",
    "g1_generator",
    "g2_generator",
    "g1_mul",
    "g2_mul",
    "g1_add",
    "g1_neg",
    "curve_order",
    "field_modulus",
]
