"""
zk.verifiers.poseidon
=====================

Poseidon hash over the BN254 (altbn128) scalar field Fr, compatible with
circomlib's `Poseidon(n)` template.

Semantics
---------
For `n` inputs the permutation width is `t = n + 1`. The initial state is
`[0, in_0, ..., in_{n-1}]`, one permutation is applied and `state[0]` is the
digest. There is no padding and no multi-chunk absorb; the width is chosen
per call from the input count.

Parameters
----------
Round constants and the MDS matrix are generated deterministically with the
Grain LFSR procedure of the Poseidon reference implementation (field=GF(p),
S-box x^5, n=254 bits, R_F=8 and the per-width R_P table circomlib uses).
Generated sets are cached per width.

The reference implementation additionally screens candidate MDS matrices for
infinitely long invariant subspace trails and redraws on failure. That screen
is not performed here; the first Cauchy matrix drawn is used. If a circuit was
built with parameters that differ from the generated ones, register them
explicitly:

>>> load_params_json("poseidon_t3.json", name="bn254_t3")

JSON schema
-----------
{
  "t": 3, "R_F": 8, "R_P": 57, "alpha": 5,
  "mds": [[...t ints...], ...],
  "rc":  [[...t ints...], ... R_F+R_P rows ...]
}
Integers may be JSON numbers, decimal strings or 0x-hex strings.

Public API
----------
- PoseidonParams(t, R_F, R_P, alpha, mds, rc)
- circom_params(t)
- register_params(name, params) / get_params(name) / load_params_json(path, name=None)
- poseidon_permute(state, params)
- poseidon_hash(inputs)
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterator, List, Optional, Sequence, Union

from ..errors import FieldRangeError
from .pairing_bn254 import curve_order

# ---------------------------
# Field arithmetic (mod Fr)
# ---------------------------

_MOD = int(curve_order())
FIELD_BITS = 254

FULL_ROUNDS = 8
# circomlib's partial round counts, indexed by t - 2.
PARTIAL_ROUNDS = (56, 57, 56, 60, 60, 63, 64, 63, 60, 66, 60, 65, 70, 60, 64, 68)

MAX_INPUTS = len(PARTIAL_ROUNDS)


def _fmul(a: int, b: int) -> int:
    return (a * b) % _MOD


def _fpow_alpha(x: int, alpha: int) -> int:
    if alpha == 5:
        x2 = _fmul(x, x)
        x4 = _fmul(x2, x2)
        return _fmul(x, x4)
    return pow(x, alpha, _MOD)


def check_field_element(value: int, name: str = "value") -> int:
    """Return `value` if it is a canonical Fr element, else raise FieldRangeError."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise FieldRangeError(f"{name} must be an int, got {type(value).__name__}")
    if not 0 <= value < _MOD:
        raise FieldRangeError(f"{name} is outside the BN254 scalar field")
    return value


# ---------------------------
# Parameters & registry
# ---------------------------


@dataclass(frozen=True)
class PoseidonParams:
    t: int  # state width
    R_F: int  # number of full rounds
    R_P: int  # number of partial rounds
    alpha: int  # S-box exponent
    mds: List[List[int]]  # t x t
    rc: List[List[int]]  # (R_F + R_P) x t

    def validate(self) -> None:
        if self.t < 2:
            raise ValueError("t must be >= 2")
        if self.R_F % 2 != 0:
            raise ValueError("R_F must be even (split half-before/after partial rounds)")
        if self.alpha < 3 or self.alpha % 2 == 0:
            raise ValueError("alpha must be an odd integer >= 3")
        if len(self.mds) != self.t or any(len(row) != self.t for row in self.mds):
            raise ValueError("mds must be t x t")
        expected_rounds = self.R_F + self.R_P
        if len(self.rc) != expected_rounds or any(len(row) != self.t for row in self.rc):
            raise ValueError(f"rc must be (R_F+R_P) x t = {expected_rounds} x {self.t}")


_PARAMS_REGISTRY: Dict[str, PoseidonParams] = {}


def params_name(t: int) -> str:
    return f"bn254_t{t}"


def register_params(name: str, params: PoseidonParams) -> None:
    """
    Register a parameter set under `name`. A set registered as "bn254_t{t}"
    takes precedence over the generated one for width t.
    """
    if not name or not isinstance(name, str):
        raise ValueError("name must be a non-empty string")
    params.validate()
    _PARAMS_REGISTRY[name] = params


def unregister_params(name: str) -> None:
    _PARAMS_REGISTRY.pop(name, None)


def get_params(name: str = "bn254_t3") -> PoseidonParams:
    if name in _PARAMS_REGISTRY:
        return _PARAMS_REGISTRY[name]
    if name.startswith("bn254_t"):
        try:
            t = int(name[len("bn254_t"):])
        except ValueError:
            t = 0
        if 2 <= t <= MAX_INPUTS + 1:
            return circom_params(t)
    raise KeyError(
        f"Poseidon params '{name}' are not registered. "
        "Load them with load_params_json(...) or register_params(...)."
    )


def _to_int(x: Union[int, str]) -> int:
    if isinstance(x, int):
        return x % _MOD
    s = str(x).strip().lower()
    if s.startswith("0x"):
        return int(s, 16) % _MOD
    return int(s) % _MOD


def load_params_json(path: str, name: Optional[str] = None) -> PoseidonParams:
    """
    Load a Poseidon params JSON file and register it.

    If `name` is None it defaults to "bn254_t{t}", overriding the generated
    parameters for that width.
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    t = int(raw["t"])
    params = PoseidonParams(
        t=t,
        R_F=int(raw["R_F"]),
        R_P=int(raw["R_P"]),
        alpha=int(raw.get("alpha", 5)),
        mds=[[_to_int(v) for v in row] for row in raw["mds"]],
        rc=[[_to_int(v) for v in row] for row in raw["rc"]],
    )
    params.validate()
    register_params(name or params_name(t), params)
    return params


# ---------------------------
# Grain LFSR parameter generation
# ---------------------------


class _Grain:
    """80-bit self-shrinking Grain LFSR seeded from the instance description."""

    def __init__(self, t: int, R_F: int, R_P: int, n: int = FIELD_BITS) -> None:
        bits: List[int] = []
        for value, width in ((1, 2), (0, 4), (n, 12), (t, 12), (R_F, 10), (R_P, 10)):
            bits.extend(int(b) for b in format(value, f"0{width}b"))
        bits.extend([1] * 30)
        self._s = bits
        for _ in range(160):
            self._clock()
        self._bits = self._output()

    def _clock(self) -> int:
        s = self._s
        bit = s[62] ^ s[51] ^ s[38] ^ s[23] ^ s[13] ^ s[0]
        s.pop(0)
        s.append(bit)
        return bit

    def _output(self) -> Iterator[int]:
        # Bits come in pairs; the second is emitted only when the first is 1.
        while True:
            b = self._clock()
            while b == 0:
                self._clock()
                b = self._clock()
            yield self._clock()

    def next_int(self, nbits: int) -> int:
        v = 0
        for _ in range(nbits):
            v = (v << 1) | next(self._bits)
        return v


def _generate(t: int) -> PoseidonParams:
    R_F = FULL_ROUNDS
    R_P = PARTIAL_ROUNDS[t - 2]
    grain = _Grain(t, R_F, R_P)

    flat: List[int] = []
    while len(flat) < (R_F + R_P) * t:
        v = grain.next_int(FIELD_BITS)
        if v < _MOD:
            flat.append(v)
    rc = [flat[r * t:(r + 1) * t] for r in range(R_F + R_P)]

    while True:
        draws = [grain.next_int(FIELD_BITS) % _MOD for _ in range(2 * t)]
        while len(set(draws)) != len(draws):
            draws = [grain.next_int(FIELD_BITS) % _MOD for _ in range(2 * t)]
        xs, ys = draws[:t], draws[t:]
        if any((x + y) % _MOD == 0 for x in xs for y in ys):
            continue
        mds = [[pow((x + y) % _MOD, -1, _MOD) for y in ys] for x in xs]
        break

    params = PoseidonParams(t=t, R_F=R_F, R_P=R_P, alpha=5, mds=mds, rc=rc)
    params.validate()
    return params


@lru_cache(maxsize=None)
def circom_params(t: int) -> PoseidonParams:
    """Generated parameters for width t (2 <= t <= 17)."""
    if not 2 <= t <= MAX_INPUTS + 1:
        raise ValueError(f"unsupported Poseidon width t={t}")
    return _generate(t)


# ---------------------------
# Permutation
# ---------------------------


def _apply_mds(state: List[int], mds: List[List[int]]) -> List[int]:
    t = len(state)
    return [sum(mds[i][j] * state[j] for j in range(t)) % _MOD for i in range(t)]


def poseidon_permute(state: Sequence[int], params: PoseidonParams) -> List[int]:
    """
    Poseidon permutation.

    Round schedule:
      - R_F/2 full rounds (S-box on all t elements)
      - R_P partial rounds (S-box on the first element only)
      - R_F/2 full rounds

    Each round is: add round constants, S-box, MDS.
    """
    t, R_F, R_P, alpha, mds, rc = (
        params.t,
        params.R_F,
        params.R_P,
        params.alpha,
        params.mds,
        params.rc,
    )
    if len(state) != t:
        raise ValueError(f"state length {len(state)} != t={t}")

    x = [int(v) % _MOD for v in state]
    half = R_F // 2
    for r in range(R_F + R_P):
        row = rc[r]
        x = [(x[i] + row[i]) % _MOD for i in range(t)]
        if r < half or r >= half + R_P:
            x = [_fpow_alpha(v, alpha) for v in x]
        else:
            x[0] = _fpow_alpha(x[0], alpha)
        x = _apply_mds(x, mds)
    return x


# ---------------------------
# Hash interface
# ---------------------------


def poseidon_hash(inputs: Sequence[int]) -> int:
    """
    circomlib-compatible Poseidon of 1..16 field elements.

    Inputs must already be canonical Fr elements; anything outside [0, r)
    raises FieldRangeError instead of being silently reduced.
    """
    n = len(inputs)
    if not 1 <= n <= MAX_INPUTS:
        raise ValueError(f"Poseidon takes 1..{MAX_INPUTS} inputs, got {n}")
    vals = [check_field_element(v, f"input[{i}]") for i, v in enumerate(inputs)]
    params = get_params(params_name(n + 1))
    state = poseidon_permute([0] + vals, params)
    return state[0]


__all__ = [
    "FIELD_BITS",
    "FULL_ROUNDS",
    "PARTIAL_ROUNDS",
    "MAX_INPUTS",
    "FieldRangeError",
    "PoseidonParams",
    "check_field_element",
    "circom_params",
    "params_name",
    "register_params",
    "unregister_params",
    "get_params",
    "load_params_json",
    "poseidon_permute",
    "poseidon_hash",
]
