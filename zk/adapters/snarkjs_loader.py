"""
zk.adapters.snarkjs_loader
==========================

Helpers to **load and normalize** snarkjs Groth16 (bn128) JSON artifacts.

This module does not verify proofs; it parses files/JSON, coerces bigint-like
strings into Python ints and normalizes point shapes so they can be handed to
`zk.verifiers.groth16_bn254`.

snarkjs shapes
--------------
verification_key.json:
{
  "protocol": "groth16",
  "curve": "bn128",
  "nPublic": 1,
  "vk_alpha_1": [ "..", "..", "1" ],
  "vk_beta_2":  [[ "..",".." ], [ "..",".." ], [ "1","0" ]],
  "vk_gamma_2": ...,
  "vk_delta_2": ...,
  "IC": [ [ "..", "..", "1" ], ... ]
}

proof.json:  { "pi_a": [..3], "pi_b": [[..2],[..2],[..2]], "pi_c": [..3], "protocol": "groth16", "curve": "bn128" }
public.json: [ "123", ... ]

Some tools wrap as { "proof": {...}, "publicSignals": [...] }; both are handled.
The trailing projective coordinate is checked (z must be 1, or 0 for the
point at infinity) and dropped; normalized points are affine.

Exports
-------
- load_json(source) -> Any
- normalize_numbers(obj) -> obj_with_ints
- is_groth16_vk(obj) / is_groth16_proof(obj)
- normalize_groth16_vk(vk) -> dict
- normalize_groth16_proof(proof_or_bundle) -> (proof_dict, public_inputs_list)
- normalize_public_signals(publics) -> list[int]
- load_groth16(vk_source, proof_source, public_source=None) -> (vk, proof, publics)
"""

from __future__ import annotations

import json
import os
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

JsonLike = Union[str, bytes, os.PathLike, Mapping[str, Any], list]


# -----------------------------------------------------------------------------
# I/O helpers
# -----------------------------------------------------------------------------


def load_json(source: JsonLike) -> Any:
    """
    Load JSON from a mapping/list (shallow-copied), a path, raw bytes or a
    string of JSON text. Raises ValueError on failure.
    """
    if isinstance(source, Mapping):
        return dict(source)
    if isinstance(source, list):
        return list(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        return json.loads(bytes(source).decode("utf-8"))
    s = os.fspath(source) if isinstance(source, os.PathLike) else str(source)

    if os.path.isfile(s):
        with open(s, "r", encoding="utf-8") as f:
            return json.load(f)

    try:
        return json.loads(s)
    except json.JSONDecodeError as e:
        raise ValueError(f"Could not load JSON from provided source: {e}") from e


# -----------------------------------------------------------------------------
# Number coercion (dec/hex/JS BigInt strings → Python int)
# -----------------------------------------------------------------------------

_INT_RE = re.compile(r"^\s*([+-]?(?:0x[0-9a-fA-F]+|\d+))n?\s*$")


def _maybe_to_int(x: Any) -> Any:
    if isinstance(x, bool):
        return x
    if isinstance(x, int):
        return x
    if isinstance(x, str):
        m = _INT_RE.match(x)
        if m:
            val = m.group(1)
            # int(.., 0) rejects leading zeros in decimals ("007").
            if val.lower().lstrip("+-").startswith("0x"):
                return int(val, 16)
            return int(val, 10)
    return x


def _as_int(x: Any) -> int:
    v = _maybe_to_int(x)
    if isinstance(v, bool) or not isinstance(v, int):
        raise ValueError(f"not an integer: {x!r}")
    return v


def normalize_numbers(obj: Any) -> Any:
    """
    Recursively convert numeric-like strings ("123", "0xabc", "123n") into
    Python ints. Other types are preserved.
    """
    if isinstance(obj, Mapping):
        return {k: normalize_numbers(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [normalize_numbers(v) for v in obj]
    return _maybe_to_int(obj)


# -----------------------------------------------------------------------------
# Shape detection
# -----------------------------------------------------------------------------


def is_groth16_vk(obj: Mapping[str, Any]) -> bool:
    return all(k in obj for k in ("vk_alpha_1", "vk_beta_2", "vk_gamma_2", "vk_delta_2", "IC"))


def is_groth16_proof(obj: Mapping[str, Any]) -> bool:
    if isinstance(obj.get("proof"), Mapping):
        obj = obj["proof"]
    return all(k in obj for k in ("pi_a", "pi_b", "pi_c"))


# -----------------------------------------------------------------------------
# Groth16 normalization
# -----------------------------------------------------------------------------


def _norm_g1(pt: Iterable[Any]) -> List[int]:
    arr = list(pt)
    if len(arr) == 3:
        z = _as_int(arr[2])
        if z == 0:
            return [0, 0]
        if z != 1:
            raise ValueError("G1 point must be affine (z = 1)")
    elif len(arr) != 2:
        raise ValueError("G1 point must have 2 or 3 coordinates")
    return [_as_int(arr[0]), _as_int(arr[1])]


def _norm_g2(pt: Iterable[Iterable[Any]]) -> List[List[int]]:
    arr = [list(a) for a in pt]
    if any(len(a) != 2 for a in arr):
        raise ValueError("G2 coordinates must be [c0, c1] pairs")
    if len(arr) == 3:
        z = [_as_int(arr[2][0]), _as_int(arr[2][1])]
        if z == [0, 0]:
            return [[0, 0], [0, 0]]
        if z != [1, 0]:
            raise ValueError("G2 point must be affine (z = [1, 0])")
    elif len(arr) != 2:
        raise ValueError("G2 point must be [[x0,x1],[y0,y1]] with optional z")
    return [
        [_as_int(arr[0][0]), _as_int(arr[0][1])],
        [_as_int(arr[1][0]), _as_int(arr[1][1])],
    ]


def normalize_groth16_vk(vk: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Normalize a snarkjs Groth16 verifying key into a dict with the same key
    names snarkjs uses, affine points and Python ints everywhere.
    """
    if not is_groth16_vk(vk):
        raise ValueError("Provided object does not look like a Groth16 verifying key")
    out: Dict[str, Any] = {}

    for meta_key in ("protocol", "curve"):
        if meta_key in vk:
            out[meta_key] = str(vk[meta_key])

    out["vk_alpha_1"] = _norm_g1(vk["vk_alpha_1"])
    out["vk_beta_2"] = _norm_g2(vk["vk_beta_2"])
    out["vk_gamma_2"] = _norm_g2(vk["vk_gamma_2"])
    out["vk_delta_2"] = _norm_g2(vk["vk_delta_2"])

    IC = vk.get("IC")
    if not isinstance(IC, list) or len(IC) == 0:
        raise ValueError("vk.IC must be a non-empty list of G1 points")
    out["IC"] = [_norm_g1(pt) for pt in IC]

    n_public = vk.get("nPublic")
    if n_public is not None and _as_int(n_public) != len(IC) - 1:
        raise ValueError(f"nPublic={n_public} does not match IC length {len(IC)}")
    out["nPublic"] = len(IC) - 1
    return out


def normalize_public_signals(publics: Any) -> List[int]:
    if publics is None:
        return []
    if not isinstance(publics, list):
        raise ValueError("publicSignals must be a list when present")
    return [_as_int(v) for v in publics]


def normalize_groth16_proof(bundle_or_proof: Mapping[str, Any]) -> Tuple[Dict[str, Any], List[int]]:
    """
    Accept either a flat proof dict {pi_a, pi_b, pi_c, publicSignals?} or a
    bundle {proof: {...}, publicSignals: [...]}.

    Returns: (proof_dict, public_inputs_list_of_ints)
    """
    if isinstance(bundle_or_proof.get("proof"), Mapping):
        proof = bundle_or_proof["proof"]
    else:
        proof = bundle_or_proof
    publics = bundle_or_proof.get("publicSignals", proof.get("publicSignals"))

    for k in ("pi_a", "pi_b", "pi_c"):
        if k not in proof:
            raise ValueError(f"Groth16 proof missing '{k}'")

    out: Dict[str, Any] = {}
    for meta_key in ("protocol", "curve"):
        if meta_key in proof:
            out[meta_key] = str(proof[meta_key])

    out["pi_a"] = _norm_g1(proof["pi_a"])
    out["pi_b"] = _norm_g2(proof["pi_b"])
    out["pi_c"] = _norm_g1(proof["pi_c"])
    return out, normalize_public_signals(publics)


def load_groth16(
    vk_source: JsonLike,
    proof_source: JsonLike,
    public_source: Optional[JsonLike] = None,
) -> Tuple[Dict[str, Any], Dict[str, Any], List[int]]:
    """
    Convenience loader:
      vk, proof, publics = load_groth16("verification_key.json", "proof.json", "public.json")

    `public_source` overrides any publicSignals embedded in the proof file.
    """
    vk = normalize_groth16_vk(load_json(vk_source))
    proof, publics = normalize_groth16_proof(load_json(proof_source))
    if public_source is not None:
        publics = normalize_public_signals(load_json(public_source))
    return vk, proof, publics


__all__ = [
    "load_json",
    "normalize_numbers",
    "is_groth16_vk",
    "is_groth16_proof",
    "normalize_groth16_vk",
    "normalize_groth16_proof",
    "normalize_public_signals",
    "load_groth16",
]
