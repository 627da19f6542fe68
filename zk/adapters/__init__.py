"""
zk.adapters
===========

Loaders that turn toolchain artifacts (snarkjs JSON) into the shapes the
verifiers in `zk.verifiers.*` consume.
"""

from .snarkjs_loader import (
    load_groth16,
    load_json,
    normalize_groth16_proof,
    normalize_groth16_vk,
    normalize_public_signals,
)

__all__ = [
    "load_json",
    "load_groth16",
    "normalize_groth16_vk",
    "normalize_groth16_proof",
    "normalize_public_signals",
]
