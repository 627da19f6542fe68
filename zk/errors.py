"""Exceptions raised by the zero-knowledge helpers."""

from __future__ import annotations


class ZKError(RuntimeError):
    """Raised for malformed inputs or missing proving/verifying backends."""


class FieldRangeError(ZKError, ValueError):
    """A value is not a canonical element of the BN254 scalar field (0 <= v < r)."""


class WitnessError(ZKError, ValueError):
    """Private inputs that cannot satisfy the claim circuit."""


class ProverError(ZKError):
    """The external prover failed or produced unusable output."""


__all__ = ["ZKError", "FieldRangeError", "WitnessError", "ProverError"]
