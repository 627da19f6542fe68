# zk/verifiers/__init__.py
"""
Proof verifiers: pluggable strategy used by the hunt ledger

Every verifier implements one contract:

    verify(proof, public_output) -> bool

deterministic, side-effect free and cheap enough to call synchronously inside
a ledger transaction. `public_output` is the claim commitment, the single
public signal of the claim circuit.

Implementations
---------------
- `Groth16Verifier`  → Groth16 over BN254 with a snarkjs verifying key
- `MockVerifier`     → accepts (or rejects) everything; records calls for tests

Usage
-----
>>> from zk.verifiers import Groth16Verifier
>>> v = Groth16Verifier.from_file("verification_key.json")
>>> v.verify(proof_json, claim_commitment)
True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Protocol, Tuple, Union, runtime_checkable

from core.logging import get_logger

from ..errors import FieldRangeError, ZKError
from .groth16_bn254 import VerifyingKey, load_proof, load_vk, verify_parsed

log = get_logger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    """Result of a verification attempt."""

    ok: bool
    protocol: Optional[str] = None
    message: Optional[str] = None

    def __bool__(self) -> bool:  # allows: if result: ...
        return self.ok


@runtime_checkable
class ProofVerifier(Protocol):
    """Validates a proof against its declared public output."""

    def verify(self, proof: Any, public_output: int) -> bool:
        ...


class Groth16Verifier:
    """
    Groth16/BN254 verifier for the claim circuit.

    The verifying key is parsed once; the circuit is expected to expose
    exactly one public signal (the claim commitment).
    """

    protocol = "groth16"

    def __init__(self, vk_json: Mapping[str, Any]) -> None:
        try:
            self._vk: VerifyingKey = load_vk(vk_json)
        except (KeyError, ValueError, TypeError, IndexError) as e:
            raise ZKError(f"invalid Groth16 verifying key: {e}") from e
        if self._vk.n_public != 1:
            raise ZKError(f"claim circuit exposes 1 public signal, key declares {self._vk.n_public}")

    @classmethod
    def from_file(cls, path: str) -> "Groth16Verifier":
        from ..adapters.snarkjs_loader import load_json, normalize_groth16_vk

        try:
            vk = normalize_groth16_vk(load_json(path))
        except (OSError, ValueError) as e:
            raise ZKError(f"cannot load verifying key from {path}: {e}") from e
        return cls(vk)

    def check(self, proof: Any, public_output: Union[int, str]) -> VerificationResult:
        if not isinstance(proof, Mapping):
            return VerificationResult(False, self.protocol, "proof must be a JSON object")
        try:
            pf = load_proof(proof)
            ok = verify_parsed(self._vk, pf, [public_output])
        except (KeyError, ValueError, TypeError, IndexError) as e:
            return VerificationResult(False, self.protocol, f"malformed: {e}")
        return VerificationResult(ok, self.protocol, None if ok else "pairing check failed")

    def verify(self, proof: Any, public_output: Union[int, str]) -> bool:
        res = self.check(proof, public_output)
        if not res.ok:
            log.debug("proof rejected", extra={"reason": res.message})
        return res.ok


@dataclass
class MockVerifier:
    """Test double with the same contract; returns `accept` for every call."""

    accept: bool = True
    calls: List[Tuple[Any, int]] = field(default_factory=list)

    protocol = "mock"

    def verify(self, proof: Any, public_output: int) -> bool:
        self.calls.append((proof, public_output))
        return self.accept


def make_verifier(kind: str, vk_path: Optional[str] = None) -> ProofVerifier:
    """Build a verifier by name ("groth16" | "mock")."""
    key = kind.strip().lower()
    if key in ("groth16", "g16"):
        if not vk_path:
            raise ZKError("groth16 verifier needs a verifying key path")
        return Groth16Verifier.from_file(vk_path)
    if key == "mock":
        log.warning("using the always-accepting mock verifier")
        return MockVerifier()
    raise ZKError(f"Unsupported verifier '{kind}'. Supported: groth16, mock")


__all__ = [
    "VerificationResult",
    "ZKError",
    "FieldRangeError",
    "ProofVerifier",
    "Groth16Verifier",
    "MockVerifier",
    "make_verifier",
]
