"""
zk.types
========

`ClaimProof`: what a finder hands to the ledger. Produced by the prover,
written to disk as JSON and read back by `claim`.

    {
      "hunt_id": 0,
      "claimer": "0x…40 hex…",
      "claim_commitment": "123…",     # decimal string (JSON-safe bigint)
      "proof": { "pi_a": [...], "pi_b": [...], "pi_c": [...], ... },
      "public_signals": ["123…"]
    }

Field elements are carried as decimal strings, matching snarkjs output.
"""

from __future__ import annotations

from typing import Any, Dict, List

import msgspec

from .commitments import field_element, normalize_identity


class ClaimProof(msgspec.Struct, frozen=True):
    hunt_id: int
    claimer: str
    claim_commitment: str
    proof: Dict[str, Any]
    public_signals: List[str] = msgspec.field(default_factory=list)

    @property
    def commitment(self) -> int:
        return field_element(self.claim_commitment, "claim_commitment")

    def validate(self) -> "ClaimProof":
        """
        Shape checks: canonical claimer, in-field commitment, and (when
        present) a public signal vector equal to [claim_commitment].
        """
        if self.hunt_id < 0:
            raise ValueError("hunt_id must be non-negative")
        normalize_identity(self.claimer)
        c = self.commitment
        if self.public_signals:
            sig = [field_element(s, "public_signal") for s in self.public_signals]
            if sig != [c]:
                raise ValueError("public signals do not match the claim commitment")
        return self

    @classmethod
    def build(
        cls,
        hunt_id: int,
        claimer: str,
        claim_commitment: int,
        proof: Dict[str, Any],
    ) -> "ClaimProof":
        return cls(
            hunt_id=int(hunt_id),
            claimer=normalize_identity(claimer),
            claim_commitment=str(int(claim_commitment)),
            proof=dict(proof),
            public_signals=[str(int(claim_commitment))],
        )


_encoder = msgspec.json.Encoder()
_decoder = msgspec.json.Decoder(ClaimProof)


def encode_claim_proof(cp: ClaimProof) -> bytes:
    return _encoder.encode(cp)


def decode_claim_proof(data: bytes) -> ClaimProof:
    """Decode and validate. Raises msgspec.ValidationError / ValueError."""
    return _decoder.decode(data).validate()


__all__ = ["ClaimProof", "encode_claim_proof", "decode_claim_proof"]
