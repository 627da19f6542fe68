"""
hunt.tests helpers

Identities and a canonical hunt shared by the ledger tests. Fixtures
(`ledger`, `clock`, `verifier`, `kv`) live in the repository conftest.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

DAY = 86_400

CREATOR = "0x" + "a1" * 20
FINDER = "0x" + "b2" * 20
SEEKER = "0x" + "c3" * 20
OTHER = "0x" + "d4" * 20

LOC = 42
CLAIM_C = 4242
PROOF: Dict[str, Any] = {"pi_a": ["1", "2", "1"], "pi_b": [["1", "2"], ["3", "4"], ["1", "0"]], "pi_c": ["5", "6", "1"]}

DEFAULT_HUNT = dict(
    location_commitment=LOC,
    lockout_seconds=DAY,
    duration_seconds=14 * DAY,
    hint_price=1_000,
    deposit=1_000_000,
    creator=CREATOR,
)


def register(ledger, **overrides: Any) -> int:
    return ledger.register_hunt(**{**DEFAULT_HUNT, **overrides})


def claim(ledger, hunt_id: int, caller: str = FINDER, commitment: int = CLAIM_C) -> None:
    ledger.claim_treasure(hunt_id, PROOF, commitment, caller)


def snapshot(ledger) -> List[Tuple[bytes, bytes]]:
    return ledger.store.dump()


__all__ = [
    "DAY",
    "CREATOR",
    "FINDER",
    "SEEKER",
    "OTHER",
    "LOC",
    "CLAIM_C",
    "PROOF",
    "DEFAULT_HUNT",
    "register",
    "claim",
    "snapshot",
]
