"""
Hunt and Claim records.

Pure dataclasses with small dict helpers; the store persists `to_dict()`
output as canonical CBOR. All amounts and timestamps are ints (base units,
UNIX seconds of the ledger clock).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional

Amount = int
HuntId = int
Identity = str  # "0x" + 40 lower-case hex


class HuntStatus(str, Enum):
    ACTIVE = "Active"
    CLAIMED = "Claimed"
    EXPIRED = "Expired"

    @property
    def is_terminal(self) -> bool:
        return self is not HuntStatus.ACTIVE


@dataclass(frozen=True)
class Hunt:
    id: HuntId
    creator: Identity
    location_commitment: int
    initial_prize: Amount
    created_at: int
    claimable_after: int
    expires_at: int
    hint_price: Amount
    status: HuntStatus = HuntStatus.ACTIVE
    refunded: Amount = 0

    def in_lockout(self, now: int) -> bool:
        return now < self.claimable_after

    def is_expired_at(self, now: int) -> bool:
        return now >= self.expires_at

    def with_status(self, status: HuntStatus, **changes: Any) -> "Hunt":
        return replace(self, status=status, **changes)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["status"] = self.status.value
        return d

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Hunt":
        return Hunt(
            id=int(d["id"]),
            creator=str(d["creator"]),
            location_commitment=int(d["location_commitment"]),
            initial_prize=int(d["initial_prize"]),
            created_at=int(d["created_at"]),
            claimable_after=int(d["claimable_after"]),
            expires_at=int(d["expires_at"]),
            hint_price=int(d["hint_price"]),
            status=HuntStatus(d.get("status", HuntStatus.ACTIVE.value)),
            refunded=int(d.get("refunded", 0)),
        )


@dataclass(frozen=True)
class Claim:
    hunt_id: HuntId
    claimer: Identity
    claim_commitment: int
    claim_time: int
    last_withdrawal_time: int = 0
    total_withdrawn: Amount = 0

    def next_withdrawal_time(self, interval: int) -> int:
        """0 means a withdrawal is allowed immediately."""
        if self.last_withdrawal_time == 0:
            return 0
        return self.last_withdrawal_time + interval

    def after_withdrawal(self, now: int, amount: Amount) -> "Claim":
        return replace(
            self,
            last_withdrawal_time=now,
            total_withdrawn=self.total_withdrawn + amount,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Claim":
        return Claim(
            hunt_id=int(d["hunt_id"]),
            claimer=str(d["claimer"]),
            claim_commitment=int(d["claim_commitment"]),
            claim_time=int(d["claim_time"]),
            last_withdrawal_time=int(d.get("last_withdrawal_time", 0)),
            total_withdrawn=int(d.get("total_withdrawn", 0)),
        )


@dataclass(frozen=True)
class HuntView:
    """Read-side snapshot combining a hunt, its claim and its pot."""

    hunt: Hunt
    claim: Optional[Claim]
    pot_balance: Amount
    total_contributions: Amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hunt": self.hunt.to_dict(),
            "claim": self.claim.to_dict() if self.claim else None,
            "pot_balance": self.pot_balance,
            "total_contributions": self.total_contributions,
        }


__all__ = [
    "Amount",
    "HuntId",
    "Identity",
    "HuntStatus",
    "Hunt",
    "Claim",
    "HuntView",
]
