from __future__ import annotations
"""
Ledger events.

Every accepted state change appends exactly one event to the persisted log
(inside the same write batch) and, after commit, hands it to subscribers.

Events:
  - HuntCreated:    a hunt was registered and its deposit escrowed.
  - HintPurchased:  a seeker paid into a hunt's pot.
  - ClaimSubmitted: a proof was accepted and the hunt moved to Claimed.
  - Withdrawal:     the claimer released part of the pot.
  - HuntExpired:    an unclaimed hunt expired and the creator was refunded.

`seq` is the position in the log (0-based, gap-free). `ts` is the ledger
clock in UNIX seconds.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Type, Union


class EventType(str, Enum):
    HUNT_CREATED = "HuntCreated"
    HINT_PURCHASED = "HintPurchased"
    CLAIM_SUBMITTED = "ClaimSubmitted"
    WITHDRAWAL = "Withdrawal"
    HUNT_EXPIRED = "HuntExpired"


@dataclass(frozen=True)
class HuntCreated:
    seq: int
    ts: int
    hunt_id: int
    creator: str
    location_commitment: int
    prize: int
    claimable_after: int
    expires_at: int
    hint_price: int

    etype = EventType.HUNT_CREATED


@dataclass(frozen=True)
class HintPurchased:
    seq: int
    ts: int
    hunt_id: int
    seeker: str
    amount: int

    etype = EventType.HINT_PURCHASED


@dataclass(frozen=True)
class ClaimSubmitted:
    seq: int
    ts: int
    hunt_id: int
    claimer: str
    claim_commitment: int

    etype = EventType.CLAIM_SUBMITTED


@dataclass(frozen=True)
class Withdrawal:
    seq: int
    ts: int
    hunt_id: int
    claimer: str
    amount: int
    remaining: int

    etype = EventType.WITHDRAWAL


@dataclass(frozen=True)
class HuntExpired:
    seq: int
    ts: int
    hunt_id: int
    creator: str
    refunded: int

    etype = EventType.HUNT_EXPIRED


Event = Union[HuntCreated, HintPurchased, ClaimSubmitted, Withdrawal, HuntExpired]
EventHandler = Callable[[Event], None]

_REGISTRY: Dict[EventType, Type[Any]] = {
    EventType.HUNT_CREATED: HuntCreated,
    EventType.HINT_PURCHASED: HintPurchased,
    EventType.CLAIM_SUBMITTED: ClaimSubmitted,
    EventType.WITHDRAWAL: Withdrawal,
    EventType.HUNT_EXPIRED: HuntExpired,
}


def event_to_dict(ev: Event) -> Dict[str, Any]:
    d = asdict(ev)
    d["etype"] = ev.etype.value
    return d


def event_from_dict(d: Mapping[str, Any]) -> Event:
    """Rebuild an event from `event_to_dict` output. Unknown types raise ValueError."""
    etype = EventType(d["etype"])
    cls = _REGISTRY[etype]
    fields = {k: v for k, v in d.items() if k != "etype"}
    try:
        return cls(**fields)
    except TypeError as e:
        raise ValueError(f"malformed {etype.value} event: {e}") from e


__all__ = [
    "EventType",
    "HuntCreated",
    "HintPurchased",
    "ClaimSubmitted",
    "Withdrawal",
    "HuntExpired",
    "Event",
    "EventHandler",
    "event_to_dict",
    "event_from_dict",
]
