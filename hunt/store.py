from __future__ import annotations

"""
Hunt store: typed view of ledger state over the KV interface
============================================================

Key layout (namespace `t:`, parts length-prefixed by `Prefix.key`)
-------------------------------------------------------------------

    t: hunt          | be_u64(id)                -> cbor(Hunt)
    t: claim         | be_u64(id)                -> cbor(Claim)
    t: contrib       | be_u64(id) | identity     -> cbor(int)
    t: contrib_total | be_u64(id)                -> cbor(int)
    t: counter                                   -> cbor(int)  next hunt id
    t: balance       | identity                  -> cbor(int)  released funds
    t: escrow                                    -> cbor(int)  value held in pots
    t: event         | be_u64(seq)               -> cbor(event dict)
    t: event_seq                                 -> cbor(int)  next event seq
    t: clock                                     -> cbor(int)  last ledger time

Values are canonical CBOR (`cbor2.dumps(..., canonical=True)`), so identical
state always has identical bytes.

Writes are only accepted inside `transaction()`, which wraps one KV batch:
everything written becomes visible atomically on clean exit and is rolled
back if an exception escapes. Reads issued inside the transaction observe
its own uncommitted writes.
"""

from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Tuple, Type

import cbor2

from core.db.kv import KV, Batch, Prefix
from core.errors import DeserializationError, SerializationError

from .events import Event, event_from_dict, event_to_dict
from .types import Claim, Hunt

NS = Prefix(b"t")


def _k_hunt(hunt_id: int) -> bytes:
    return NS.key(b"hunt", hunt_id)


def _k_claim(hunt_id: int) -> bytes:
    return NS.key(b"claim", hunt_id)


def _k_contrib_prefix(hunt_id: int) -> bytes:
    return NS.key(b"contrib", hunt_id)


def _k_contrib(hunt_id: int, identity: str) -> bytes:
    return NS.key(b"contrib", hunt_id, identity)


def _k_contrib_total(hunt_id: int) -> bytes:
    return NS.key(b"contrib_total", hunt_id)


def _k_balance(identity: str) -> bytes:
    return NS.key(b"balance", identity)


def _k_event(seq: int) -> bytes:
    return NS.key(b"event", seq)


K_COUNTER = NS.key(b"counter")
K_ESCROW = NS.key(b"escrow")
K_EVENT_SEQ = NS.key(b"event_seq")
K_CLOCK = NS.key(b"clock")


def _enc(obj: Any) -> bytes:
    try:
        return cbor2.dumps(obj, canonical=True)
    except (cbor2.CBOREncodeError, TypeError, ValueError) as e:
        raise SerializationError(f"cannot encode record: {e}") from e


def _dec(data: bytes, what: str) -> Any:
    try:
        return cbor2.loads(data)
    except (cbor2.CBORDecodeError, ValueError) as e:
        raise DeserializationError(f"corrupt {what} record: {e}", record=what) from e


class HuntStore:
    """
    Ledger state on top of a KV. Lightweight; the caller owns the KV's lifetime.
    """

    def __init__(self, kv: KV) -> None:
        self.kv = kv
        self._batch: Optional[Batch] = None

    # --- Transactions ---

    @contextmanager
    def transaction(self) -> Iterator["HuntStore"]:
        if self._batch is not None:
            raise RuntimeError("transaction already open")
        with self.kv.batch() as b:
            self._batch = b
            try:
                yield self
            finally:
                self._batch = None

    @property
    def in_transaction(self) -> bool:
        return self._batch is not None

    def _put(self, key: bytes, value: Any) -> None:
        if self._batch is None:
            raise RuntimeError("writes require an open transaction")
        self._batch.put(key, _enc(value))

    def _get_int(self, key: bytes, default: int = 0) -> int:
        raw = self.kv.get(key)
        if raw is None:
            return default
        v = _dec(raw, "counter")
        if isinstance(v, bool) or not isinstance(v, int):
            raise DeserializationError("expected an integer record", key=key.hex())
        return v

    # --- Hunts ---

    def get_hunt(self, hunt_id: int) -> Optional[Hunt]:
        raw = self.kv.get(_k_hunt(hunt_id))
        if raw is None:
            return None
        try:
            return Hunt.from_dict(_dec(raw, "hunt"))
        except (KeyError, TypeError, ValueError) as e:
            raise DeserializationError(f"corrupt hunt record {hunt_id}: {e}") from e

    def put_hunt(self, hunt: Hunt) -> None:
        self._put(_k_hunt(hunt.id), hunt.to_dict())

    def next_hunt_id(self) -> int:
        """Allocate a fresh id from the monotonically increasing counter."""
        hid = self._get_int(K_COUNTER)
        self._put(K_COUNTER, hid + 1)
        return hid

    def hunt_count(self) -> int:
        return self._get_int(K_COUNTER)

    def iter_hunts(self) -> Iterator[Hunt]:
        for hid in range(self.hunt_count()):
            h = self.get_hunt(hid)
            if h is not None:
                yield h

    # --- Claims ---

    def get_claim(self, hunt_id: int) -> Optional[Claim]:
        raw = self.kv.get(_k_claim(hunt_id))
        if raw is None:
            return None
        try:
            return Claim.from_dict(_dec(raw, "claim"))
        except (KeyError, TypeError, ValueError) as e:
            raise DeserializationError(f"corrupt claim record {hunt_id}: {e}") from e

    def put_claim(self, claim: Claim) -> None:
        self._put(_k_claim(claim.hunt_id), claim.to_dict())

    # --- Contributions ---

    def get_contribution(self, hunt_id: int, identity: str) -> Optional[int]:
        raw = self.kv.get(_k_contrib(hunt_id, identity))
        return None if raw is None else int(_dec(raw, "contribution"))

    def add_contribution(self, hunt_id: int, identity: str, amount: int) -> None:
        """Record a first contribution and bump the running total."""
        if self.kv.has(_k_contrib(hunt_id, identity)):
            raise RuntimeError("contribution already recorded")
        self._put(_k_contrib(hunt_id, identity), amount)
        self._put(_k_contrib_total(hunt_id), self.total_contributions(hunt_id) + amount)

    def total_contributions(self, hunt_id: int) -> int:
        return self._get_int(_k_contrib_total(hunt_id))

    def contributions(self, hunt_id: int) -> List[Tuple[str, int]]:
        """(identity, amount) pairs of one hunt, ordered by identity."""
        out: List[Tuple[str, int]] = []
        pfx = _k_contrib_prefix(hunt_id)
        for k, v in self.kv.iter_prefix(pfx):
            # the identity part is a 1-byte length followed by its utf-8 text
            ident = k[len(pfx) + 1 :].decode("utf-8")
            out.append((ident, int(_dec(v, "contribution"))))
        return out

    # --- Balances & escrow ---

    def balance_of(self, identity: str) -> int:
        return self._get_int(_k_balance(identity))

    def credit(self, identity: str, amount: int) -> int:
        new = self.balance_of(identity) + amount
        self._put(_k_balance(identity), new)
        return new

    def balances(self) -> List[Tuple[str, int]]:
        pfx = NS.key(b"balance")
        out = []
        for k, v in self.kv.iter_prefix(pfx):
            out.append((k[len(pfx) + 1 :].decode("utf-8"), int(_dec(v, "balance"))))
        return out

    def escrow_total(self) -> int:
        return self._get_int(K_ESCROW)

    def adjust_escrow(self, delta: int) -> int:
        new = self.escrow_total() + delta
        if new < 0:
            raise RuntimeError(f"escrow would go negative ({new})")
        self._put(K_ESCROW, new)
        return new

    # --- Events ---

    def append_event(self, cls: Type[Any], ts: int, **fields: Any) -> Event:
        seq = self._get_int(K_EVENT_SEQ)
        ev = cls(seq=seq, ts=ts, **fields)
        self._put(_k_event(seq), event_to_dict(ev))
        self._put(K_EVENT_SEQ, seq + 1)
        return ev

    def event_count(self) -> int:
        return self._get_int(K_EVENT_SEQ)

    def events(self, start: int = 0, hunt_id: Optional[int] = None) -> Iterator[Event]:
        for seq in range(start, self.event_count()):
            raw = self.kv.get(_k_event(seq))
            if raw is None:
                raise DeserializationError(f"event log gap at seq {seq}", seq=seq)
            try:
                ev = event_from_dict(_dec(raw, "event"))
            except (KeyError, ValueError) as e:
                raise DeserializationError(f"corrupt event {seq}: {e}", seq=seq) from e
            if hunt_id is None or ev.hunt_id == hunt_id:
                yield ev

    # --- Clock ---

    def last_time(self) -> int:
        return self._get_int(K_CLOCK)

    def set_last_time(self, t: int) -> None:
        self._put(K_CLOCK, t)

    # --- Debug ---

    def dump(self) -> List[Tuple[bytes, bytes]]:
        """Every raw (key, value) pair of the ledger namespace, in key order."""
        return list(self.kv.iter_prefix(NS.raw))


__all__ = ["HuntStore", "NS"]
