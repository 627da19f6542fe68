"""
hunt.ledger: the treasure-hunt state machine
=============================================

One `HuntLedger` adjudicates any number of isolated hunts:

    register_hunt ──► Active ──claim_treasure──► Claimed ──withdraw*──► (pot empty)
                        │
                        └──expire_hunt (after expiresAt)──► Expired (creator refunded)

Every mutating call:
  1. takes the ledger lock (calls are sequentially consistent),
  2. opens one store transaction (one KV write batch),
  3. reads the ledger clock (clamped so it never precedes the last persisted time),
  4. validates, mutates, appends one event, persists the clock,
  5. commits; only then are subscribers notified.

A rejected call raises ValidationError / StateError / ProofError from inside
the transaction, so the batch rolls back and the store is byte-for-byte
unchanged.

Money is conserved: `escrow` holds the sum of every pot; withdrawals and
refunds move value from escrow into per-identity released balances.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from core import logging as clog
from core.errors import SearchTogetherError, ensure_error
from zk.commitments import normalize_identity
from zk.errors import ZKError
from zk.verifiers import ProofVerifier
from zk.verifiers.poseidon import check_field_element

from .clock import Clock, SystemClock
from .config import LedgerParams
from .errors import HuntError, ProofError, Reason, StateError, ValidationError
from .events import (
    ClaimSubmitted,
    Event,
    EventHandler,
    HintPurchased,
    HuntCreated,
    HuntExpired,
    Withdrawal,
)
from .schedule import is_due, withdrawal_amount
from .store import HuntStore
from .types import Claim, Hunt, HuntStatus, HuntView

log = clog.with_fields(clog.get_logger("hunt.ledger"), component="ledger")


def _identity(value: Any, field: str) -> str:
    try:
        return normalize_identity(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(Reason.BAD_IDENTITY, field=field, detail=str(e)) from e


def _amount(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(Reason.BAD_AMOUNT, field=field, value=repr(value))
    return value


def _commitment(value: Any, field: str) -> int:
    try:
        return check_field_element(value, field)
    except (TypeError, ValueError) as e:
        raise ValidationError(Reason.BAD_COMMITMENT, field=field) from e



class _Tx:
    """State one operation hands back to `HuntLedger._op`."""

    __slots__ = ("now", "events", "summary")

    def __init__(self, now: int) -> None:
        self.now = now
        self.events: List[Event] = []
        self.summary: Optional[Tuple[str, Dict[str, Any]]] = None

    def accept(self, msg: str, **extra: Any) -> None:
        self.summary = (msg, extra)

class HuntLedger:
    """
    Treasure-hunt ledger over a `HuntStore`.

    Parameters
    ----------
    store : HuntStore
        Persistent state. The ledger must be its only writer.
    verifier : ProofVerifier
        `verify(proof, public_output) -> bool`; Groth16 in production, a mock in tests.
    clock : Clock, optional
        Time source (default: SystemClock).
    params : LedgerParams, optional
        Lockout/duration bounds and withdrawal cadence.
    """

    def __init__(
        self,
        store: HuntStore,
        verifier: ProofVerifier,
        clock: Optional[Clock] = None,
        params: Optional[LedgerParams] = None,
    ) -> None:
        self.store = store
        self.verifier = verifier
        self.clock = clock or SystemClock()
        self.params = params or LedgerParams()
        self.params.validate()
        self._lock = threading.RLock()
        self._subscribers: List[EventHandler] = []

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Register a post-commit event handler; returns an unsubscribe callable."""
        self._subscribers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

        return _unsubscribe

    def _publish(self, ev: Event) -> None:
        for handler in list(self._subscribers):
            try:
                handler(ev)
            except Exception:  # a subscriber cannot undo a committed transaction
                log.exception("event subscriber failed", extra={"event": ev.etype.value, "seq": ev.seq})

    # ------------------------------------------------------------------
    # Transaction plumbing
    # ------------------------------------------------------------------

    @contextmanager
    def _op(self, op: str, hunt_id: Optional[int] = None) -> Iterator["_Tx"]:
        """
        Run one operation: trace scope, lock, store transaction. Yields a
        `_Tx` carrying the ledger time, which is persisted on commit. The
        summary line and the events go out after commit, still under the
        operation's trace_id.
        """
        with clog.trace_scope(op=op, hunt_id=hunt_id):
            with self._lock:
                try:
                    with self.store.transaction():
                        tx = _Tx(max(int(self.clock.now()), self.store.last_time()))
                        yield tx
                        self.store.set_last_time(tx.now)
                except HuntError as e:
                    log.warning(
                        "%s rejected: %s", op, e.message,
                        extra={"reason": e.reason.value, "code": e.code},
                    )
                    raise
                except SearchTogetherError as e:
                    log.error("%s failed: %s", op, e.message, extra={"code": e.code})
                    raise
            if tx.summary is not None:
                msg, extra = tx.summary
                log.info(msg, extra=extra)
            self._publish_all(tx.events)

    def now(self) -> int:
        """Current ledger time (read-only; not persisted)."""
        with self._lock:
            return max(int(self.clock.now()), self.store.last_time())

    def _require_hunt(self, hunt_id: int) -> Hunt:
        if isinstance(hunt_id, bool) or not isinstance(hunt_id, int) or hunt_id < 0:
            raise StateError(Reason.UNKNOWN_HUNT, hunt_id=repr(hunt_id))
        hunt = self.store.get_hunt(hunt_id)
        if hunt is None:
            raise StateError(Reason.UNKNOWN_HUNT, hunt_id=hunt_id)
        return hunt

    def _pot(self, hunt: Hunt, claim: Optional[Claim]) -> int:
        withdrawn = claim.total_withdrawn if claim else 0
        pot = (
            hunt.initial_prize
            + self.store.total_contributions(hunt.id)
            - withdrawn
            - hunt.refunded
        )
        if pot < 0:
            raise RuntimeError(f"pot of hunt {hunt.id} is negative ({pot})")
        return pot

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def register_hunt(
        self,
        location_commitment: int,
        lockout_seconds: int,
        duration_seconds: int,
        hint_price: int,
        deposit: int,
        creator: Any,
    ) -> int:
        """Create an Active hunt funded by `deposit`; returns its id."""
        with self._op("register_hunt") as tx:
            now = tx.now
            creator_id = _identity(creator, "creator")
            loc = _commitment(location_commitment, "location_commitment")
            deposit = _amount(deposit, "deposit")
            hint_price = _amount(hint_price, "hint_price")
            lockout = _amount(lockout_seconds, "lockout_seconds")
            duration = _amount(duration_seconds, "duration_seconds")
            p = self.params
            if deposit == 0:
                raise ValidationError(Reason.NO_DEPOSIT)
            if lockout < p.min_lockout:
                raise ValidationError(Reason.LOCKOUT_TOO_SHORT, minimum=p.min_lockout)
            if duration <= lockout:
                raise ValidationError(Reason.DURATION_NOT_AFTER_LOCKOUT)
            if duration > p.max_duration:
                raise ValidationError(Reason.DURATION_TOO_LONG, maximum=p.max_duration)

            hunt_id = self.store.next_hunt_id()
            clog.bind(hunt_id=hunt_id)
            hunt = Hunt(
                id=hunt_id,
                creator=creator_id,
                location_commitment=loc,
                initial_prize=deposit,
                created_at=now,
                claimable_after=now + lockout,
                expires_at=now + duration,
                hint_price=hint_price,
            )
            self.store.put_hunt(hunt)
            self.store.adjust_escrow(deposit)
            tx.events.append(
                self.store.append_event(
                    HuntCreated,
                    now,
                    hunt_id=hunt_id,
                    creator=creator_id,
                    location_commitment=loc,
                    prize=deposit,
                    claimable_after=hunt.claimable_after,
                    expires_at=hunt.expires_at,
                    hint_price=hint_price,
                )
            )
            tx.accept("hunt registered", prize=deposit)
        return hunt_id

    def purchase_hint(self, hunt_id: int, payment: int, contributor: Any) -> None:
        """Pay at least the hint price into an Active hunt's pot (once per identity)."""
        with self._op("purchase_hint", hunt_id) as tx:
            now = tx.now
            seeker = _identity(contributor, "contributor")
            payment = _amount(payment, "payment")
            hunt = self._require_hunt(hunt_id)
            if hunt.status is not HuntStatus.ACTIVE:
                raise StateError(Reason.NOT_ACTIVE, status=hunt.status.value)
            if payment < hunt.hint_price:
                raise ValidationError(
                    Reason.INSUFFICIENT_PAYMENT, price=hunt.hint_price, payment=payment
                )
            if self.store.get_contribution(hunt_id, seeker) is not None:
                raise StateError(Reason.ALREADY_PURCHASED, seeker=seeker)
            self.store.add_contribution(hunt_id, seeker, payment)
            self.store.adjust_escrow(payment)
            tx.events.append(
                self.store.append_event(
                    HintPurchased, now, hunt_id=hunt_id, seeker=seeker, amount=payment
                )
            )
            tx.accept("hint purchased", seeker=seeker, amount=payment)

    def claim_treasure(
        self,
        hunt_id: int,
        proof: Mapping[str, Any],
        claim_commitment: int,
        caller: Any,
    ) -> None:
        """
        Submit a discovery proof. The verifier sees `(proof, claim_commitment)`;
        the commitment is what binds the proof to `caller`.
        """
        with self._op("claim_treasure", hunt_id) as tx:
            now = tx.now
            claimer = _identity(caller, "caller")
            commitment = _commitment(claim_commitment, "claim_commitment")
            hunt = self._require_hunt(hunt_id)
            if hunt.status is not HuntStatus.ACTIVE:
                raise StateError(Reason.NOT_ACTIVE, status=hunt.status.value)
            if hunt.in_lockout(now):
                raise StateError(Reason.IN_LOCKOUT, claimable_after=hunt.claimable_after)
            if hunt.is_expired_at(now):
                raise StateError(Reason.EXPIRED, expires_at=hunt.expires_at)
            if self.store.get_claim(hunt_id) is not None:
                raise StateError(Reason.ALREADY_CLAIMED)
            try:
                ok = self.verifier.verify(proof, commitment)
            except ZKError:
                raise
            except Exception as e:
                raise ensure_error(e).with_context(op="claim_treasure", hunt_id=hunt_id) from e
            if not ok:
                raise ProofError()

            claim = Claim(
                hunt_id=hunt_id,
                claimer=claimer,
                claim_commitment=commitment,
                claim_time=now,
            )
            self.store.put_claim(claim)
            self.store.put_hunt(hunt.with_status(HuntStatus.CLAIMED))
            tx.events.append(
                self.store.append_event(
                    ClaimSubmitted,
                    now,
                    hunt_id=hunt_id,
                    claimer=claimer,
                    claim_commitment=commitment,
                )
            )
            tx.accept("claim accepted", claimer=claimer)

    def withdraw(self, hunt_id: int, caller: Any) -> int:
        """Release the scheduled share of the pot to the claimer; returns the amount."""
        with self._op("withdraw", hunt_id) as tx:
            now = tx.now
            who = _identity(caller, "caller")
            hunt = self._require_hunt(hunt_id)
            claim = self.store.get_claim(hunt_id)
            if hunt.status is not HuntStatus.CLAIMED or claim is None:
                raise StateError(Reason.NOT_CLAIMED, status=hunt.status.value)
            if who != claim.claimer:
                raise StateError(Reason.NOT_CLAIMER)
            if not is_due(claim.last_withdrawal_time, now, self.params.withdrawal_interval):
                raise StateError(
                    Reason.TOO_SOON,
                    next_withdrawal_time=claim.next_withdrawal_time(self.params.withdrawal_interval),
                )
            pot = self._pot(hunt, claim)
            if pot == 0:
                raise StateError(Reason.NOTHING_TO_WITHDRAW)

            amount = withdrawal_amount(pot, self.params.withdrawal_percent)
            self.store.put_claim(claim.after_withdrawal(now, amount))
            self.store.adjust_escrow(-amount)
            self.store.credit(who, amount)
            tx.events.append(
                self.store.append_event(
                    Withdrawal,
                    now,
                    hunt_id=hunt_id,
                    claimer=who,
                    amount=amount,
                    remaining=pot - amount,
                )
            )
            tx.accept("withdrawal", amount=amount, remaining=pot - amount)
        return amount

    def expire_hunt(self, hunt_id: int, caller: Any = None) -> int:
        """
        Expire an unclaimed hunt past its deadline and refund the pot to the
        creator. Anyone may call it; `caller` is only logged. Returns the refund.
        """
        with self._op("expire_hunt", hunt_id) as tx:
            now = tx.now
            if caller is not None:
                clog.bind(identity=_identity(caller, "caller"))
            hunt = self._require_hunt(hunt_id)
            if hunt.status is not HuntStatus.ACTIVE:
                raise StateError(Reason.NOT_ACTIVE, status=hunt.status.value)
            if not hunt.is_expired_at(now):
                raise StateError(Reason.NOT_EXPIRED, expires_at=hunt.expires_at)
            refund = self._pot(hunt, None)
            self.store.put_hunt(hunt.with_status(HuntStatus.EXPIRED, refunded=refund))
            self.store.adjust_escrow(-refund)
            self.store.credit(hunt.creator, refund)
            tx.events.append(
                self.store.append_event(
                    HuntExpired, now, hunt_id=hunt_id, creator=hunt.creator, refunded=refund
                )
            )
            tx.accept("hunt expired", refunded=refund)
        return refund

    def _publish_all(self, events: List[Event]) -> None:
        for ev in events:
            self._publish(ev)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get_hunt(self, hunt_id: int) -> Hunt:
        with self._lock:
            return self._require_hunt(hunt_id)

    def get_claim(self, hunt_id: int) -> Optional[Claim]:
        with self._lock:
            self._require_hunt(hunt_id)
            return self.store.get_claim(hunt_id)

    def get_pot_balance(self, hunt_id: int) -> int:
        with self._lock:
            hunt = self._require_hunt(hunt_id)
            return self._pot(hunt, self.store.get_claim(hunt_id))

    def can_withdraw(self, hunt_id: int, identity: Any = None) -> bool:
        """
        True when a withdrawal would succeed right now (for `identity`, or for
        the recorded claimer when omitted).
        """
        with self._lock:
            valid_id = isinstance(hunt_id, int) and not isinstance(hunt_id, bool) and hunt_id >= 0
            hunt = self.store.get_hunt(hunt_id) if valid_id else None
            if hunt is None or hunt.status is not HuntStatus.CLAIMED:
                return False
            claim = self.store.get_claim(hunt_id)
            if claim is None:
                return False
            if identity is not None:
                try:
                    if normalize_identity(identity) != claim.claimer:
                        return False
                except (TypeError, ValueError):
                    return False
            if not is_due(claim.last_withdrawal_time, self.now(), self.params.withdrawal_interval):
                return False
            return self._pot(hunt, claim) > 0

    def next_withdrawal_time(self, hunt_id: int) -> Optional[int]:
        """None when the hunt has no claim; 0 when a withdrawal is allowed immediately."""
        claim = self.get_claim(hunt_id)
        if claim is None:
            return None
        return claim.next_withdrawal_time(self.params.withdrawal_interval)

    def has_purchased_hint(self, hunt_id: int, identity: Any) -> bool:
        with self._lock:
            self._require_hunt(hunt_id)
            return self.store.get_contribution(hunt_id, _identity(identity, "identity")) is not None

    def get_contribution(self, hunt_id: int, identity: Any) -> int:
        with self._lock:
            self._require_hunt(hunt_id)
            return self.store.get_contribution(hunt_id, _identity(identity, "identity")) or 0

    def get_total_contributions(self, hunt_id: int) -> int:
        with self._lock:
            self._require_hunt(hunt_id)
            return self.store.total_contributions(hunt_id)

    def contributions(self, hunt_id: int) -> List[Tuple[str, int]]:
        with self._lock:
            self._require_hunt(hunt_id)
            return self.store.contributions(hunt_id)

    def view(self, hunt_id: int) -> HuntView:
        with self._lock:
            hunt = self._require_hunt(hunt_id)
            claim = self.store.get_claim(hunt_id)
            return HuntView(
                hunt=hunt,
                claim=claim,
                pot_balance=self._pot(hunt, claim),
                total_contributions=self.store.total_contributions(hunt_id),
            )

    def hunt_count(self) -> int:
        with self._lock:
            return self.store.hunt_count()

    def balance_of(self, identity: Any) -> int:
        with self._lock:
            return self.store.balance_of(_identity(identity, "identity"))

    def escrow_total(self) -> int:
        with self._lock:
            return self.store.escrow_total()

    def events(self, start: int = 0, hunt_id: Optional[int] = None) -> List[Event]:
        with self._lock:
            return list(self.store.events(start, hunt_id))

    def summary(self) -> Dict[str, Any]:
        with self._lock:
            by_status: Dict[str, int] = {s.value: 0 for s in HuntStatus}
            for h in self.store.iter_hunts():
                by_status[h.status.value] += 1
            return {
                "hunts": self.store.hunt_count(),
                "by_status": by_status,
                "escrow": self.store.escrow_total(),
                "events": self.store.event_count(),
                "ledger_time": self.now(),
            }


__all__ = ["HuntLedger"]
