import cbor2
import pytest

from core.db.kv import Prefix
from core.errors import DeserializationError
from hunt.events import HuntCreated, Withdrawal
from hunt.store import NS, HuntStore
from hunt.types import Claim, Hunt, HuntStatus

from . import CREATOR, FINDER, SEEKER


def _hunt(hid=0):
    return Hunt(
        id=hid,
        creator=CREATOR,
        location_commitment=42,
        initial_prize=1_000,
        created_at=10,
        claimable_after=20,
        expires_at=30,
        hint_price=5,
    )


def test_writes_need_a_transaction(kv):
    store = HuntStore(kv)
    with pytest.raises(RuntimeError):
        store.put_hunt(_hunt())


def test_roundtrip_records(kv):
    store = HuntStore(kv)
    with store.transaction():
        assert store.next_hunt_id() == 0
        store.put_hunt(_hunt())
        store.put_claim(Claim(hunt_id=0, claimer=FINDER, claim_commitment=7, claim_time=25))
    assert store.get_hunt(0) == _hunt()
    assert store.get_claim(0).claimer == FINDER
    assert store.get_hunt(1) is None
    assert store.hunt_count() == 1
    assert list(store.iter_hunts()) == [_hunt()]


def test_transaction_rolls_back(kv):
    store = HuntStore(kv)
    with pytest.raises(ZeroDivisionError):
        with store.transaction():
            store.next_hunt_id()
            store.put_hunt(_hunt())
            store.adjust_escrow(1_000)
            1 / 0
    assert store.dump() == []
    assert not store.in_transaction


def test_nested_transaction_rejected(kv):
    store = HuntStore(kv)
    with store.transaction():
        with pytest.raises(RuntimeError):
            with store.transaction():
                pass


def test_records_are_canonical_cbor(kv):
    store = HuntStore(kv)
    with store.transaction():
        store.put_hunt(_hunt())
    raw = kv.get(NS.key(b"hunt", 0))
    assert raw == cbor2.dumps(_hunt().to_dict(), canonical=True)
    assert cbor2.loads(raw)["status"] == HuntStatus.ACTIVE.value


def test_contributions_and_balances(kv):
    store = HuntStore(kv)
    with store.transaction():
        store.add_contribution(3, SEEKER, 10)
        store.add_contribution(3, FINDER, 5)
        store.add_contribution(4, SEEKER, 1)
        with pytest.raises(RuntimeError):
            store.add_contribution(3, SEEKER, 1)
        store.credit(FINDER, 9)
        store.credit(FINDER, 1)
    assert store.total_contributions(3) == 15
    assert store.get_contribution(3, SEEKER) == 10
    assert store.get_contribution(3, CREATOR) is None
    assert store.contributions(3) == [(FINDER, 5), (SEEKER, 10)]
    assert store.balance_of(FINDER) == 10
    assert store.balances() == [(FINDER, 10)]


def test_escrow_never_negative(kv):
    store = HuntStore(kv)
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.adjust_escrow(-1)


def test_event_log(kv):
    store = HuntStore(kv)
    with store.transaction():
        store.append_event(
            HuntCreated, 10, hunt_id=0, creator=CREATOR, location_commitment=1,
            prize=5, claimable_after=20, expires_at=30, hint_price=0,
        )
        store.append_event(Withdrawal, 11, hunt_id=1, claimer=FINDER, amount=2, remaining=3)
    events = list(store.events())
    assert [e.seq for e in events] == [0, 1]
    assert isinstance(events[1], Withdrawal) and events[1].ts == 11
    assert list(store.events(hunt_id=1)) == [events[1]]
    assert list(store.events(start=1)) == [events[1]]


def test_corrupt_record(kv):
    kv.put(NS.key(b"hunt", 0), b"\xff\xfe")
    with pytest.raises(DeserializationError):
        HuntStore(kv).get_hunt(0)
    kv.put(NS.key(b"claim", 0), cbor2.dumps({"hunt_id": 0}))
    with pytest.raises(DeserializationError):
        HuntStore(kv).get_claim(0)


def test_other_namespaces_are_ignored(kv):
    kv.put(Prefix(b"x").key(b"hunt", 0), b"noise")
    store = HuntStore(kv)
    assert store.get_hunt(0) is None
    assert store.dump() == []
