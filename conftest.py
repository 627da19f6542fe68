import pytest

from core.db import open_kv
from hunt.clock import ManualClock
from hunt.config import LedgerParams
from hunt.ledger import HuntLedger
from hunt.store import HuntStore
from zk.verifiers import MockVerifier

START = 1_700_000_000


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: pairing-heavy tests (deselect with -m 'not slow')")


@pytest.fixture
def kv():
    db = open_kv("memory://")
    yield db
    db.close()


@pytest.fixture
def clock():
    return ManualClock(START)


@pytest.fixture
def verifier():
    return MockVerifier()


@pytest.fixture
def params():
    return LedgerParams()


@pytest.fixture
def ledger(kv, verifier, clock, params):
    return HuntLedger(HuntStore(kv), verifier, clock, params)
