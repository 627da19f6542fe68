"""
hunt: the treasure-hunt ledger.

    from core.db import open_kv
    from hunt import HuntLedger, HuntStore, ManualClock
    from zk.verifiers import make_verifier

    ledger = HuntLedger(HuntStore(open_kv("memory://")), make_verifier("mock"), ManualClock())
    hid = ledger.register_hunt(loc, 86_400, 14 * 86_400, 1_000, 1_000_000, creator)
"""

from __future__ import annotations

from .clock import Clock, ManualClock, SystemClock
from .config import HuntConfig, LedgerParams
from .errors import HuntError, ProofError, Reason, StateError, ValidationError
from .ledger import HuntLedger
from .store import HuntStore
from .types import Claim, Hunt, HuntStatus

__all__ = [
    "Clock",
    "ManualClock",
    "SystemClock",
    "HuntConfig",
    "LedgerParams",
    "HuntError",
    "ValidationError",
    "StateError",
    "ProofError",
    "Reason",
    "HuntLedger",
    "HuntStore",
    "Hunt",
    "Claim",
    "HuntStatus",
]
