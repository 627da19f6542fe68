import sqlite3

from core.db.sqlite import _db_error
from core.errors import (
    ConfigError,
    CoreErrorCode,
    DatabaseError,
    InternalError,
    SearchTogetherError,
    Severity,
    ensure_error,
)
from hunt.errors import ProofError, Reason, StateError


def test_to_dict_is_json_safe():
    err = ConfigError("bad percent", value=b"\x01\x02", reason=Reason.TOO_SOON)
    d = err.to_dict()
    assert d == {
        "code": "CORE/CONFIG",
        "message": "bad percent",
        "data": {"value": "0102", "reason": "too_soon"},
        "severity": int(Severity.ERROR),
        "retryable": False,
    }
    assert str(err).startswith("CORE/CONFIG: bad percent")


def test_with_context_and_cause_return_copies():
    err = InternalError("oops", a=1)
    ctx = err.with_context(b=2)
    assert ctx.data == {"a": 1, "b": 2}
    assert err.data == {"a": 1}
    assert type(ctx) is InternalError and ctx.code is CoreErrorCode.INTERNAL

    cause = KeyError("k")
    wrapped = err.with_cause(cause)
    assert wrapped.cause is cause and err.cause is None
    assert wrapped.to_dict(include_cause=True)["cause"] == {"type": "KeyError", "message": "'k'"}


def test_ensure_error():
    err = ConfigError("x")
    assert ensure_error(err) is err
    wrapped = ensure_error(ZeroDivisionError())
    assert isinstance(wrapped, InternalError)
    assert wrapped.message == "ZeroDivisionError"
    assert isinstance(wrapped.cause, ZeroDivisionError)


def test_database_errors_flag_lock_contention_as_retryable():
    locked = _db_error("commit", sqlite3.OperationalError("database is locked"))
    assert isinstance(locked, DatabaseError) and locked.retryable
    broken = _db_error("put", sqlite3.IntegrityError("constraint"))
    assert not broken.retryable
    assert broken.data == {"op": "put"}


def test_hunt_errors_share_the_root():
    err = StateError(Reason.UNKNOWN_HUNT, hunt_id=9)
    assert isinstance(err, SearchTogetherError)
    assert err.reason is Reason.UNKNOWN_HUNT
    assert err.message == "Unknown hunt"
    assert err.to_dict()["data"]["hunt_id"] == 9
    assert ProofError().reason is Reason.INVALID_PROOF
