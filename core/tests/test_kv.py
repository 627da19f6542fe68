import pytest

from core.db import open_kv
from core.db.kv import KV, Prefix, be_u64
from core.db.sqlite import _prefix_hi


@pytest.fixture
def db():
    kv = open_kv("memory://")
    yield kv
    kv.close()


def test_prefix_keys_are_length_prefixed():
    p = Prefix(b"t")
    assert p.raw == b"t:"
    assert p.key(b"ab", 1) == b"t:" + b"\x02ab" + b"\x08" + be_u64(1)
    # "a"+"bc" and "ab"+"c" must not collide
    assert p.key("a", "bc") != p.key("ab", "c")
    with pytest.raises(ValueError):
        p.key(-1)
    with pytest.raises(TypeError):
        p.key(1.5)
    with pytest.raises(ValueError):
        Prefix(b"")


def test_be_u64_bounds():
    assert be_u64(0) == b"\x00" * 8
    assert be_u64(2**64 - 1) == b"\xff" * 8
    with pytest.raises(ValueError):
        be_u64(2**64)


@pytest.mark.parametrize(
    "prefix, hi",
    [(b"ab\x01", b"ab\x02"), (b"a\xff", b"b"), (b"\xff\xff", None), (b"", None)],
)
def test_prefix_upper_bound(prefix, hi):
    assert _prefix_hi(prefix) == hi


def test_get_put_delete(db):
    assert isinstance(db, KV)
    assert db.get(b"k") is None
    db.put(b"k", b"v")
    assert db.get(b"k") == b"v" and db.has(b"k")
    db.delete(b"k")
    assert not db.has(b"k")


def test_iter_prefix_is_ordered_and_bounded(db):
    for k in (b"t:\x02", b"t:\x01", b"t;", b"s:\x01", b"t:\xff"):
        db.put(k, k)
    assert [k for k, _ in db.iter_prefix(b"t:")] == [b"t:\x01", b"t:\x02", b"t:\xff"]


def test_batch_commits_and_reads_its_own_writes(db):
    with db.batch() as b:
        b.put(b"a", b"1")
        assert db.get(b"a") == b"1"
        b.delete(b"a")
        b.put(b"b", b"2")
    assert db.get(b"a") is None
    assert db.get(b"b") == b"2"
    assert not db.in_batch


def test_batch_rolls_back_on_error(db):
    db.put(b"keep", b"x")
    with pytest.raises(KeyError):
        with db.batch() as b:
            b.put(b"keep", b"y")
            b.put(b"new", b"z")
            raise KeyError("boom")
    assert db.get(b"keep") == b"x"
    assert db.get(b"new") is None


def test_nested_batch_rejected(db):
    with db.batch():
        with pytest.raises(RuntimeError):
            with db.batch():
                pass


def test_closed_batch_rejects_writes(db):
    b = db.batch()
    with pytest.raises(RuntimeError):
        b.put(b"a", b"1")


def test_file_db_persists(tmp_path):
    path = tmp_path / "sub" / "kv.db"
    kv = open_kv(f"sqlite:///{path}")
    kv.put(b"x", b"1")
    kv.close()
    kv = open_kv(str(path), create=False)
    assert kv.get(b"x") == b"1"
    kv.close()


def test_open_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        open_kv(str(tmp_path / "missing.db"), create=False)
    with pytest.raises(ValueError):
        open_kv("rocksdb:///tmp/x")
