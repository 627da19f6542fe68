from __future__ import annotations

"""
SQLite-backed KV store
======================

A small embedded KV using SQLite (BLOB keys & values), implementing the
`KV` / `ReadOnlyKV` / `Batch` protocols from `core.db.kv`.

- Table schema: kv(k BLOB PRIMARY KEY, v BLOB NOT NULL)
- Keys/values are raw bytes; ordering is lexicographic (memcmp).
- Prefix scans use a bounded range [prefix, prefix_hi) plus a guard on
  `substr(k, 1, len(prefix)) = prefix` to be correct for all inputs.

Transactions:
- The connection runs in autocommit mode; a batch issues `BEGIN IMMEDIATE`
  and either `COMMIT`s on clean exit or `ROLLBACK`s when an exception escapes.
- Reads through the same `SQLiteKV` while its batch is open observe the
  uncommitted writes (same connection), which is what the ledger relies on to
  validate and mutate inside one transaction.
- One batch at a time per connection; nesting raises.

Threading:
- `check_same_thread=False`; an internal lock serializes statement execution.
  Callers still serialize whole transactions (the ledger holds its own lock).
"""

import os
import sqlite3
import threading
from typing import Iterator, Optional, Tuple, Union

from core.errors import DatabaseError

from .kv import KV, Batch

DEFAULT_PRAGMAS = {
    "journal_mode": "WAL",
    "synchronous": "NORMAL",
    "temp_store": "MEMORY",
    "foreign_keys": "OFF",
}

_UPSERT = "INSERT INTO kv(k, v) VALUES(?, ?) ON CONFLICT(k) DO UPDATE SET v=excluded.v"


def _apply_pragmas(conn: sqlite3.Connection, pragmas: Optional[dict] = None) -> None:
    p = dict(DEFAULT_PRAGMAS)
    if pragmas:
        p.update(pragmas)
    cur = conn.cursor()
    for name in ("journal_mode", "synchronous", "temp_store", "foreign_keys"):
        cur.execute("PRAGMA %s=%s" % (name, p[name]))
    cur.close()


def _migrate(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv (
            k BLOB PRIMARY KEY,
            v BLOB NOT NULL
        )
        """
    )


def _prefix_hi(prefix: bytes) -> Optional[bytes]:
    """
    Smallest byte string strictly greater than every key starting with
    `prefix`, or None when no such bound exists (prefix is all 0xFF).

    Example: b"ab\\x01" -> b"ab\\x02"; b"\\xff\\xff" -> None
    """
    if not prefix:
        return None
    p = bytearray(prefix)
    for i in range(len(p) - 1, -1, -1):
        if p[i] != 0xFF:
            p[i] += 1
            del p[i + 1 :]
            return bytes(p)
    return None


def _db_error(op: str, exc: sqlite3.Error) -> DatabaseError:
    # "database is locked" is the one failure worth retrying.
    retryable = isinstance(exc, sqlite3.OperationalError) and "locked" in str(exc)
    return DatabaseError(f"sqlite {op} failed: {exc}", retryable=retryable, op=op)


class SQLiteBatch(Batch):
    __slots__ = ("_kv", "_open")

    def __init__(self, kv: "SQLiteKV") -> None:
        self._kv = kv
        self._open = False

    def __enter__(self) -> "SQLiteBatch":
        if self._kv._batch_open:
            raise RuntimeError("batch already open (nested batches not supported)")
        self._kv._exec("begin", "BEGIN IMMEDIATE")
        self._kv._batch_open = True
        self._open = True
        return self

    def put(self, key: bytes, value: bytes) -> None:
        if not self._open:
            raise RuntimeError("batch not open")
        self._kv._exec("put", _UPSERT, (memoryview(key), memoryview(value)))

    def delete(self, key: bytes) -> None:
        if not self._open:
            raise RuntimeError("batch not open")
        self._kv._exec("delete", "DELETE FROM kv WHERE k = ?", (memoryview(key),))

    def commit(self) -> None:
        if not self._open:
            return
        try:
            self._kv._exec("commit", "COMMIT")
        except DatabaseError:
            # A failed COMMIT leaves the transaction open; discard it.
            if self._kv._conn.in_transaction:
                self._kv._conn.rollback()
            raise
        finally:
            self._close()

    def rollback(self) -> None:
        if not self._open:
            return
        try:
            self._kv._exec("rollback", "ROLLBACK")
        finally:
            self._close()

    def _close(self) -> None:
        self._open = False
        self._kv._batch_open = False

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return None


def _open_connection(
    path: Union[str, "os.PathLike[str]"],
    *,
    pragmas: Optional[dict] = None,
    create: bool = True,
) -> sqlite3.Connection:
    path_str = str(path) or ":memory:"
    if path_str != ":memory:":
        if not create and not os.path.exists(path_str):
            raise FileNotFoundError(f"SQLite KV not found at {path_str}")
        parent = os.path.dirname(os.path.abspath(path_str))
        if create:
            os.makedirs(parent, exist_ok=True)

    conn = sqlite3.connect(
        path_str,
        detect_types=0,
        isolation_level=None,      # autocommit; batches BEGIN explicitly
        check_same_thread=False,
    )
    _apply_pragmas(conn, pragmas)
    _migrate(conn)
    return conn


class SQLiteKV(KV):
    """
    SQLite-backed KV.

    Use `open_sqlite_kv(path)` to construct.
    """

    __slots__ = ("_conn", "_lock", "_batch_open", "path")

    def __init__(self, conn: sqlite3.Connection, path: str = ":memory:") -> None:
        self._conn = conn
        self._lock = threading.RLock()
        self._batch_open = False
        self.path = path

    def _exec(self, op: str, sql: str, args: tuple = ()) -> sqlite3.Cursor:
        with self._lock:
            try:
                return self._conn.execute(sql, args)
            except sqlite3.Error as e:
                raise _db_error(op, e) from e

    @property
    def in_batch(self) -> bool:
        return self._batch_open

    # --- ReadOnlyKV ---

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            cur = self._exec("get", "SELECT v FROM kv WHERE k = ?", (memoryview(key),))
            row = cur.fetchone()
            cur.close()
        return bytes(row[0]) if row is not None else None

    def has(self, key: bytes) -> bool:
        with self._lock:
            cur = self._exec(
                "has", "SELECT 1 FROM kv WHERE k = ? LIMIT 1", (memoryview(key),)
            )
            row = cur.fetchone()
            cur.close()
        return row is not None

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """
        Iterate keys with the given binary prefix in lexicographic order.

        Rows are materialized before yielding so a caller may write (inside
        its batch) while consuming the iterator.
        """
        hi = _prefix_hi(prefix)
        if hi is not None:
            sql = (
                "SELECT k, v FROM kv "
                "WHERE k >= ? AND k < ? AND substr(k,1,?) = ? "
                "ORDER BY k"
            )
            args: tuple = (memoryview(prefix), memoryview(hi), len(prefix), memoryview(prefix))
        else:
            sql = "SELECT k, v FROM kv WHERE substr(k,1,?) = ? ORDER BY k"
            args = (len(prefix), memoryview(prefix))

        with self._lock:
            cur = self._exec("scan", sql, args)
            rows = cur.fetchall()
            cur.close()
        for k, v in rows:
            yield bytes(k), bytes(v)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # --- KV ---

    def put(self, key: bytes, value: bytes) -> None:
        self._exec("put", _UPSERT, (memoryview(key), memoryview(value)))

    def delete(self, key: bytes) -> None:
        self._exec("delete", "DELETE FROM kv WHERE k = ?", (memoryview(key),))

    def batch(self) -> Batch:
        return SQLiteBatch(self)


def open_sqlite_kv(
    path: Union[str, "os.PathLike[str]"],
    *,
    pragmas: Optional[dict] = None,
    create: bool = True,
) -> SQLiteKV:
    """
    Open (or create) a SQLite KV at `path` (":memory:" for an ephemeral store).

    `create=False` raises FileNotFoundError if the DB file does not exist.
    """
    conn = _open_connection(path, pragmas=pragmas, create=create)
    return SQLiteKV(conn, path=str(path))


__all__ = [
    "SQLiteKV",
    "SQLiteBatch",
    "open_sqlite_kv",
]
