from __future__ import annotations

"""
core.db
=======

Thin facade for the key–value backend used by the hunt store.

URIs
----
- "sqlite:///relative/path.db"     → SQLite file relative to the working dir
- "sqlite:////abs/path.db"         → SQLite file at an absolute path
- "sqlite:///:memory:"             → in-memory SQLite (tests)
- "memory://"                      → alias of "sqlite:///:memory:"
- bare path                        → SQLite file path

Example
-------
>>> from core.db import open_kv
>>> kv = open_kv("memory://")
>>> with kv.batch() as b:
...     b.put(b"t:key", b"hello")
>>> kv.get(b"t:key")
b'hello'
"""

from typing import Tuple

from .kv import KV, Batch, Prefix, ReadOnlyKV, be_u64
from . import sqlite as _sqlite_backend


def _parse_uri(uri: str) -> Tuple[str, str]:
    """
    Parse a DB URI into (backend, path_or_spec).

    Returns:
        ("sqlite", path) or ("memory", "")
    """
    u = uri.strip()
    if u.startswith("memory://") or u in ("", ":memory:", "sqlite:///:memory:"):
        return ("memory", "")
    if u.startswith("sqlite:///"):
        return ("sqlite", u[len("sqlite:///") :])
    if "://" in u:
        raise ValueError(f"Unsupported DB backend in URI: {uri!r}")
    return ("sqlite", u)


def open_kv(uri: str, create: bool = True) -> KV:
    """
    Open a KV database by URI. See module docstring for supported forms.

    Raises:
        ValueError for unsupported URIs.
        FileNotFoundError when create=False and the file is missing.
    """
    backend, spec = _parse_uri(uri)
    if backend == "memory":
        return _sqlite_backend.open_sqlite_kv(":memory:", create=True)
    return _sqlite_backend.open_sqlite_kv(spec, create=create)


__all__ = [
    "KV",
    "ReadOnlyKV",
    "Batch",
    "Prefix",
    "be_u64",
    "open_kv",
]
