from __future__ import annotations

"""
KV interface & key building
===========================

Backend-agnostic Key–Value interface used by the hunt store, plus a small DSL
to build lexicographically sortable composite keys.

This file is *pure interface + helpers* and contains no I/O.

Key building helpers
--------------------
- Prefix(b"t") produces a namespace prefix object:
    Prefix(b"t").key(b"hunt", be_u64(7)) → b"t:" + len|b"hunt" + len|be_u64(7)
- Integers inside keys should use fixed-width big-endian encodings (`be_u64`)
  so numeric order equals byte order.

Length-prefixing every part avoids delimiter-escaping pitfalls: an identity
that happens to contain the separator byte can never alias another key.

Batching
--------
`KV.batch()` returns a context manager. Everything written inside it becomes
visible atomically on clean exit and is discarded if an exception escapes:

>>> with kv.batch() as b:
...     b.put(Prefix(b"t").key(b"a"), b"1")
...     b.delete(Prefix(b"t").key(b"b"))
"""

from typing import Iterator, Optional, Protocol, Tuple, Union, runtime_checkable

NS_SEP = b":"  # namespace separator used only once after the leading ns byte(s)

KeyPart = Union[bytes, bytearray, memoryview, str, int]


class Prefix:
    """
    Represents a logical namespace prefix (e.g., b"t:" for the hunt tables).

    .raw gives the raw bytes prefix.
    .key(*parts) builds a composite key: prefix + ∑ (uvarlen | part_bytes).
    """

    __slots__ = ("_raw",)

    def __init__(self, ns: Union[bytes, bytearray, memoryview, str]) -> None:
        if isinstance(ns, str):
            ns_b = ns.encode("ascii")
        else:
            ns_b = bytes(ns)
        if len(ns_b) == 0:
            raise ValueError("namespace must be non-empty")
        self._raw = ns_b.rstrip(NS_SEP) + NS_SEP

    @property
    def raw(self) -> bytes:
        return self._raw

    def key(self, *parts: KeyPart) -> bytes:
        """Build a composite key under this prefix."""
        out = bytearray(self._raw)
        for p in parts:
            pb = _part_to_bytes(p)
            out.extend(_uvarint_len(len(pb)))
            out.extend(pb)
        return bytes(out)

    def __repr__(self) -> str:
        return f"Prefix({self._raw!r})"


def _part_to_bytes(p: KeyPart) -> bytes:
    if isinstance(p, (bytes, bytearray, memoryview)):
        return bytes(p)
    if isinstance(p, str):
        return p.encode("utf-8")
    if isinstance(p, int):
        if p < 0:
            raise ValueError("negative ints not supported in key parts")
        return be_u64(p)
    raise TypeError(f"unsupported key part type: {type(p)!r}")


def _uvarint_len(n: int) -> bytes:
    """LEB128-like unsigned length prefix."""
    if n < 0:
        raise ValueError("length must be non-negative")
    out = bytearray()
    while True:
        b = n & 0x7F
        n >>= 7
        if n:
            out.append(0x80 | b)
        else:
            out.append(b)
            break
    return bytes(out)


def be_u64(n: int) -> bytes:
    if not (0 <= n < (1 << 64)):
        raise ValueError("be_u64 out of range")
    return n.to_bytes(8, "big")


# ---------------------------------------------------------------------------
# KV protocols & Batch
# ---------------------------------------------------------------------------


@runtime_checkable
class ReadOnlyKV(Protocol):
    """Minimal read-only KV surface."""

    def get(self, key: bytes) -> Optional[bytes]:
        """Fetch value or None if missing."""
        ...

    def has(self, key: bytes) -> bool:
        ...

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """
        Iterate over (key, value) pairs whose key begins with `prefix`,
        in lexicographic byte-order of keys.
        """
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class Batch(Protocol):
    """
    A write-batch context manager. Backend guarantees atomicity when exiting
    the context without exception. If an exception escapes, the batch is rolled back.
    """

    def put(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...

    def __enter__(self) -> "Batch": ...
    def __exit__(self, exc_type, exc, tb) -> Optional[bool]: ...


@runtime_checkable
class KV(ReadOnlyKV, Protocol):
    """Full RW KV surface. Reads issued while a batch is open see its writes."""

    def put(self, key: bytes, value: bytes) -> None:
        ...

    def delete(self, key: bytes) -> None:
        ...

    def batch(self) -> Batch:
        ...


__all__ = [
    "ReadOnlyKV",
    "KV",
    "Batch",
    "Prefix",
    "KeyPart",
    "be_u64",
]
