"""
SearchTogether: core.logging
----------------------------

Structured logging for the ledger, the prover and the CLI.

- one JSON object per line (services, pipes) or a one-line text form (TTY)
- context fields carried in a `contextvars` map: every line emitted inside a
  ledger operation is tagged with the same trace_id / op / hunt_id
- values are made JSON-safe on the way out (bytes -> 0x hex, enums -> value,
  Paths -> str, dataclasses -> dict)

Usage
-----
    from core import logging as clog

    clog.configure(json=False, level="INFO")  # once, at process start
    log = clog.get_logger(__name__)

    with clog.trace_scope(op="claim", hunt_id=3):
        log.info("claim accepted", extra={"claimer": "0xab.."})

Environment
-----------
SEARCHTOGETHER_LOG_FORMAT = json | text   (default: json when not a TTY)
SEARCHTOGETHER_LOG_LEVEL  = DEBUG | INFO | WARNING | ...
"""

from __future__ import annotations

import datetime as _dt
import json
import logging
import os
import sys
import threading
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

ENV_FORMAT = "SEARCHTOGETHER_LOG_FORMAT"
ENV_LEVEL = "SEARCHTOGETHER_LOG_LEVEL"

# Context keys rendered up front (in this order) by the text formatter.
DEFAULT_CONTEXT_KEYS = ("trace_id", "component", "op", "hunt_id", "identity")

_CTX: ContextVar[Dict[str, Any]] = ContextVar("searchtogether_log_ctx", default={})

# Attributes every LogRecord carries; anything else on a record came from `extra`.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


# ----------------------------
# Context
# ----------------------------


def context() -> Dict[str, Any]:
    """Return a *copy* of the active logging context."""
    return dict(_CTX.get())


def bind(**fields: Any) -> None:
    _CTX.set({**_CTX.get(), **{k: jsonable(v) for k, v in fields.items()}})


def unbind(*keys: str) -> None:
    _CTX.set({k: v for k, v in _CTX.get().items() if k not in keys})


def clear_context() -> None:
    _CTX.set({})


@contextmanager
def trace_scope(trace_id: Optional[str] = None, **fields: Any) -> Iterator[str]:
    """
    Bind a trace_id (reusing an enclosing one unless given) plus `fields`
    for the duration of the block; the previous context is restored on exit.
    Yields the trace_id in effect.
    """
    token = _CTX.set(dict(_CTX.get()))
    try:
        tid = trace_id or _CTX.get().get("trace_id") or short_uuid()
        bind(trace_id=tid, **fields)
        yield tid
    finally:
        _CTX.reset(token)


def short_uuid() -> str:
    return uuid.uuid4().hex[:12]


# ----------------------------
# Values
# ----------------------------


def jsonable(v: Any) -> Any:
    """Best-effort conversion of a log value to something json.dumps accepts."""
    if isinstance(v, Enum):
        return v.value
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    if isinstance(v, (list, tuple)):
        return [jsonable(x) for x in v]
    if isinstance(v, dict):
        return {str(k): jsonable(x) for k, x in v.items()}
    if isinstance(v, (bytes, bytearray, memoryview)):
        return "0x" + bytes(v).hex()
    if isinstance(v, Path):
        return str(v)
    if isinstance(v, _dt.datetime):
        return (v if v.tzinfo else v.replace(tzinfo=_dt.timezone.utc)).isoformat()
    if isinstance(v, _dt.date):
        return v.isoformat()
    if is_dataclass(v) and not isinstance(v, type):
        return jsonable(asdict(v))
    return str(v)


def _record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: v
        for k, v in record.__dict__.items()
        if k not in _STANDARD_ATTRS and not k.startswith("_")
    }


def _timestamp(record: logging.LogRecord) -> str:
    ts = _dt.datetime.fromtimestamp(record.created, tz=_dt.timezone.utc)
    return ts.isoformat(timespec="milliseconds")


def _traceback(record: logging.LogRecord) -> Optional[str]:
    if not record.exc_info:
        return None
    return "".join(traceback.format_exception(*record.exc_info)).rstrip()


# ----------------------------
# Formatters
# ----------------------------


class JSONFormatter(logging.Formatter):
    """One compact JSON object per record; context first, call-site extras never override it."""

    def format(self, record: logging.LogRecord) -> str:
        out: Dict[str, Any] = {
            "ts": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "pid": record.process or os.getpid(),
            "tid": record.thread or threading.get_ident(),
        }
        out.update(context())
        for k, v in _record_extras(record).items():
            out.setdefault(k, jsonable(v))
        tb = _traceback(record)
        if tb:
            out["err"] = tb
        return json.dumps(out, separators=(",", ":"), default=str)


_SGR = {
    logging.DEBUG: "90",
    logging.INFO: "32",
    logging.WARNING: "33",
    logging.ERROR: "31",
    logging.CRITICAL: "1;35",
}


def _paint(text: str, sgr: str) -> str:
    return f"\x1b[{sgr}m{text}\x1b[0m"


def _is_tty(stream: Any) -> bool:
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty and isatty()) and "NO_COLOR" not in os.environ
    except ValueError:  # closed stream
        return False


class TextFormatter(logging.Formatter):
    """
    One line per record:

      2026-01-05T12:34:56.789+00:00 | INFO  | hunt.ledger | trace_id=ab12 op=claim hunt_id=0 claimer=0x.. | claim accepted

    Colored when the target stream is a terminal.
    """

    def __init__(self, stream: Any = None) -> None:
        super().__init__()
        self._color = _is_tty(stream)

    def format(self, record: logging.LogRecord) -> str:
        ctx = context()
        pairs = [(k, ctx[k]) for k in DEFAULT_CONTEXT_KEYS if ctx.get(k) is not None]
        pairs += [
            (k, jsonable(v))
            for k, v in _record_extras(record).items()
            if k not in DEFAULT_CONTEXT_KEYS and k not in ctx
        ]
        fields = " ".join(f"{k}={v}" for k, v in pairs)

        ts, level, name = _timestamp(record), f"{record.levelname:<5}", record.name
        if self._color:
            ts = _paint(ts, "90")
            level = _paint(level, _SGR.get(record.levelno, "37"))
            name = _paint(name, "36")

        parts = [ts, level, name]
        if fields:
            parts.append(fields)
        parts.append(record.getMessage())
        line = " | ".join(parts)
        tb = _traceback(record)
        return f"{line}\n{tb}" if tb else line


# ----------------------------
# Setup
# ----------------------------


def configure(
    *,
    json: Optional[bool] = None,
    level: str | int | None = None,
    stream: Any = None,
    file_path: Optional[Path | str] = None,
    propagate_existing: bool = False,
) -> None:
    """
    Configure the root logger.

    json=None picks the format from SEARCHTOGETHER_LOG_FORMAT, falling back
    to text on a terminal and JSON otherwise. level=None reads
    SEARCHTOGETHER_LOG_LEVEL (default INFO). `file_path` additionally
    receives JSON lines. Existing root handlers are replaced unless
    `propagate_existing` is set.
    """
    stream = stream if stream is not None else sys.stderr
    lvl = _level(level if level is not None else os.environ.get(ENV_LEVEL, "INFO"))
    as_json = _want_json(json, stream)

    root = logging.getLogger()
    root.setLevel(lvl)
    if not propagate_existing:
        for h in list(root.handlers):
            root.removeHandler(h)

    console = logging.StreamHandler(stream)
    console.setLevel(lvl)
    console.setFormatter(JSONFormatter() if as_json else TextFormatter(stream))
    root.addHandler(console)

    if file_path:
        p = Path(file_path).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(p, encoding="utf-8")
        fh.setLevel(lvl)
        fh.setFormatter(JSONFormatter())
        root.addHandler(fh)

    logging.getLogger("asyncio").setLevel(max(lvl, logging.WARNING))


def configure_from_config(cfg: Any, *, json: Optional[bool] = None, level: Optional[str] = None, stream: Any = None) -> None:
    """
    Configure from an object exposing `log_level` / `log_format`
    (e.g. hunt.config.HuntConfig). Explicit arguments win over the object.
    """
    fmt = getattr(cfg, "log_format", None)
    if json is None and fmt is not None:
        json = str(fmt).lower() == "json"
    configure(json=json, level=level or getattr(cfg, "log_level", None), stream=stream)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Standard logger under the root; use `with_fields` for constant per-logger fields."""
    return logging.getLogger(name or "searchtogether")


def with_fields(logger: logging.Logger, **fields: Any) -> "ContextAdapter":
    """Return a logger adapter that injects constant fields on each call."""
    return ContextAdapter(logger, {k: jsonable(v) for k, v in fields.items()})


class ContextAdapter(logging.LoggerAdapter):
    """Merges the adapter's constant fields into call-site `extra` (call-site wins)."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        extra = kwargs.get("extra")
        kwargs["extra"] = {**self.extra, **extra} if isinstance(extra, dict) else dict(self.extra)
        return msg, kwargs


def _level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    named = logging.getLevelName(str(level).strip().upper())
    return named if isinstance(named, int) else logging.INFO


def _want_json(flag: Optional[bool], stream: Any) -> bool:
    if flag is not None:
        return flag
    env = os.environ.get(ENV_FORMAT, "").strip().lower()
    if env in ("json", "text"):
        return env == "json"
    return not _is_tty(stream)


__all__ = [
    "ENV_FORMAT",
    "ENV_LEVEL",
    "DEFAULT_CONTEXT_KEYS",
    "JSONFormatter",
    "TextFormatter",
    "ContextAdapter",
    "bind",
    "unbind",
    "clear_context",
    "context",
    "trace_scope",
    "short_uuid",
    "jsonable",
    "configure",
    "configure_from_config",
    "get_logger",
    "with_fields",
]
