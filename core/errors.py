"""
SearchTogether: core.errors
---------------------------

A small, consistent error system shared by the ledger, the zk helpers and the
CLI.

Design goals
------------
- One root `SearchTogetherError` with machine-friendly `code` and optional `data`.
- Concrete subclasses for the substrate domains (config, codec, db).
  Ledger errors (validation / state / proof) live in `hunt.errors`.
- Safe JSON representation (`to_dict`) suitable for logs and the CLI.
- Clear separation of *retryable* vs *permanent* failures.

This module uses only stdlib to avoid import cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Mapping, Optional

# ---------------------------------------------------------------------------
# Error codes & classes
# ---------------------------------------------------------------------------


class Severity(IntEnum):
    """Optional severity hint for operators."""

    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class CoreErrorCode(str, Enum):
    INTERNAL = "CORE/INTERNAL"
    CONFIG = "CORE/CONFIG"
    SERIALIZATION = "CORE/SERIALIZATION"
    DESERIALIZATION = "CORE/DESERIALIZATION"
    DB = "CORE/DB"


@dataclass(eq=False)
class SearchTogetherError(Exception):
    """
    Root error for SearchTogether components.

    Attributes
    ----------
    code: str
        Machine-stable error code.
    message: str
        Human hint suitable for logs; never includes secrets.
    data: dict
        Optional machine data (ids, amounts, times). Must be JSON-serializable.
    severity: Severity
        Optional severity hint (default ERROR).
    retryable: bool
        Whether the operation may succeed on retry without changing inputs.
    cause: Optional[BaseException]
        Wrapped original exception; not included in equality comparison.
    """

    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    severity: Severity = Severity.ERROR
    retryable: bool = False
    cause: Optional[BaseException] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        super().__init__(f"{_code_str(self.code)}: {self.message}")

    def with_context(self, **ctx: Any) -> "SearchTogetherError":
        """Return a *new* error with extra context merged (does not mutate)."""
        new = self._clone()
        new.data = {**self.data, **_jsonmap(ctx)}
        return new

    def with_cause(self, exc: BaseException) -> "SearchTogetherError":
        """Attach/replace the causal exception (returns a new instance)."""
        new = self._clone()
        new.cause = exc
        return new

    def _clone(self) -> "SearchTogetherError":
        # Bypass __init__: subclasses define their own signatures.
        new = type(self).__new__(type(self))
        new.__dict__.update(self.__dict__)
        new.args = self.args
        return new

    def to_dict(self, include_cause: bool = False) -> Dict[str, Any]:
        """JSON-safe shape suitable for logs and CLI output."""
        out = {
            "code": _code_str(self.code),
            "message": self.message,
            "data": _jsonmap(self.data),
            "severity": int(self.severity),
            "retryable": self.retryable,
        }
        if include_cause and self.cause is not None:
            out["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
        return out

    def __str__(self) -> str:  # pragma: no cover - human formatting
        parts = [f"{_code_str(self.code)}: {self.message}"]
        if self.data:
            preview = ", ".join(f"{k}={_preview(v)}" for k, v in self.data.items())
            parts.append(f"[{preview}]")
        return " ".join(parts)


class InternalError(SearchTogetherError):
    def __init__(self, message="internal error", **data: Any) -> None:
        super().__init__(
            code=CoreErrorCode.INTERNAL, message=message, data=_jsonmap(data)
        )


class ConfigError(SearchTogetherError):
    def __init__(self, message="invalid configuration", **data: Any) -> None:
        super().__init__(
            code=CoreErrorCode.CONFIG,
            message=message,
            data=_jsonmap(data),
            retryable=False,
        )


class SerializationError(SearchTogetherError):
    def __init__(self, message="serialization failed", **data: Any) -> None:
        super().__init__(
            code=CoreErrorCode.SERIALIZATION, message=message, data=_jsonmap(data)
        )


class DeserializationError(SearchTogetherError):
    def __init__(self, message="deserialization failed", **data: Any) -> None:
        super().__init__(
            code=CoreErrorCode.DESERIALIZATION, message=message, data=_jsonmap(data)
        )


class DatabaseError(SearchTogetherError):
    def __init__(
        self, message="database error", retryable: bool = True, **data: Any
    ) -> None:
        super().__init__(
            code=CoreErrorCode.DB,
            message=message,
            data=_jsonmap(data),
            retryable=retryable,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def ensure_error(exc: BaseException) -> SearchTogetherError:
    """Coerce unknown exceptions to InternalError with cause attached."""
    if isinstance(exc, SearchTogetherError):
        return exc
    return InternalError(str(exc) or type(exc).__name__).with_cause(exc)


def _code_str(code: Any) -> str:
    return code.value if isinstance(code, Enum) else str(code)


def _jsonmap(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: _coerce_json(v) for k, v in data.items()}


def _coerce_json(v: Any) -> Any:
    # Keep JSON primitives; stringify the rest; hex-encode bytes.
    if isinstance(v, Enum):
        return v.value
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return v.hex()
    try:
        return str(v)
    except Exception:
        return "<unprintable>"


def _preview(v: Any, limit: int = 96) -> str:
    s = str(_coerce_json(v))
    return s if len(s) <= limit else s[:limit] + "…"


__all__ = [
    "Severity",
    "CoreErrorCode",
    "SearchTogetherError",
    "InternalError",
    "ConfigError",
    "SerializationError",
    "DeserializationError",
    "DatabaseError",
    "ensure_error",
]
