from __future__ import annotations
"""
hunt.config: configuration for the hunt ledger and its tooling

Covers:
- Ledger parameters: minimum lockout, maximum hunt duration, withdrawal
  interval and percentage
- Verifier selection (Groth16 with a snarkjs verifying key, or the mock)
- Storage URI and logging defaults for the CLI

Environment overrides (all optional):

  HUNT_DB_URI=sqlite:///searchtogether.db
  HUNT_MIN_LOCKOUT=1d              # durations: "86400", "90s", "5m", "3h", "1d"
  HUNT_MAX_DURATION=90d
  HUNT_WITHDRAWAL_INTERVAL=1d
  HUNT_WITHDRAWAL_PERCENT=50
  HUNT_VERIFIER=groth16            # groth16 | mock
  HUNT_VK_PATH=verification_key.json
  HUNT_SNARKJS=snarkjs             # may be "npx snarkjs"
  HUNT_WASM_PATH=treasure_claim.wasm
  HUNT_ZKEY_PATH=circuit_final.zkey

You can also load from a JSON or YAML file via `HUNT_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""

import json
import os
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from core.errors import ConfigError

DAY = 86_400

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)


# -------------------------- Data classes --------------------------


@dataclass
class LedgerParams:
    """Economic and timing parameters of the ledger (seconds, percent)."""
    min_lockout: int = DAY
    max_duration: int = 90 * DAY
    withdrawal_interval: int = DAY
    withdrawal_percent: int = 50

    def validate(self) -> None:
        for name, v in (("min_lockout", self.min_lockout),
                        ("max_duration", self.max_duration),
                        ("withdrawal_interval", self.withdrawal_interval),
                        ("withdrawal_percent", self.withdrawal_percent)):
            if isinstance(v, bool) or not isinstance(v, int):
                raise ConfigError(f"{name} must be an integer (got {v!r}).", field=name)
        if self.min_lockout < 0:
            raise ConfigError("min_lockout must be non-negative.", field="min_lockout")
        if self.max_duration <= self.min_lockout:
            raise ConfigError("max_duration must exceed min_lockout.", field="max_duration")
        if self.withdrawal_interval < 0:
            raise ConfigError("withdrawal_interval must be non-negative.", field="withdrawal_interval")
        if not (1 <= self.withdrawal_percent <= 100):
            raise ConfigError(
                f"withdrawal_percent must be between 1 and 100 (got {self.withdrawal_percent}).",
                field="withdrawal_percent",
            )


@dataclass
class VerifierConfig:
    """Which proof verifier the ledger uses and where the prover lives."""
    kind: str = "groth16"
    vk_path: str = "verification_key.json"
    snarkjs: str = "snarkjs"
    wasm_path: str = "treasure_claim.wasm"
    zkey_path: str = "circuit_final.zkey"

    def validate(self) -> None:
        if self.kind not in ("groth16", "mock"):
            raise ConfigError(f"verifier must be 'groth16' or 'mock' (got {self.kind!r}).", field="kind")
        if not self.snarkjs.strip():
            raise ConfigError("snarkjs command must not be empty.", field="snarkjs")


@dataclass
class HuntConfig:
    """Top-level configuration container."""
    db_uri: str = "sqlite:///searchtogether.db"
    params: LedgerParams = field(default_factory=LedgerParams)
    verifier: VerifierConfig = field(default_factory=VerifierConfig)
    log_level: str = "INFO"
    log_format: Optional[str] = None  # "json" | "text"; None = auto

    def validate(self) -> None:
        if not self.db_uri:
            raise ConfigError("db_uri must not be empty.", field="db_uri")
        self.params.validate()
        self.verifier.validate()
        if self.log_format not in (None, "json", "text"):
            raise ConfigError("log_format must be 'json' or 'text'.", field="log_format")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------- Loaders --------------------------


def parse_duration(value: Union[str, int]) -> int:
    """
    Parse a tiny duration language into whole seconds.
      "30" -> 30, "2s", "5m", "3h", "1d"
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Invalid duration: {value!r}")
        return value
    m = _DURATION_RE.match(str(value).replace("_", ""))
    if not m:
        raise ValueError(f"Invalid duration: {value!r}")
    mult = {"": 1, "s": 1, "m": 60, "h": 3600, "d": DAY}[m.group(2).lower()]
    return int(m.group(1)) * mult


def _getenv_duration(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return parse_duration(v)
    except ValueError as e:
        raise ConfigError(f"Invalid duration for {name}: {v!r}", env=name) from e


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except ValueError as e:
        raise ConfigError(f"Invalid int for {name}: {v!r}", env=name) from e


def _getenv_str(name: str, default: Any) -> Any:
    v = os.getenv(name)
    return default if v is None or v == "" else v


def from_env(base: Optional[HuntConfig] = None, prefix: str = "HUNT_") -> HuntConfig:
    """
    Build a HuntConfig from environment variables, optionally layering on top of `base`.
    """
    cfg = base or HuntConfig()

    params = LedgerParams(
        min_lockout=_getenv_duration(f"{prefix}MIN_LOCKOUT", cfg.params.min_lockout),
        max_duration=_getenv_duration(f"{prefix}MAX_DURATION", cfg.params.max_duration),
        withdrawal_interval=_getenv_duration(
            f"{prefix}WITHDRAWAL_INTERVAL", cfg.params.withdrawal_interval
        ),
        withdrawal_percent=_getenv_int(f"{prefix}WITHDRAWAL_PERCENT", cfg.params.withdrawal_percent),
    )
    verifier = VerifierConfig(
        kind=_getenv_str(f"{prefix}VERIFIER", cfg.verifier.kind).strip().lower(),
        vk_path=_getenv_str(f"{prefix}VK_PATH", cfg.verifier.vk_path),
        snarkjs=_getenv_str(f"{prefix}SNARKJS", cfg.verifier.snarkjs),
        wasm_path=_getenv_str(f"{prefix}WASM_PATH", cfg.verifier.wasm_path),
        zkey_path=_getenv_str(f"{prefix}ZKEY_PATH", cfg.verifier.zkey_path),
    )
    new_cfg = HuntConfig(
        db_uri=_getenv_str(f"{prefix}DB_URI", cfg.db_uri),
        params=params,
        verifier=verifier,
        log_level=cfg.log_level,
        log_format=cfg.log_format,
    )
    new_cfg.validate()
    return new_cfg


def _section(data: Dict[str, Any], name: str, path: Path) -> Dict[str, Any]:
    v = data.get(name)
    if v is None:
        return {}
    if not isinstance(v, dict):
        raise ConfigError(
            f"{name!r} in {path} must be a mapping (got {type(v).__name__})", path=str(path), field=name
        )
    return v


def _text(obj: Dict[str, Any], key: str, default: Optional[str], path: Path, optional: bool = False) -> Optional[str]:
    v = obj.get(key, default)
    if v is None and optional:
        return None
    if not isinstance(v, str):
        raise ConfigError(f"{key!r} in {path} must be a string (got {v!r})", path=str(path), field=key)
    return v


def from_file(path: Union[str, "os.PathLike[str]"]) -> HuntConfig:
    """
    Load configuration from a JSON or YAML file.

    Layout mirrors `HuntConfig.to_dict()`; durations may be written as "1d".
    """
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"config file not found: {p}", path=str(p))

    text = p.read_text(encoding="utf-8")
    try:
        if p.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text or "{}")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot parse {p}: {e}", path=str(p)) from e
    if not isinstance(data, dict):
        raise ConfigError(f"{p} must contain a mapping", path=str(p))

    d = HuntConfig()
    params = _section(data, "params", p)
    verifier = _section(data, "verifier", p)
    try:
        cfg = HuntConfig(
            db_uri=_text(data, "db_uri", d.db_uri, p),
            params=LedgerParams(
                min_lockout=parse_duration(params.get("min_lockout", d.params.min_lockout)),
                max_duration=parse_duration(params.get("max_duration", d.params.max_duration)),
                withdrawal_interval=parse_duration(
                    params.get("withdrawal_interval", d.params.withdrawal_interval)
                ),
                withdrawal_percent=params.get("withdrawal_percent", d.params.withdrawal_percent),
            ),
            verifier=VerifierConfig(
                kind=_text(verifier, "kind", d.verifier.kind, p),
                vk_path=_text(verifier, "vk_path", d.verifier.vk_path, p),
                snarkjs=_text(verifier, "snarkjs", d.verifier.snarkjs, p),
                wasm_path=_text(verifier, "wasm_path", d.verifier.wasm_path, p),
                zkey_path=_text(verifier, "zkey_path", d.verifier.zkey_path, p),
            ),
            log_level=_text(data, "log_level", d.log_level, p),
            log_format=_text(data, "log_format", d.log_format, p, optional=True),
        )
    except ValueError as e:
        raise ConfigError(f"invalid value in {p}: {e}", path=str(p)) from e
    cfg.validate()
    return cfg


def load() -> HuntConfig:
    """
    Load configuration using the following precedence:
      1) File at $HUNT_CONFIG_FILE (JSON/YAML)
      2) Environment variables (HUNT_*), applied on top of defaults or file values
    """
    file_path = os.getenv("HUNT_CONFIG_FILE")
    base = from_file(file_path) if file_path else HuntConfig()
    return from_env(base=base)


# -------------------------- Utilities --------------------------


def pretty(cfg: Optional[HuntConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or load()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "DAY",
    "LedgerParams",
    "VerifierConfig",
    "HuntConfig",
    "parse_duration",
    "from_env",
    "from_file",
    "load",
    "pretty",
]
