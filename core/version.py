"""
Version helpers for SearchTogether.

- Exposes __version__ (PEP 440).
- SEARCHTOGETHER_VERSION env var is an authoritative override (release builds
  stamp it); otherwise DEFAULT_VERSION is used.

Safe to import very early: no third-party imports.
"""

from __future__ import annotations

import os
import re

DEFAULT_VERSION = "0.1.0"

_SEMVER = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)(?:[-+.].*)?$"
)


def _resolve_version() -> str:
    override = os.environ.get("SEARCHTOGETHER_VERSION", "").strip()
    if override and _SEMVER.match(override):
        return override.lstrip("v")
    return DEFAULT_VERSION


__version__ = _resolve_version()

__all__ = ["__version__", "DEFAULT_VERSION"]
