"""
SearchTogether core package.

Shared substrate for the hunt ledger and the zero-knowledge helpers: structured
logging, the root error type, and key-value persistence.

Only re-exports the version here to keep import-time side effects near zero.
"""

from __future__ import annotations

from .version import __version__

__all__ = ["__version__"]
