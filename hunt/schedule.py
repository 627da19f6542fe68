"""
Withdrawal scheduler.

Pure integer math, no clock reads. A claimer may release
`floor(pot * percent / 100)` once per interval; when that floors to zero on a
non-empty pot the remaining dust is swept in one go, so every pot drains in
finitely many withdrawals.
"""

from __future__ import annotations

from typing import Iterator, List, Tuple


def _check_percent(percent: int) -> None:
    if isinstance(percent, bool) or not isinstance(percent, int) or not 1 <= percent <= 100:
        raise ValueError(f"percent must be an int in [1, 100], got {percent!r}")


def withdrawal_amount(pot: int, percent: int) -> int:
    """Amount released by one withdrawal from `pot`."""
    _check_percent(percent)
    if pot < 0:
        raise ValueError("pot must be non-negative")
    amount = pot * percent // 100
    if amount == 0 and pot > 0:
        return pot
    return amount


def next_withdrawal_time(last: int, interval: int) -> int:
    """Earliest time of the next withdrawal; 0 when none has happened yet."""
    if last == 0:
        return 0
    return last + interval


def is_due(last: int, now: int, interval: int) -> bool:
    return last == 0 or now >= last + interval


def iter_schedule(pot: int, percent: int, start: int, interval: int) -> Iterator[Tuple[int, int]]:
    """Yield (time, amount) for each future release until `pot` is empty."""
    _check_percent(percent)
    t = start
    while pot > 0:
        amount = withdrawal_amount(pot, percent)
        yield t, amount
        pot -= amount
        t += interval


def project_schedule(pot: int, percent: int, start: int, interval: int) -> List[Tuple[int, int]]:
    return list(iter_schedule(pot, percent, start, interval))


__all__ = [
    "withdrawal_amount",
    "next_withdrawal_time",
    "is_due",
    "iter_schedule",
    "project_schedule",
]
