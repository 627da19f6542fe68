"""
geo.tests helpers

TEST_SEED keeps random_offset-based tests reproducible.
"""

from __future__ import annotations

import random

TEST_SEED = 1337


def seeded_rng(offset: int = 0) -> random.Random:
    return random.Random(TEST_SEED + offset)


__all__ = ["TEST_SEED", "seeded_rng"]
