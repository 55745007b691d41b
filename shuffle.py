"""
shuffle.py — seeded shuffle for the "daily curated" ordering.

The same list and seed always give the same order. The daily seed is the
sum of today's year, month and day (UTC), so every caller sees the same
order for a whole calendar day and a new one the next day.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")

# Linear congruential generator: s' = (s * 9301 + 49297) mod 233280
LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280


def deterministic_shuffle(items: Sequence[T], seed: int) -> List[T]:
    """Fisher-Yates over a copy of `items`, driven by the LCG above."""
    arr = list(items)
    state = seed
    for i in range(len(arr) - 1, 0, -1):
        state = (state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        # floor(state / M * (i + 1)) in exact integer arithmetic
        j = state * (i + 1) // LCG_MODULUS
        arr[i], arr[j] = arr[j], arr[i]
    return arr


def seed_for_date(day: date) -> int:
    return day.year + day.month + day.day


def today_seed(today: Optional[date] = None) -> int:
    if today is None:
        today = datetime.now(timezone.utc).date()
    return seed_for_date(today)
