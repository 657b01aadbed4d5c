"""
Jitter Sources

Risk multipliers carry a small amount of random variance to reflect the
spread of real-world duplicate rates. The variance is drawn from a
JitterSource so it can be pinned in tests or seeded for reproducible runs.

Every source returns values in [0, 1).
"""

from __future__ import annotations

import random
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class JitterSource(Protocol):
    """Anything with a ``next()`` returning a float in [0, 1)."""

    def next(self) -> float:
        ...


class RandomJitter:
    """Jitter backed by a private ``random.Random`` instance."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def next(self) -> float:
        return self._rng.random()


class FixedJitter:
    """Always returns the same value. Used for deterministic scoring."""

    def __init__(self, value: float = 0.0):
        if not 0.0 <= value < 1.0:
            raise ValueError(f"Jitter value must be in [0, 1), got {value}")
        self._value = value

    def next(self) -> float:
        return self._value
