"""Small numeric helpers shared by the scoring modules."""

from __future__ import annotations

import math

# Weighted sums like 85 * 0.35 land a hair off the true half
_ROUNDING_DIGITS = 9


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves upward."""
    return int(math.floor(round(value, _ROUNDING_DIGITS) + 0.5))


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def clamp_score(value: float) -> int:
    """Round half-up and clamp into the 0-100 band."""
    return int(clamp(round_half_up(value)))
