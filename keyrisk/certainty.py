"""
Certainty Aggregator

Combines four independent estimates into one keyed-alike certainty
percentage and a verdict sentence:

  geographic    35%   local duplicates in the postal area
  mathematical  30%   production volume over the keyspace
  pattern       25%   structural regularities of the bitting
  model         10%   classifier confidence

Each component is rounded to an integer before weighting. This weighting
is deliberately distinct from the risk score's (see scorer.py).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from keyrisk.bitting import is_macs_compliant
from keyrisk.classifier import (
    detect_date_pattern,
    has_repeated_digits,
    is_common_manufacturing_pattern,
    is_sequential,
)
from keyrisk.config import settings
from keyrisk.numeric import round_half_up


@dataclass(frozen=True)
class CertaintyWeights:
    geographic: float = 0.35
    mathematical: float = 0.30
    pattern: float = 0.25
    model: float = 0.10

    def __post_init__(self):
        total = self.geographic + self.mathematical + self.pattern + self.model
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Certainty weights must sum to 1.0, got {total}")


# Mathematical certainty
DUPLICATE_CERTAINTY_CAP = 85
MACS_VALID_BONUS = 10
COMPLEXITY_BONUS = 5
MATHEMATICAL_CAP = 95

# Pattern certainty
PATTERN_BASE = 50
PATTERN_BONUSES = {
    "sequential": 25,
    "date": 30,
    "repeated": 15,
    "common_manufacturing": 20,
    "macs_valid": 10,
}
PATTERN_CAP = 95


def calculate_mathematical_certainty(
    bitting: Sequence[int],
    production: float,
    complexity: float,
    effective_combinations: int = settings.EFFECTIVE_COMBINATIONS,
    macs_limit: int = settings.MACS_LIMIT,
    invalid_key_floor: float = settings.INVALID_KEY_FLOOR,
) -> int:
    """More duplicates per pattern means more certainty, up to 95%."""
    if not is_macs_compliant(bitting, macs_limit):
        return round_half_up(invalid_key_floor)

    duplicates = production / effective_combinations
    certainty = min(duplicates / 1000 * 100, DUPLICATE_CERTAINTY_CAP)
    certainty += MACS_VALID_BONUS
    certainty += complexity / 100 * COMPLEXITY_BONUS
    return min(round_half_up(certainty), MATHEMATICAL_CAP)


def calculate_pattern_certainty(
    bitting: Sequence[int],
    macs_limit: int = settings.MACS_LIMIT,
) -> int:
    """
    Every detector contributes independently, unlike classification
    where only the first matching rule counts.
    """
    macs_valid = is_macs_compliant(bitting, macs_limit)
    certainty = PATTERN_BASE
    if is_sequential(bitting):
        certainty += PATTERN_BONUSES["sequential"]
    if detect_date_pattern(bitting) is not None:
        certainty += PATTERN_BONUSES["date"]
    if has_repeated_digits(bitting):
        certainty += PATTERN_BONUSES["repeated"]
    if is_common_manufacturing_pattern(bitting):
        certainty += PATTERN_BONUSES["common_manufacturing"]
    if macs_valid:
        certainty += PATTERN_BONUSES["macs_valid"]
    return min(certainty, PATTERN_CAP)


def aggregate_certainty(
    geographic: int,
    mathematical: int,
    pattern: int,
    model: int,
    weights: CertaintyWeights = CertaintyWeights(),
) -> tuple[int, dict]:
    """
    Returns:
        (certainty, breakdown) where breakdown records each weighted part.
    """
    parts = {
        "geographic": geographic * weights.geographic,
        "mathematical": mathematical * weights.mathematical,
        "pattern": pattern * weights.pattern,
        "model": model * weights.model,
    }
    certainty = min(max(round_half_up(sum(parts.values())), 0), 100)
    breakdown = {
        "components": {
            "geographic": geographic,
            "mathematical": mathematical,
            "pattern": pattern,
            "model": model,
        },
        "weighted": parts,
        "final_certainty": certainty,
    }
    return certainty, breakdown


def certainty_verdict(certainty: int, duplicates: int) -> str:
    if certainty >= 95:
        return (
            f"CONFIRMED: Your key is keyed-alike. {duplicates:,} other keys "
            "in your area open the same lock."
        )
    if certainty >= 85:
        return (
            "HIGHLY LIKELY: Strong evidence of keyed-alike vulnerability "
            f"({duplicates:,} potential duplicates)."
        )
    if certainty >= 70:
        return (
            "PROBABLE: Moderate-high risk of duplicate keys existing "
            f"({duplicates:,} estimated)."
        )
    if certainty >= 50:
        return (
            "POSSIBLE: Some risk of duplicate keys in your area "
            f"({duplicates:,} estimated)."
        )
    return (
        "LOW RISK: Your key appears to have unique characteristics "
        "with minimal duplication risk."
    )
