"""
Risk Score Calculator

Computes the 0-100 keyed-alike risk score from three signals:

  duplication    40%   yearly duplicates, priced by bitting pattern
  manufacturing  35%   mass-production indicators
  confidence     25%   classifier confidence

Tiers: >= 75 high, >= 45 medium, otherwise low.
"""

from __future__ import annotations

from dataclasses import dataclass

from keyrisk.config import settings
from keyrisk.numeric import clamp, clamp_score
from keyrisk.schemas.assessment import RiskLevel

HIGH_THRESHOLD = 75
MEDIUM_THRESHOLD = 45


@dataclass(frozen=True)
class ScoreWeights:
    duplication: float = 0.40
    manufacturing: float = 0.35
    confidence: float = 0.25

    def __post_init__(self):
        total = self.duplication + self.manufacturing + self.confidence
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Score weights must sum to 1.0, got {total}")


def calculate_duplication_risk(
    production: float,
    pattern_multiplier: float,
    effective_combinations: int = settings.EFFECTIVE_COMBINATIONS,
) -> float:
    """A thousand yearly duplicates saturates the base risk before the pattern multiplier."""
    duplicates = production / effective_combinations
    return clamp(duplicates / 1000 * 100 * pattern_multiplier)


def calculate_pattern_risk(pattern_multiplier: float, confidence: float) -> float:
    return clamp(pattern_multiplier * confidence * 100)


def calculate_risk_score(
    duplication_risk: float,
    manufacturing_risk: float,
    confidence: float,
    weights: ScoreWeights = ScoreWeights(),
) -> tuple[int, dict]:
    """
    Weighted sum of the three signals.

    Returns:
        (score, breakdown) where breakdown shows each weighted contribution.
    """
    contributions = {
        "duplication": duplication_risk * weights.duplication,
        "manufacturing": manufacturing_risk * weights.manufacturing,
        "confidence": confidence * 100 * weights.confidence,
    }
    score = clamp_score(sum(contributions.values()))
    breakdown = {
        "contributions": contributions,
        "final_score": score,
    }
    return score, breakdown


def risk_level(score: float) -> RiskLevel:
    if score >= HIGH_THRESHOLD:
        return "high"
    if score >= MEDIUM_THRESHOLD:
        return "medium"
    return "low"
