"""
Manufacturing Risk Estimator

Mass-production indicators derived from the classifier's manufacturing
signals. The complexity figure is taken as supplied, never recomputed
from the bitting; market penetration (share, 0-1) and time in market
(years) nudge it upward when present.
"""

from __future__ import annotations

from keyrisk.numeric import clamp
from keyrisk.schemas.assessment import ModelPrediction

# Years beyond this add nothing further
TIME_IN_MARKET_CAP_YEARS = 10.0

MANUFACTURING_PENETRATION_WEIGHT = 10.0
MANUFACTURING_YEAR_WEIGHT = 0.5

BRAND_PENETRATION_WEIGHT = 20.0
BRAND_YEAR_WEIGHT = 1.0


def _market_signals(prediction: ModelPrediction) -> tuple[float, float]:
    penetration = clamp(prediction.market_penetration or 0.0, 0.0, 1.0)
    years = clamp(prediction.time_in_market or 0.0, 0.0, TIME_IN_MARKET_CAP_YEARS)
    return penetration, years


def estimate_manufacturing_risk(prediction: ModelPrediction) -> float:
    """
    Manufacturing risk in [0, 100].

    Requires ``manufacturing_complexity``; callers validate presence
    before calling (see RiskEngine).
    """
    penetration, years = _market_signals(prediction)
    risk = (
        prediction.manufacturing_complexity
        + penetration * MANUFACTURING_PENETRATION_WEIGHT
        + years * MANUFACTURING_YEAR_WEIGHT
    )
    return clamp(risk)


def estimate_brand_risk(prediction: ModelPrediction) -> float:
    """Brand exposure: complexity discounted by model confidence, plus market reach."""
    penetration, years = _market_signals(prediction)
    risk = (
        prediction.manufacturing_complexity * prediction.confidence
        + penetration * BRAND_PENETRATION_WEIGHT
        + years * BRAND_YEAR_WEIGHT
    )
    return clamp(risk)
