"""
keyrisk — Keyed-Alike Risk Assessment Engine

Estimates how likely a physical key's bitting is shared by other locks,
from a key classifier's prediction and an optional postal code.

Public API:
  - RiskEngine:        Risk score and keyed-alike certainty for a prediction
  - format_for_ui:     Flattened summary for display layers
  - read_summary:      Parse a summary back from JSON
  - FixedJitter / RandomJitter: Injectable variance sources
  - setup_logging:     Configure the package logger

Usage:
    from keyrisk import RiskEngine, FixedJitter
    engine = RiskEngine(jitter=FixedJitter(0.0))
    score = engine.calculate_risk(prediction)
    certainty = engine.calculate_keyed_alike_certainty(prediction, "10001")
"""

__version__ = "1.0.0"

from keyrisk.engine import IncompletePredictionError, RiskEngine
from keyrisk.formatter import format_for_ui, read_summary, risk_message
from keyrisk.jitter import FixedJitter, JitterSource, RandomJitter
from keyrisk.logging import get_logger, setup_logging
from keyrisk.schemas import (
    CertaintyResult,
    KeyedAlikeRiskScore,
    ModelPrediction,
    UIFormattedResult,
)

__all__ = [
    "RiskEngine",
    "IncompletePredictionError",
    "format_for_ui",
    "read_summary",
    "risk_message",
    "FixedJitter",
    "JitterSource",
    "RandomJitter",
    "get_logger",
    "setup_logging",
    "CertaintyResult",
    "KeyedAlikeRiskScore",
    "ModelPrediction",
    "UIFormattedResult",
]
