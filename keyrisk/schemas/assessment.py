"""
Assessment Schemas — Input and Output Models

Pydantic models for the prediction handed over by the external key
classifier and for the risk verdicts this package produces. Field names
are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

RiskLevel = Literal["low", "medium", "high"]


class CamelModel(BaseModel):
    """Base model accepting and emitting camelCase keys."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


# ============================================================
# INPUT
# ============================================================

class ModelPrediction(CamelModel):
    """Structured result returned by the key classifier.

    Required signals are typed as optional on purpose: their absence is
    reported by the engine as an IncompletePredictionError naming every
    missing field, instead of a generic validation failure. Raw bitting
    containers are untyped because malformed bitting degrades to an
    example pattern rather than rejecting the prediction.
    """
    keyway: Optional[str] = None
    confidence: Optional[float] = None
    lock_type: str = "residential"
    brand_detected: Optional[str] = None

    estimated_annual_production: Optional[float] = None
    manufacturing_complexity: Optional[float] = None
    market_penetration: Optional[float] = None
    time_in_market: Optional[float] = None

    bitting_pattern: Any = None
    bitting: Any = None
    detection_regions: Any = None

    model_config = {"json_schema_extra": {"examples": [
        {
            "keyway": "SC1",
            "confidence": 0.9,
            "bittingPattern": [3, 5, 7, 2, 9],
            "estimatedAnnualProduction": 40_000_000,
            "manufacturingComplexity": 70,
        },
    ]}}


# ============================================================
# RISK SCORE
# ============================================================

class RiskFactors(CamelModel):
    pattern_risk: int = Field(..., ge=0, le=100)
    duplication_risk: int = Field(..., ge=0, le=100)
    manufacturing_risk: int = Field(..., ge=0, le=100)
    brand_risk: int = Field(..., ge=0, le=100)


class RiskMetadata(CamelModel):
    pattern_type: str
    pattern_description: str
    estimated_duplicates: int
    mathematical_analysis: str
    duplication_estimate: str
    bitting_pattern: list[int]
    manufacturing_efficiency: float
    macs_compliant: bool
    macs_limit: int
    bitting_source: str
    degraded: bool = False


class KeyedAlikeRiskScore(CamelModel):
    """Primary verdict: 0-100 score, tier, and guidance."""
    score: int = Field(..., ge=0, le=100)
    level: RiskLevel
    factors: RiskFactors
    recommendations: list[str]
    metadata: RiskMetadata


# ============================================================
# CERTAINTY
# ============================================================

class CertaintyBreakdown(CamelModel):
    mathematical_certainty: str
    geographic_risk: str
    pattern_analysis: str
    model_confidence: str


class CertaintyResult(CamelModel):
    """Deep-dive verdict: how certain we are the key is duplicated nearby."""
    certainty: int = Field(..., ge=0, le=100)
    verdict: str
    breakdown: CertaintyBreakdown

    geographic_certainty: int
    mathematical_certainty: int
    pattern_certainty: int
    model_confidence: int
    duplicates_in_area: int
    geographic_risk_level: str

    postal_code: str
    area_label: str
    area_density: str
    apartment_risk: str
    area_risk_factors: list[str] = Field(default_factory=list)

    macs_compliant: bool
    bitting_source: str


# ============================================================
# UI SUMMARY
# ============================================================

class MathematicalAnalysis(CamelModel):
    explanation: str
    pattern_type: str
    pattern_description: str
    duplication_estimate: str
    estimated_duplicates: int
    manufacturing_efficiency: float
    bitting_pattern: list[int]
    risk_factors: RiskFactors


class AdditionalInfo(CamelModel):
    pin_count: int
    security_features: list[str]
    macs_code: str
    category: str = "Residential"


class UIFormattedResult(CamelModel):
    """Flattened view of an assessment for display layers."""
    keyway: str
    confidence: float
    risk_level: RiskLevel
    lock_type: str
    security_score: int = Field(..., ge=0, le=100)
    risk_message: str
    keyed_alike_risk: bool
    recommendations: list[str]
    mathematical_analysis: MathematicalAnalysis
    additional_info: AdditionalInfo
    keyed_alike_certainty: Optional[int] = None
    certainty_verdict: Optional[str] = None
