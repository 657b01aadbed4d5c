"""
UI Summary Formatter

Flattens a prediction and its assessment into the shape display layers
consume, and reads that shape back from JSON.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from keyrisk.bitting import security_features
from keyrisk.schemas.assessment import (
    AdditionalInfo,
    CertaintyResult,
    KeyedAlikeRiskScore,
    MathematicalAnalysis,
    ModelPrediction,
    RiskLevel,
    UIFormattedResult,
)

RISK_MESSAGES: dict[str, str] = {
    "low": "Low risk of being a keyed-alike system.",
    "medium": "Medium risk of being a keyed-alike system. Consider re-keying.",
    "high": "High risk of being a keyed-alike system. Upgrade recommended.",
}


def risk_message(level: RiskLevel) -> str:
    return RISK_MESSAGES.get(level, "Keyed-alike risk assessment complete.")


def format_for_ui(
    prediction: Union[ModelPrediction, dict[str, Any]],
    assessment: KeyedAlikeRiskScore,
    certainty: Optional[CertaintyResult] = None,
) -> UIFormattedResult:
    if not isinstance(prediction, ModelPrediction):
        prediction = ModelPrediction.model_validate(prediction)

    metadata = assessment.metadata
    keyway = prediction.keyway or ""

    return UIFormattedResult(
        keyway=keyway,
        confidence=prediction.confidence if prediction.confidence is not None else 0.0,
        risk_level=assessment.level,
        lock_type=prediction.lock_type,
        security_score=assessment.score,
        risk_message=risk_message(assessment.level),
        keyed_alike_risk=assessment.level != "low",
        recommendations=list(assessment.recommendations),
        mathematical_analysis=MathematicalAnalysis(
            explanation=metadata.mathematical_analysis,
            pattern_type=metadata.pattern_type,
            pattern_description=metadata.pattern_description,
            duplication_estimate=metadata.duplication_estimate,
            estimated_duplicates=metadata.estimated_duplicates,
            manufacturing_efficiency=metadata.manufacturing_efficiency,
            bitting_pattern=list(metadata.bitting_pattern),
            risk_factors=assessment.factors,
        ),
        additional_info=AdditionalInfo(
            pin_count=len(metadata.bitting_pattern),
            security_features=security_features(
                keyway, metadata.bitting_pattern, metadata.macs_limit,
            ),
            macs_code=f"MACS {metadata.macs_limit}" if metadata.macs_compliant else "N/A",
            category=prediction.lock_type.replace("_", " ").title(),
        ),
        keyed_alike_certainty=certainty.certainty if certainty is not None else None,
        certainty_verdict=certainty.verdict if certainty is not None else None,
    )


def read_summary(payload: Union[str, bytes, dict[str, Any]]) -> UIFormattedResult:
    """Parse a summary from its JSON text or dict form (camelCase or snake_case)."""
    if isinstance(payload, (str, bytes)):
        return UIFormattedResult.model_validate_json(payload)
    return UIFormattedResult.model_validate(payload)
