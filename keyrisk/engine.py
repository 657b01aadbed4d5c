"""
Risk Engine — Assessment Orchestrator

Turns one classifier prediction into the two verdicts:
  - calculate_risk:                   0-100 score, tier, factors, guidance
  - calculate_keyed_alike_certainty:  % certainty the key is duplicated nearby

This module coordinates bitting extraction, pattern classification,
manufacturing and geographic estimation, and the two aggregators. It holds
no mutable state; every constant is injected at construction.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import time
from typing import Any, Optional, Union

from keyrisk.bitting import ExtractedBitting, extract_bitting, is_macs_compliant
from keyrisk.certainty import (
    CertaintyWeights,
    aggregate_certainty,
    calculate_mathematical_certainty,
    calculate_pattern_certainty,
    certainty_verdict,
)
from keyrisk.classifier import PatternClassification, risk_scoring_classifier
from keyrisk.config import settings
from keyrisk.geographic import GeographicEstimator
from keyrisk.jitter import JitterSource, RandomJitter
from keyrisk.manufacturing import estimate_brand_risk, estimate_manufacturing_risk
from keyrisk.numeric import round_half_up
from keyrisk.recommendations import generate_recommendations
from keyrisk.schemas.assessment import (
    CertaintyBreakdown,
    CertaintyResult,
    KeyedAlikeRiskScore,
    ModelPrediction,
    RiskFactors,
    RiskMetadata,
)
from keyrisk.scorer import (
    ScoreWeights,
    calculate_duplication_risk,
    calculate_pattern_risk,
    calculate_risk_score,
    risk_level,
)

logger = logging.getLogger(__name__)

PredictionInput = Union[ModelPrediction, dict[str, Any]]

CUMULATIVE_YEARS = 10


class IncompletePredictionError(ValueError):
    """A required classifier signal is missing or out of range."""

    def __init__(self, problems: dict[str, str]):
        self.problems = problems
        self.fields = list(problems)
        detail = "; ".join(f"{name}: {reason}" for name, reason in problems.items())
        super().__init__(f"Incomplete prediction ({detail})")


def _coerce(prediction: PredictionInput) -> ModelPrediction:
    if isinstance(prediction, ModelPrediction):
        return prediction
    return ModelPrediction.model_validate(prediction)


def validate_prediction(prediction: ModelPrediction) -> None:
    """Raise IncompletePredictionError listing every offending field."""
    problems: dict[str, str] = {}

    if not prediction.keyway or not prediction.keyway.strip():
        problems["keyway"] = "missing"

    if prediction.confidence is None:
        problems["confidence"] = "missing"
    elif not math.isfinite(prediction.confidence):
        problems["confidence"] = "must be finite"
    elif not 0.0 <= prediction.confidence <= 1.0:
        problems["confidence"] = "must be within [0, 1]"

    if prediction.estimated_annual_production is None:
        problems["estimated_annual_production"] = "missing"
    elif not math.isfinite(prediction.estimated_annual_production):
        problems["estimated_annual_production"] = "must be finite"
    elif prediction.estimated_annual_production <= 0:
        problems["estimated_annual_production"] = "must be positive"

    if prediction.manufacturing_complexity is None:
        problems["manufacturing_complexity"] = "missing"
    elif not math.isfinite(prediction.manufacturing_complexity):
        problems["manufacturing_complexity"] = "must be finite"
    elif not 0 < prediction.manufacturing_complexity <= 100:
        problems["manufacturing_complexity"] = "must be within (0, 100]"

    if problems:
        raise IncompletePredictionError(problems)


class RiskEngine:
    """Keyed-alike risk assessment for classifier predictions."""

    def __init__(
        self,
        effective_combinations: int = settings.EFFECTIVE_COMBINATIONS,
        macs_limit: int = settings.MACS_LIMIT,
        jitter: Optional[JitterSource] = None,
        invalid_key_floor: float = settings.INVALID_KEY_FLOOR,
        score_weights: Optional[ScoreWeights] = None,
        certainty_weights: Optional[CertaintyWeights] = None,
        geographic: Optional[GeographicEstimator] = None,
    ):
        if effective_combinations <= 0:
            raise ValueError("effective_combinations must be positive")
        self.effective_combinations = effective_combinations
        self.macs_limit = macs_limit
        self.invalid_key_floor = invalid_key_floor
        self.score_weights = score_weights or ScoreWeights()
        self.certainty_weights = certainty_weights or CertaintyWeights()
        self._classifier = risk_scoring_classifier(
            jitter if jitter is not None else RandomJitter(settings.JITTER_SEED)
        )
        self._geographic = geographic or GeographicEstimator(
            macs_limit=macs_limit, invalid_key_floor=invalid_key_floor,
        )

    # ------------------------------------------------------------
    # Risk score
    # ------------------------------------------------------------

    def calculate_risk(self, prediction: PredictionInput) -> KeyedAlikeRiskScore:
        started = time.perf_counter()
        prediction = _coerce(prediction)
        validate_prediction(prediction)

        extracted = extract_bitting(prediction)
        bitting = extracted.pattern
        macs_valid = is_macs_compliant(bitting, self.macs_limit)
        pattern = self._classify(extracted)

        production = prediction.estimated_annual_production
        confidence = prediction.confidence
        estimated_duplicates = round_half_up(production / self.effective_combinations)

        if macs_valid:
            factors = RiskFactors(
                pattern_risk=round_half_up(calculate_pattern_risk(pattern.risk_multiplier, confidence)),
                duplication_risk=round_half_up(calculate_duplication_risk(
                    production, pattern.risk_multiplier, self.effective_combinations,
                )),
                manufacturing_risk=round_half_up(estimate_manufacturing_risk(prediction)),
                brand_risk=round_half_up(estimate_brand_risk(prediction)),
            )
            score, _ = calculate_risk_score(
                factors.duplication_risk,
                factors.manufacturing_risk,
                confidence,
                self.score_weights,
            )
        else:
            floor = round_half_up(self.invalid_key_floor)
            factors = RiskFactors(
                pattern_risk=floor,
                duplication_risk=floor,
                manufacturing_risk=floor,
                brand_risk=floor,
            )
            score = floor

        metadata = RiskMetadata(
            pattern_type=pattern.type,
            pattern_description=pattern.description,
            estimated_duplicates=estimated_duplicates,
            mathematical_analysis=self._explain(prediction, pattern, macs_valid),
            duplication_estimate=f"~{estimated_duplicates:,} duplicates per year",
            bitting_pattern=list(bitting),
            manufacturing_efficiency=factors.manufacturing_risk / 100,
            macs_compliant=macs_valid,
            macs_limit=self.macs_limit,
            bitting_source=extracted.source,
            degraded=extracted.degraded,
        )
        result = KeyedAlikeRiskScore(
            score=score,
            level=risk_level(score),
            factors=factors,
            recommendations=generate_recommendations(score, estimated_duplicates, confidence),
            metadata=metadata,
        )

        logger.info(
            "Risk assessed for %s: %d (%s)", prediction.keyway, result.score, result.level,
            extra={
                "keyway": prediction.keyway,
                "score": result.score,
                "risk_level": result.level,
                "pattern_type": pattern.type,
                "bitting_source": extracted.source,
                "duration_ms": round((time.perf_counter() - started) * 1000, 3),
            },
        )
        return result

    # ------------------------------------------------------------
    # Certainty
    # ------------------------------------------------------------

    def calculate_keyed_alike_certainty(
        self,
        prediction: PredictionInput,
        postal_code: Optional[str] = None,
    ) -> CertaintyResult:
        started = time.perf_counter()
        prediction = _coerce(prediction)
        validate_prediction(prediction)
        if postal_code is None:
            postal_code = settings.DEFAULT_POSTAL_CODE

        extracted = extract_bitting(prediction)
        bitting = extracted.pattern
        macs_valid = is_macs_compliant(bitting, self.macs_limit)
        geo = self._geographic.estimate(bitting, prediction.keyway, postal_code)
        area = self._geographic.describe_area(postal_code)

        if macs_valid:
            mathematical = calculate_mathematical_certainty(
                bitting,
                prediction.estimated_annual_production,
                prediction.manufacturing_complexity,
                self.effective_combinations,
                self.macs_limit,
                self.invalid_key_floor,
            )
            pattern_certainty = calculate_pattern_certainty(bitting, self.macs_limit)
            model = round_half_up(prediction.confidence * 100)
            certainty, _ = aggregate_certainty(
                geo.certainty, mathematical, pattern_certainty, model, self.certainty_weights,
            )
        else:
            floor = round_half_up(self.invalid_key_floor)
            mathematical = pattern_certainty = model = certainty = floor

        result = CertaintyResult(
            certainty=certainty,
            verdict=certainty_verdict(certainty, geo.local_duplicates),
            breakdown=CertaintyBreakdown(
                mathematical_certainty=(
                    f"{mathematical}% (from {prediction.estimated_annual_production:,.0f} "
                    "annual production)"
                ),
                geographic_risk=f"{geo.certainty}% (based on postal code {postal_code} density)",
                pattern_analysis=f"{pattern_certainty}% (from bitting pattern analysis)",
                model_confidence=f"{model}% (from classifier confidence)",
            ),
            geographic_certainty=geo.certainty,
            mathematical_certainty=mathematical,
            pattern_certainty=pattern_certainty,
            model_confidence=model,
            duplicates_in_area=geo.local_duplicates,
            geographic_risk_level=geo.risk_level,
            postal_code=geo.profile.postal_area,
            area_label=area.area_label,
            area_density=area.density,
            apartment_risk=area.apartment_risk,
            area_risk_factors=area.risk_factors,
            macs_compliant=macs_valid,
            bitting_source=extracted.source,
        )

        logger.info(
            "Certainty assessed for %s in %s: %d%%", prediction.keyway, postal_code, certainty,
            extra={
                "keyway": prediction.keyway,
                "postal_code": postal_code,
                "certainty": certainty,
                "bitting_source": extracted.source,
                "duration_ms": round((time.perf_counter() - started) * 1000, 3),
            },
        )
        return result

    # ------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------

    def _classify(self, extracted: ExtractedBitting) -> PatternClassification:
        pattern = self._classifier.classify(extracted.pattern)
        if extracted.degraded:
            pattern = dataclasses.replace(pattern, confidence=pattern.confidence / 2)
        return pattern

    def _explain(
        self,
        prediction: ModelPrediction,
        pattern: PatternClassification,
        macs_valid: bool,
    ) -> str:
        """Pipe-separated account of how the estimate was reached."""
        yearly = round_half_up(
            prediction.estimated_annual_production
            / self.effective_combinations
            * pattern.risk_multiplier
        )
        return " | ".join([
            f"Pattern: {pattern.description} "
            f"({round_half_up(pattern.confidence * 100)}% confidence)",
            f"Production Estimate: {prediction.estimated_annual_production:,.0f} per year",
            f"Manufacturing Complexity: {prediction.manufacturing_complexity:g}%",
            f"Estimated Duplicates: ~{yearly:,} per year",
            f"Cumulative Risk: ~{yearly * CUMULATIVE_YEARS:,} locks over {CUMULATIVE_YEARS} years",
            f"MACS Compliant: {'Yes' if macs_valid else 'No'}",
        ])
