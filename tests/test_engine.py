"""
End-to-end tests for the risk engine: reference scenarios, the MACS
floor, determinism and rejection of incomplete predictions.
"""

import logging

import pytest
from pydantic import ValidationError

from keyrisk.certainty import CertaintyWeights
from keyrisk.engine import IncompletePredictionError, RiskEngine
from keyrisk.jitter import FixedJitter, RandomJitter
from keyrisk.schemas import ModelPrediction
from keyrisk.scorer import ScoreWeights


def _sc1(**overrides) -> dict:
    payload = {
        "keyway": "SC1",
        "confidence": 0.9,
        "bittingPattern": [3, 5, 7, 2, 9],
        "estimatedAnnualProduction": 40_000_000,
        "manufacturingComplexity": 70,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def engine():
    return RiskEngine(jitter=FixedJitter(0.0))


class TestReferenceScenario:
    """SC1, sequential bitting, 40M per year."""

    def test_score(self, engine):
        result = engine.calculate_risk(_sc1())
        assert result.score == 87
        assert result.level == "high"

    def test_factors(self, engine):
        factors = engine.calculate_risk(_sc1()).factors
        assert factors.pattern_risk == 100
        assert factors.duplication_risk == 100
        assert factors.manufacturing_risk == 70
        assert factors.brand_risk == 63

    def test_metadata(self, engine):
        metadata = engine.calculate_risk(_sc1()).metadata
        assert metadata.estimated_duplicates == 667
        assert metadata.duplication_estimate == "~667 duplicates per year"
        assert metadata.pattern_type == "sequential"
        assert metadata.pattern_description == "Sequential pattern (3→5→7)"
        assert metadata.bitting_pattern == [3, 5, 7, 2, 9]
        assert metadata.manufacturing_efficiency == pytest.approx(0.7)
        assert metadata.macs_compliant is True
        assert metadata.bitting_source == "bitting_pattern"
        assert metadata.degraded is False

    def test_mathematical_analysis(self, engine):
        explanation = engine.calculate_risk(_sc1()).metadata.mathematical_analysis
        parts = explanation.split(" | ")
        assert parts[0] == "Pattern: Sequential pattern (3→5→7) (95% confidence)"
        assert "Production Estimate: 40,000,000 per year" in parts
        assert "Manufacturing Complexity: 70%" in parts
        assert "Estimated Duplicates: ~2,000 per year" in parts
        assert "Cumulative Risk: ~20,000 locks over 10 years" in parts
        assert parts[-1] == "MACS Compliant: Yes"

    def test_recommendations(self, engine):
        recs = engine.calculate_risk(_sc1()).recommendations
        assert recs[0] == "HIGH RISK: Your key pattern likely exists in ~667 other locks."
        assert recs[2].endswith("(AI confidence: 90%).")
        assert len(recs) == 3

    def test_certainty_in_dense_area(self, engine):
        result = engine.calculate_keyed_alike_certainty(_sc1(), "10001")
        assert result.certainty == 92
        assert result.certainty > 70
        assert result.verdict.startswith("HIGHLY LIKELY")
        assert "12,256" in result.verdict
        assert result.geographic_certainty == 100
        assert result.mathematical_certainty == 80
        assert result.pattern_certainty == 95
        assert result.model_confidence == 90
        assert result.duplicates_in_area == 12256
        assert result.geographic_risk_level == "CERTAIN"
        assert result.area_label == "NYC"
        assert result.area_density == "VERY HIGH"
        assert result.apartment_risk == "HIGH"

    def test_certainty_breakdown_text(self, engine):
        breakdown = engine.calculate_keyed_alike_certainty(_sc1(), "10001").breakdown
        assert breakdown.mathematical_certainty == "80% (from 40,000,000 annual production)"
        assert breakdown.geographic_risk == "100% (based on postal code 10001 density)"
        assert breakdown.pattern_analysis == "95% (from bitting pattern analysis)"
        assert breakdown.model_confidence == "90% (from classifier confidence)"

    def test_unknown_area_is_less_certain(self, engine):
        dense = engine.calculate_keyed_alike_certainty(_sc1(), "10001")
        unknown = engine.calculate_keyed_alike_certainty(_sc1(), "99999")
        assert unknown.certainty == 87
        assert unknown.certainty < dense.certainty
        assert unknown.area_label == "Unknown"

    def test_default_postal_code(self, engine):
        result = engine.calculate_keyed_alike_certainty(_sc1())
        assert result.postal_code == "00000"
        assert result.certainty == 87


class TestTiers:
    def test_low(self, engine):
        result = engine.calculate_risk({
            "keyway": "WR5",
            "confidence": 0.2,
            "bittingPattern": [1, 6, 3, 9, 4],
            "estimatedAnnualProduction": 1_000_000,
            "manufacturingComplexity": 10,
        })
        assert result.score == 9
        assert result.level == "low"
        assert result.metadata.pattern_type == "random"
        assert result.recommendations[0] == "LOW RISK: Relatively secure pattern (~17 estimated)."

    def test_medium(self, engine):
        result = engine.calculate_risk({
            "keyway": "KW1",
            "confidence": 0.9,
            "bittingPattern": [1, 6, 3, 9, 4],
            "estimatedAnnualProduction": 6_000_000,
            "manufacturingComplexity": 80,
        })
        assert result.score == 52
        assert result.level == "medium"
        assert result.factors.duplication_risk == 4
        assert result.recommendations[2] == "AI confidence: 90%"

    @pytest.mark.parametrize("production", [1, 60_000, 6_000_000, 10_000_000_000])
    def test_score_in_bounds(self, engine, production):
        result = engine.calculate_risk(_sc1(estimatedAnnualProduction=production))
        assert 0 <= result.score <= 100


class TestInvalidKey:
    """Adjacent cuts differing by more than the MACS limit."""

    def test_score_at_floor(self, engine):
        result = engine.calculate_risk(_sc1(bittingPattern=[1, 9, 1, 9, 1]))
        assert result.score == 5
        assert result.level == "low"
        assert result.factors.pattern_risk == 5
        assert result.factors.duplication_risk == 5
        assert result.factors.manufacturing_risk == 5
        assert result.factors.brand_risk == 5
        assert result.metadata.macs_compliant is False
        assert result.metadata.mathematical_analysis.endswith("MACS Compliant: No")

    def test_certainty_at_floor(self, engine):
        result = engine.calculate_keyed_alike_certainty(_sc1(bittingPattern=[1, 9, 1, 9, 1]), "10001")
        assert result.certainty == 5
        assert result.duplicates_in_area == 0
        assert result.verdict.startswith("LOW RISK")
        assert result.macs_compliant is False

    def test_custom_limit(self):
        engine = RiskEngine(jitter=FixedJitter(0.0), macs_limit=8)
        assert engine.calculate_risk(_sc1(bittingPattern=[1, 9, 1, 9, 1])).metadata.macs_compliant is True


class TestDeterminism:
    def test_fixed_jitter(self):
        first = RiskEngine(jitter=FixedJitter(0.3)).calculate_risk(_sc1())
        second = RiskEngine(jitter=FixedJitter(0.3)).calculate_risk(_sc1())
        assert first.model_dump() == second.model_dump()

    def test_seeded_jitter(self):
        first = RiskEngine(jitter=RandomJitter(42)).calculate_risk(_sc1())
        second = RiskEngine(jitter=RandomJitter(42)).calculate_risk(_sc1())
        assert first.model_dump() == second.model_dump()

    def test_repeated_calls(self, engine):
        assert engine.calculate_risk(_sc1()) == engine.calculate_risk(_sc1())

    def test_certainty_ignores_jitter(self):
        first = RiskEngine(jitter=FixedJitter(0.0)).calculate_keyed_alike_certainty(_sc1(), "10001")
        second = RiskEngine(jitter=FixedJitter(0.9)).calculate_keyed_alike_certainty(_sc1(), "10001")
        assert first == second


class TestInputs:
    def test_model_instance(self, engine):
        prediction = ModelPrediction(
            keyway="SC1",
            confidence=0.9,
            bitting_pattern=[3, 5, 7, 2, 9],
            estimated_annual_production=40_000_000,
            manufacturing_complexity=70,
        )
        assert engine.calculate_risk(prediction).score == 87

    def test_snake_case_dict(self, engine):
        result = engine.calculate_risk({
            "keyway": "SC1",
            "confidence": 0.9,
            "bitting_pattern": [3, 5, 7, 2, 9],
            "estimated_annual_production": 40_000_000,
            "manufacturing_complexity": 70,
        })
        assert result.score == 87

    def test_string_bitting(self, engine):
        result = engine.calculate_risk(_sc1(bittingPattern=None, bitting="3,5,7,2,9"))
        assert result.metadata.bitting_source == "bitting"
        assert result.score == 87

    def test_market_signals_raise_manufacturing_risk(self, engine):
        result = engine.calculate_risk(_sc1(marketPenetration=0.5, timeInMarket=20))
        # 70 + 0.5 * 10 + 10 * 0.5
        assert result.factors.manufacturing_risk == 80

    def test_fallback_bitting_is_tagged(self, engine, caplog):
        with caplog.at_level(logging.WARNING, logger="keyrisk.bitting"):
            result = engine.calculate_risk(_sc1(bittingPattern=None))
        assert result.metadata.bitting_source == "fallback"
        assert result.metadata.degraded is True
        assert result.metadata.bitting_pattern == [3, 5, 7, 2, 9]
        assert "(95% confidence)" not in result.metadata.mathematical_analysis
        assert caplog.records

    @pytest.mark.parametrize("regions", [[{"height": 3}], "pins", 42])
    def test_malformed_detection_regions_fall_back(self, engine, regions):
        result = engine.calculate_risk(_sc1(bittingPattern=None, detectionRegions=regions))
        assert result.metadata.bitting_source == "fallback"
        assert result.metadata.bitting_pattern == [3, 5, 7, 2, 9]

    def test_custom_weights(self):
        engine = RiskEngine(
            jitter=FixedJitter(0.0),
            score_weights=ScoreWeights(duplication=0.0, manufacturing=1.0, confidence=0.0),
            certainty_weights=CertaintyWeights(geographic=0.0, mathematical=1.0, pattern=0.0, model=0.0),
        )
        assert engine.calculate_risk(_sc1()).score == 70
        assert engine.calculate_keyed_alike_certainty(_sc1(), "10001").certainty == 80

    def test_rejects_empty_keyspace(self):
        with pytest.raises(ValueError):
            RiskEngine(effective_combinations=0)


class TestIncompletePrediction:
    def test_missing_production(self, engine):
        payload = _sc1()
        del payload["estimatedAnnualProduction"]
        with pytest.raises(IncompletePredictionError) as exc_info:
            engine.calculate_risk(payload)
        assert exc_info.value.fields == ["estimated_annual_production"]

    def test_missing_complexity(self, engine):
        payload = _sc1()
        del payload["manufacturingComplexity"]
        with pytest.raises(IncompletePredictionError) as exc_info:
            engine.calculate_risk(payload)
        assert "manufacturing_complexity" in exc_info.value.fields

    def test_lists_every_field(self, engine):
        with pytest.raises(IncompletePredictionError) as exc_info:
            engine.calculate_risk({"keyway": "", "confidence": 1.5})
        assert set(exc_info.value.fields) == {
            "keyway",
            "confidence",
            "estimated_annual_production",
            "manufacturing_complexity",
        }

    @pytest.mark.parametrize("overrides", [
        {"estimatedAnnualProduction": 0},
        {"estimatedAnnualProduction": -5},
        {"manufacturingComplexity": 0},
        {"manufacturingComplexity": 101},
        {"confidence": -0.1},
        {"keyway": "   "},
        {"estimatedAnnualProduction": float("nan")},
        {"estimatedAnnualProduction": float("inf")},
        {"manufacturingComplexity": float("nan")},
        {"confidence": float("nan")},
    ])
    def test_out_of_range(self, engine, overrides):
        with pytest.raises(IncompletePredictionError):
            engine.calculate_risk(_sc1(**overrides))

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_production_names_field(self, engine, value):
        with pytest.raises(IncompletePredictionError) as exc_info:
            engine.calculate_keyed_alike_certainty(
                _sc1(estimatedAnnualProduction=value), "10001",
            )
        assert exc_info.value.problems == {"estimated_annual_production": "must be finite"}

    def test_is_value_error(self, engine):
        with pytest.raises(ValueError):
            engine.calculate_risk(_sc1(confidence=None))

    def test_certainty_also_rejects(self, engine):
        with pytest.raises(IncompletePredictionError):
            engine.calculate_keyed_alike_certainty(_sc1(manufacturingComplexity=None), "10001")

    def test_malformed_payload(self, engine):
        with pytest.raises(ValidationError):
            engine.calculate_risk(_sc1(confidence="very"))
