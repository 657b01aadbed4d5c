"""
Tests for the pattern classifier: detectors, rule precedence and both
multiplier tables.
"""

import pytest

from keyrisk.classifier import (
    GEOGRAPHIC_MULTIPLIERS,
    RISK_SCORING_MULTIPLIERS,
    PatternClassifier,
    detect_date_pattern,
    detect_rule,
    find_sequential_run,
    geographic_classifier,
    has_repeated_digits,
    is_common_manufacturing_pattern,
    is_irregular,
    is_keyboard_pattern,
    repeat_count,
    risk_scoring_classifier,
)
from keyrisk.jitter import FixedJitter


@pytest.fixture
def scoring():
    return risk_scoring_classifier(FixedJitter(0.0))


@pytest.fixture
def geographic():
    return geographic_classifier()


class TestDetectors:
    def test_sequential_run(self):
        assert find_sequential_run((3, 5, 7, 2, 9)) == (3, 5, 7)
        assert find_sequential_run((9, 7, 5)) == (9, 7, 5)

    def test_flat_run_is_not_sequential(self):
        assert find_sequential_run((4, 4, 4, 1, 8)) is None

    def test_no_run(self):
        assert find_sequential_run((1, 6, 3, 9, 4)) is None

    def test_year_fragment(self):
        assert detect_date_pattern((2, 0, 3, 9, 1)) == "Recent year pattern (203)"

    def test_month_fragment(self):
        assert detect_date_pattern((0, 1, 4, 9, 6)) == "Month-based pattern (01)"

    def test_december_fragment(self):
        assert detect_date_pattern((4, 1, 2, 8, 6)) == "Month-based pattern (12)"

    @pytest.mark.parametrize("bitting", [(1, 1, 5, 8, 3), (3, 0, 5, 8, 2), (6, 1, 0, 4, 8)])
    def test_other_month_numbers_ignored(self, bitting):
        assert detect_date_pattern(bitting) is None

    def test_no_date(self):
        assert detect_date_pattern((1, 6, 3, 9, 4)) is None

    def test_repeats(self):
        assert has_repeated_digits((4, 4, 4, 1, 8)) is True
        assert repeat_count((4, 4, 4, 1, 8)) == 2
        assert repeat_count((5, 5, 5, 5, 5)) == 4
        assert has_repeated_digits((1, 6, 3, 9, 4)) is False
        assert repeat_count(()) == 0

    def test_keyboard(self):
        assert is_keyboard_pattern((2, 4, 6, 8, 1)) is True
        assert is_keyboard_pattern((1, 6, 3, 9, 4)) is False

    def test_irregular(self):
        assert is_irregular((1, 6, 3, 9, 4)) is True
        assert is_irregular((3, 4, 6, 5, 7)) is False   # low variance
        assert is_irregular((1, 9)) is False            # too short

    def test_common_manufacturing(self):
        assert is_common_manufacturing_pattern((3, 5, 7, 2, 9)) is True
        assert is_common_manufacturing_pattern((1, 6, 3, 9, 4)) is False


class TestPrecedence:
    def test_sequential_beats_keyboard(self):
        rule, detail = detect_rule((2, 4, 6, 8, 1))
        assert rule == "sequential"
        assert detail == "2→4→6"

    def test_date_beats_repeated(self):
        rule, _ = detect_rule((2, 0, 2, 0, 2))
        assert rule == "date"

    def test_double_one_is_repeated_not_date(self):
        assert detect_rule((1, 1, 5, 8, 3)) == ("repeated", "1")

    def test_repeated_beats_irregular(self):
        rule, detail = detect_rule((4, 4, 4, 1, 8))
        assert rule == "repeated"
        assert detail == "2"

    def test_irregular(self):
        assert detect_rule((1, 6, 3, 9, 4))[0] == "irregular"

    def test_default(self):
        assert detect_rule((3, 4, 6, 5, 7))[0] == "default"


class TestRiskScoringTable:
    def test_sequential(self, scoring):
        result = scoring.classify((3, 5, 7, 2, 9))
        assert result.type == "sequential"
        assert result.description == "Sequential pattern (3→5→7)"
        assert result.risk_multiplier == pytest.approx(3.0)
        assert result.confidence == 0.95

    def test_date(self, scoring):
        result = scoring.classify((2, 0, 3, 9, 1))
        assert result.type == "date"
        assert result.description == "Date-based pattern (Recent year pattern (203))"
        assert result.risk_multiplier == pytest.approx(4.5)

    def test_repeated_scales_with_repeats(self, scoring):
        result = scoring.classify((4, 4, 4, 1, 8))
        assert result.type == "repeated"
        assert result.description == "Repeated digits pattern (2 repeats)"
        assert result.risk_multiplier == pytest.approx(2.5 + 0.4 * 2)

    def test_irregular_reports_random(self, scoring):
        result = scoring.classify((1, 6, 3, 9, 4))
        assert result.type == "random"
        assert result.rule == "irregular"
        assert result.risk_multiplier == pytest.approx(0.4)

    def test_default(self, scoring):
        result = scoring.classify((3, 4, 6, 5, 7))
        assert result.rule == "default"
        assert result.risk_multiplier == pytest.approx(0.8)
        assert result.confidence == 0.6

    def test_empty_bitting(self, scoring):
        result = scoring.classify(())
        assert result.type == "random"
        assert result.risk_multiplier == 1.0
        assert result.confidence == 0.1

    def test_jitter_adds_variance(self):
        classifier = risk_scoring_classifier(FixedJitter(0.5))
        assert classifier.classify((3, 5, 7, 2, 9)).risk_multiplier == pytest.approx(3.25)

    def test_no_jitter_source_means_base(self):
        classifier = risk_scoring_classifier()
        assert classifier.classify((3, 5, 7, 2, 9)).risk_multiplier == pytest.approx(3.0)

    @pytest.mark.parametrize("value", [0.0, 0.5, 0.999])
    def test_sequential_always_above_irregular(self, value):
        classifier = risk_scoring_classifier(FixedJitter(value))
        sequential = classifier.classify((3, 5, 7, 2, 9)).risk_multiplier
        irregular = classifier.classify((1, 6, 3, 9, 4)).risk_multiplier
        assert sequential > irregular


class TestGeographicTable:
    def test_sequential(self, geographic):
        result = geographic.classify((3, 5, 7, 2, 9))
        assert result.risk_multiplier == pytest.approx(2.1)
        assert "bulk installations" in result.description

    def test_date(self, geographic):
        assert geographic.classify((0, 1, 4, 9, 6)).risk_multiplier == pytest.approx(3.8)

    def test_repeated(self, geographic):
        assert geographic.classify((4, 4, 4, 1, 8)).risk_multiplier == pytest.approx(2.0)

    def test_default(self, geographic):
        assert geographic.classify((3, 4, 6, 5, 7)).risk_multiplier == pytest.approx(1.0)

    def test_tables_differ(self):
        assert GEOGRAPHIC_MULTIPLIERS["sequential"].base != RISK_SCORING_MULTIPLIERS["sequential"].base

    def test_incomplete_table_rejected(self):
        table = dict(GEOGRAPHIC_MULTIPLIERS)
        del table["keyboard"]
        with pytest.raises(ValueError, match="keyboard"):
            PatternClassifier("broken", table)
