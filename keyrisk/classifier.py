"""
Pattern Classifier — Bitting Regularity Detection

Detects structural regularities in a bitting sequence that make the
combination more likely to be chosen, manufactured in bulk, or
installed by contractors across many doors.

Rules are evaluated in a fixed precedence order and the first match wins:

  sequential > date > repeated > keyboard > irregular > default

The detection rules are shared. What a match is WORTH is not: two
separate multiplier tables exist, one for general duplication scoring
and one for geographically clustered duplication, where sequential and
date patterns weigh more because contractors use them for bulk
installs. The two tables are tuned independently.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Optional, Sequence

from keyrisk.bitting import depth_variance
from keyrisk.jitter import JitterSource


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class PatternClassification:
    """Exactly one per bitting pattern."""
    type: str               # "sequential" | "date" | "repeated" | "keyboard" | "random"
    description: str
    risk_multiplier: float
    confidence: float       # 0.0 to 1.0
    rule: str               # rule that matched, incl. "irregular" / "default"


@dataclass(frozen=True)
class MultiplierRule:
    """
    What a rule match is worth in one analysis.

    multiplier = base + per_repeat * repeats + jitter * next()
    """
    pattern_type: str
    description: str        # may reference {detail} and {repeats}
    base: float
    confidence: float
    jitter: float = 0.0
    per_repeat: float = 0.0


RULE_ORDER = ("sequential", "date", "repeated", "keyboard", "irregular", "default")


# ============================================================
# MULTIPLIER TABLES
# ============================================================

RISK_SCORING_MULTIPLIERS: dict[str, MultiplierRule] = {
    "sequential": MultiplierRule(
        pattern_type="sequential",
        description="Sequential pattern ({detail})",
        base=3.0, jitter=0.5, confidence=0.95,
    ),
    "date": MultiplierRule(
        pattern_type="date",
        description="Date-based pattern ({detail})",
        base=4.5, jitter=1.0, confidence=0.9,
    ),
    "repeated": MultiplierRule(
        pattern_type="repeated",
        description="Repeated digits pattern ({repeats} repeats)",
        base=2.5, per_repeat=0.4, jitter=0.3, confidence=0.85,
    ),
    "keyboard": MultiplierRule(
        pattern_type="keyboard",
        description="Keyboard-inspired pattern (human bias)",
        base=2.7, jitter=0.4, confidence=0.8,
    ),
    "irregular": MultiplierRule(
        pattern_type="random",
        description="Irregular pattern (low predictability)",
        base=0.4, jitter=0.4, confidence=0.7,
    ),
    "default": MultiplierRule(
        pattern_type="random",
        description="Standard random pattern",
        base=0.8, jitter=0.4, confidence=0.6,
    ),
}

GEOGRAPHIC_MULTIPLIERS: dict[str, MultiplierRule] = {
    "sequential": MultiplierRule(
        pattern_type="sequential",
        description="Sequential pattern (common in bulk installations)",
        base=2.1, confidence=0.95,
    ),
    "date": MultiplierRule(
        pattern_type="date",
        description="Date pattern (contractors use building year/address)",
        base=3.8, confidence=0.9,
    ),
    "repeated": MultiplierRule(
        pattern_type="repeated",
        description="Repeated digits ({repeats} repeats - common in bulk orders)",
        base=1.4, per_repeat=0.3, confidence=0.85,
    ),
    "keyboard": MultiplierRule(
        pattern_type="keyboard",
        description="Keyboard pattern (human-selected, predictable)",
        base=1.8, confidence=0.8,
    ),
    "irregular": MultiplierRule(
        pattern_type="random",
        description="Irregular pattern (less likely in bulk installations)",
        base=0.4, confidence=0.7,
    ),
    "default": MultiplierRule(
        pattern_type="random",
        description="Standard random pattern",
        base=1.0, confidence=0.6,
    ),
}


# ============================================================
# DETECTORS
# ============================================================

YEAR_FRAGMENTS = ("202", "203")
MONTH_FRAGMENTS = ("01", "12")
COMMON_DATE_SEQUENCES = ("1234", "4321", "1111", "2222", "0000")
KEYBOARD_SEQUENCES = ("1234", "4321", "1357", "2468", "5432", "6789")
IRREGULAR_VARIANCE_THRESHOLD = 4.0

COMMON_MANUFACTURING_PATTERNS: frozenset[tuple[int, ...]] = frozenset({
    (5, 5, 5, 5, 5), (1, 2, 3, 4, 5), (5, 4, 3, 2, 1),
    (3, 5, 7, 2, 9), (1, 1, 1, 1, 1), (2, 4, 6, 8, 1),
    (1, 3, 5, 7, 9), (9, 7, 5, 3, 1),
})


def _digits(bitting: Sequence[int]) -> str:
    return "".join(str(d) for d in bitting)


def find_sequential_run(bitting: Sequence[int]) -> Optional[tuple[int, int, int]]:
    """First three-cut arithmetic run with a non-zero step, if any."""
    for i in range(len(bitting) - 2):
        step = bitting[i + 1] - bitting[i]
        if step != 0 and bitting[i + 2] - bitting[i + 1] == step:
            return bitting[i], bitting[i + 1], bitting[i + 2]
    return None


def is_sequential(bitting: Sequence[int]) -> bool:
    return find_sequential_run(bitting) is not None


def detect_date_pattern(bitting: Sequence[int]) -> Optional[str]:
    """Describe the date-like fragment found, or None."""
    digits = _digits(bitting)
    for fragment in YEAR_FRAGMENTS:
        if fragment in digits:
            return f"Recent year pattern ({fragment})"
    for fragment in MONTH_FRAGMENTS:
        if fragment in digits:
            return f"Month-based pattern ({fragment})"
    for sequence in COMMON_DATE_SEQUENCES:
        if sequence in digits:
            return f"Common date sequence ({sequence})"
    return None


def has_repeated_digits(bitting: Sequence[int]) -> bool:
    return any(count >= 2 for count in Counter(bitting).values())


def repeat_count(bitting: Sequence[int]) -> int:
    """Occurrences of the most frequent depth, minus one."""
    if not bitting:
        return 0
    return max(Counter(bitting).values()) - 1


def is_keyboard_pattern(bitting: Sequence[int]) -> bool:
    digits = _digits(bitting)
    return any(sequence in digits for sequence in KEYBOARD_SEQUENCES)


def is_irregular(bitting: Sequence[int]) -> bool:
    """High variance, no repeats, no sequential run."""
    if len(bitting) < 3:
        return False
    return (
        depth_variance(bitting) > IRREGULAR_VARIANCE_THRESHOLD
        and not has_repeated_digits(bitting)
        and not is_sequential(bitting)
    )


def is_common_manufacturing_pattern(bitting: Sequence[int]) -> bool:
    return tuple(bitting) in COMMON_MANUFACTURING_PATTERNS


def detect_rule(bitting: Sequence[int]) -> tuple[str, str]:
    """
    Return ``(rule, detail)`` for the first matching rule.

    ``detail`` is a short human-readable fragment used in descriptions.
    """
    run = find_sequential_run(bitting)
    if run is not None:
        return "sequential", "→".join(str(d) for d in run)

    date = detect_date_pattern(bitting)
    if date is not None:
        return "date", date

    if has_repeated_digits(bitting):
        return "repeated", str(repeat_count(bitting))

    if is_keyboard_pattern(bitting):
        return "keyboard", ""

    if is_irregular(bitting):
        return "irregular", ""

    return "default", ""


# ============================================================
# THE CLASSIFIER
# ============================================================

class PatternClassifier:
    """
    Applies the shared detection rules and prices the match from one
    multiplier table.

    Holds no mutable state of its own; the jitter source is the only
    collaborator and is consulted once per classification when the
    matched rule carries jitter.
    """

    def __init__(
        self,
        name: str,
        multipliers: dict[str, MultiplierRule],
        jitter: Optional[JitterSource] = None,
    ):
        missing = [rule for rule in RULE_ORDER if rule not in multipliers]
        if missing:
            raise ValueError(f"Multiplier table '{name}' is missing rules: {missing}")
        self.name = name
        self._multipliers = multipliers
        self._jitter = jitter

    def classify(self, bitting: Sequence[int]) -> PatternClassification:
        if not bitting:
            return PatternClassification(
                type="random",
                description="No pattern data available",
                risk_multiplier=1.0,
                confidence=0.1,
                rule="default",
            )

        rule_name, detail = detect_rule(bitting)
        rule = self._multipliers[rule_name]
        repeats = repeat_count(bitting)

        multiplier = rule.base + rule.per_repeat * repeats
        if rule.jitter and self._jitter is not None:
            multiplier += rule.jitter * self._jitter.next()

        return PatternClassification(
            type=rule.pattern_type,
            description=rule.description.format(detail=detail, repeats=repeats),
            risk_multiplier=multiplier,
            confidence=rule.confidence,
            rule=rule_name,
        )


def risk_scoring_classifier(jitter: Optional[JitterSource] = None) -> PatternClassifier:
    """Classifier priced for general duplication scoring."""
    return PatternClassifier("risk_scoring", RISK_SCORING_MULTIPLIERS, jitter)


def geographic_classifier() -> PatternClassifier:
    """Classifier priced for geographically clustered duplication."""
    return PatternClassifier("geographic", GEOGRAPHIC_MULTIPLIERS)
