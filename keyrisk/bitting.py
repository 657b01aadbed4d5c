"""
Bitting Extraction and Validity

Turns whatever pin-depth data the classifier returned into an ordered
tuple of integer cut depths, and checks that the combination could
physically exist (MACS).

Sources are tried in order:
  1. ``bittingPattern``: numeric list
  2. ``bitting``: numeric list or delimited string ("2.5, 4.5, 7.5")
  3. ``detectionRegions.pins[].height``
  4. an example pattern for the keyway (degraded, logged)
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from keyrisk.config import settings
from keyrisk.numeric import round_half_up
from keyrisk.schemas.assessment import ModelPrediction

logger = logging.getLogger(__name__)

Bitting = tuple[int, ...]

EXAMPLE_BITTINGS: dict[str, Bitting] = {
    "SC1": (3, 5, 7, 2, 9),
    "KW1": (2, 4, 6, 3, 8),
    "WR5": (1, 6, 3, 9, 4),
}
DEFAULT_EXAMPLE_BITTING: Bitting = (3, 5, 7, 2, 9)

_DELIMITERS = re.compile(r"[,;|\s]+")


@dataclass(frozen=True)
class ExtractedBitting:
    """Bitting plus where it came from."""
    pattern: Bitting
    source: str  # "bitting_pattern" | "bitting" | "detection_regions" | "fallback"

    @property
    def degraded(self) -> bool:
        return self.source == "fallback"


# ============================================================
# PARSING
# ============================================================

def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_bitting(
    raw: Any,
    min_depth: int = settings.MIN_DEPTH,
    max_depth: int = settings.MAX_DEPTH,
) -> Optional[Bitting]:
    """
    Parse a raw bitting value into integer depths.

    Accepts a sequence of numbers or a delimited string. Unparseable
    tokens are dropped. Returns None when nothing usable remains or any
    depth falls outside [min_depth, max_depth].
    """
    if raw is None:
        return None

    if isinstance(raw, str):
        tokens: Sequence[Any] = [t for t in _DELIMITERS.split(raw.strip()) if t]
    elif isinstance(raw, (list, tuple)):
        tokens = raw
    else:
        return None

    depths = []
    for token in tokens:
        number = _to_float(token)
        if number is None:
            continue
        depths.append(round_half_up(number))

    if not depths:
        return None
    if any(d < min_depth or d > max_depth for d in depths):
        return None
    return tuple(depths)


def _pin_heights(detection_regions: Any) -> Optional[list]:
    if not isinstance(detection_regions, dict):
        return None
    pins = detection_regions.get("pins")
    if not isinstance(pins, list) or not pins:
        return None
    return [pin.get("height") if isinstance(pin, dict) else None for pin in pins]


def example_bitting(keyway: Optional[str]) -> Bitting:
    """Deterministic illustrative pattern for a keyway."""
    return EXAMPLE_BITTINGS.get(keyway or "", DEFAULT_EXAMPLE_BITTING)


def extract_bitting(prediction: ModelPrediction) -> ExtractedBitting:
    """Normalize the prediction's pin-depth data. Never raises."""
    candidates = (
        ("bitting_pattern", prediction.bitting_pattern),
        ("bitting", prediction.bitting),
        ("detection_regions", _pin_heights(prediction.detection_regions)),
    )
    for source, raw in candidates:
        pattern = parse_bitting(raw)
        if pattern is not None:
            return ExtractedBitting(pattern=pattern, source=source)

    logger.warning(
        "No usable bitting data, using example pattern",
        extra={"keyway": prediction.keyway, "bitting_source": "fallback"},
    )
    return ExtractedBitting(pattern=example_bitting(prediction.keyway), source="fallback")


# ============================================================
# VALIDITY (MACS)
# ============================================================

def is_macs_compliant(bitting: Sequence[int], limit: int = settings.MACS_LIMIT) -> bool:
    """True unless two neighbouring cuts differ by more than ``limit``."""
    return all(
        abs(bitting[i + 1] - bitting[i]) <= limit
        for i in range(len(bitting) - 1)
    )


# ============================================================
# DESCRIPTORS
# ============================================================

def depth_variance(bitting: Sequence[int]) -> float:
    """Population variance of the cut depths."""
    if not bitting:
        return 0.0
    mean = sum(bitting) / len(bitting)
    return sum((d - mean) ** 2 for d in bitting) / len(bitting)


def security_features(
    keyway: Optional[str],
    bitting: Sequence[int],
    macs_limit: int = settings.MACS_LIMIT,
) -> list[str]:
    """Human-readable physical traits of the key."""
    features: list[str] = []
    if bitting:
        if depth_variance(bitting) > 2:
            features.append("High variance bitting")
        if max(bitting) - min(bitting) > macs_limit:
            features.append("Wide depth range")

    keyway = keyway or ""
    if "SC" in keyway:
        features.append("Schlage keyway")
    elif "KW" in keyway:
        features.append("Kwikset keyway")

    if not features:
        features.append("Standard Pin Tumbler")
    return features
