"""
Geographic Duplicate Estimator

Localizes duplicate-probability estimates to a postal area. A keyway's
base annual duplicate rate is scaled by population density, apartment
concentration (bulk lock installs) and the geographic pattern
multiplier, then converted to a certainty percentage.

Postal codes resolve exact → prefix → default. Unknown or malformed
codes never raise; they fall back to the default profile.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from keyrisk.bitting import is_macs_compliant
from keyrisk.classifier import PatternClassification, PatternClassifier, geographic_classifier
from keyrisk.config import settings
from keyrisk.numeric import round_half_up

logger = logging.getLogger(__name__)


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class DensityEntry:
    tier: str           # "very_high" | "high" | "medium"
    multiplier: float
    label: str


@dataclass(frozen=True)
class GeographicProfile:
    """Density and apartment multipliers attached to one postal area."""
    postal_area: str
    density_tier: str
    density_multiplier: float
    apartment_multiplier: float
    area_label: str
    match: str          # "exact" | "prefix" | "default"


@dataclass(frozen=True)
class GeographicEstimate:
    certainty: int
    local_duplicates: int
    risk_level: str
    profile: GeographicProfile
    pattern: PatternClassification
    base_duplicates: int
    macs_compliant: bool = True


@dataclass(frozen=True)
class AreaSummary:
    area_label: str
    density: str
    apartment_risk: str
    risk_factors: list[str] = field(default_factory=list)


# ============================================================
# REFERENCE DATA
# ============================================================

# Annual duplicates per keyway: production volume / effective combinations
BASE_DUPLICATE_RATES: dict[str, int] = {
    "SC1": 667,     # ~40M / 60K
    "KW1": 800,     # higher production, looser tolerances
    "WR5": 200,
    "WR3": 180,
    "Y1": 300,
}
DEFAULT_DUPLICATE_RATE = 500

POPULATION_DENSITY: dict[str, DensityEntry] = {
    "10001": DensityEntry("very_high", 2.5, "NYC"),
    "10002": DensityEntry("very_high", 2.5, "NYC"),
    "90210": DensityEntry("very_high", 2.3, "Beverly Hills"),
    "90211": DensityEntry("very_high", 2.3, "Beverly Hills"),
    "60601": DensityEntry("very_high", 2.4, "Chicago"),
    "60602": DensityEntry("very_high", 2.4, "Chicago"),
    "02101": DensityEntry("very_high", 2.2, "Boston"),
    "02102": DensityEntry("very_high", 2.2, "Boston"),
    "94102": DensityEntry("very_high", 2.6, "San Francisco"),
    "94103": DensityEntry("very_high", 2.6, "San Francisco"),
    "30301": DensityEntry("high", 1.8, "Atlanta"),
    "75201": DensityEntry("high", 1.7, "Dallas"),
    "77001": DensityEntry("high", 1.6, "Houston"),
    "33101": DensityEntry("high", 1.9, "Miami"),
    "98101": DensityEntry("high", 1.8, "Seattle"),
}

# Checked in order; longer prefixes first
PREFIX_DENSITY: list[tuple[str, DensityEntry]] = [
    ("100", DensityEntry("very_high", 2.4, "NYC Metro")),
    ("902", DensityEntry("very_high", 2.2, "LA Metro")),
    ("900", DensityEntry("very_high", 2.2, "LA Metro")),
    ("606", DensityEntry("high", 1.9, "Chicago Metro")),
    ("607", DensityEntry("high", 1.9, "Chicago Metro")),
    ("10", DensityEntry("very_high", 2.4, "NYC Metro")),
]

DEFAULT_DENSITY = DensityEntry("medium", 1.0, "Unknown")

# Known bulk lock installation areas
APARTMENT_FACTORS: dict[str, float] = {
    "10001": 3.5, "10002": 3.5, "10003": 3.0,
    "90210": 2.8, "90211": 2.8,
    "60601": 3.2, "60602": 3.2,
    "02101": 2.9, "02102": 2.9,
}

_POSTAL_CODE = re.compile(r"^\d{5}$")

# Certainty model
DUPLICATE_CERTAINTY_CAP = 75
DENSITY_BONUS = {"very_high": 15, "high": 10}
APARTMENT_BONUS = ((2.0, 12), (1.5, 8))     # (threshold, bonus), first exceeded wins
PATTERN_BONUS_THRESHOLD = 2.0
PATTERN_BONUS = 10


# ============================================================
# LOOKUPS
# ============================================================

def base_duplicate_rate(keyway: Optional[str]) -> int:
    return BASE_DUPLICATE_RATES.get(keyway or "", DEFAULT_DUPLICATE_RATE)


def normalize_postal_code(postal_code: Optional[str]) -> Optional[str]:
    """Five-digit zone identifier, or None when malformed."""
    if postal_code is None:
        return None
    code = str(postal_code).strip()
    return code if _POSTAL_CODE.match(code) else None


def resolve_profile(postal_code: Optional[str]) -> GeographicProfile:
    code = normalize_postal_code(postal_code)
    area = code or str(postal_code or "")

    density, match = DEFAULT_DENSITY, "default"
    if code is not None:
        if code in POPULATION_DENSITY:
            density, match = POPULATION_DENSITY[code], "exact"
        else:
            for prefix, entry in PREFIX_DENSITY:
                if code.startswith(prefix):
                    density, match = entry, "prefix"
                    break

    apartment = APARTMENT_FACTORS.get(code, 1.0) if code is not None else 1.0

    return GeographicProfile(
        postal_area=area,
        density_tier=density.tier,
        density_multiplier=density.multiplier,
        apartment_multiplier=apartment,
        area_label=density.label,
        match=match,
    )


def geographic_risk_level(certainty: float) -> str:
    if certainty >= 90:
        return "CERTAIN"
    if certainty >= 75:
        return "HIGH"
    if certainty >= 50:
        return "MEDIUM"
    return "LOW"


def apartment_risk(apartment_multiplier: float) -> str:
    if apartment_multiplier > 2.0:
        return "HIGH"
    if apartment_multiplier > 1.5:
        return "MEDIUM"
    return "LOW"


def geographic_certainty(
    local_duplicates: int,
    profile: GeographicProfile,
    pattern_multiplier: float,
) -> int:
    """
    Certainty from local duplicate count with diminishing returns, plus
    flat bonuses for density, apartment concentration and pattern risk.
    """
    certainty = min(local_duplicates / 1000 * 100, DUPLICATE_CERTAINTY_CAP)
    certainty += DENSITY_BONUS.get(profile.density_tier, 0)

    for threshold, bonus in APARTMENT_BONUS:
        if profile.apartment_multiplier > threshold:
            certainty += bonus
            break

    if pattern_multiplier > PATTERN_BONUS_THRESHOLD:
        certainty += PATTERN_BONUS

    return min(round_half_up(certainty), 100)


# ============================================================
# THE ESTIMATOR
# ============================================================

class GeographicEstimator:
    """Combines keyway, postal area and bitting into a local duplicate estimate."""

    def __init__(
        self,
        classifier: Optional[PatternClassifier] = None,
        macs_limit: int = settings.MACS_LIMIT,
        invalid_key_floor: float = settings.INVALID_KEY_FLOOR,
    ):
        self._classifier = classifier or geographic_classifier()
        self._macs_limit = macs_limit
        self._invalid_key_floor = invalid_key_floor

    def estimate(
        self,
        bitting: Sequence[int],
        keyway: Optional[str],
        postal_code: Optional[str],
    ) -> GeographicEstimate:
        base = base_duplicate_rate(keyway)
        profile = resolve_profile(postal_code)
        pattern = self._classifier.classify(bitting)

        if not is_macs_compliant(bitting, self._macs_limit):
            certainty = round_half_up(self._invalid_key_floor)
            return GeographicEstimate(
                certainty=certainty,
                local_duplicates=0,
                risk_level=geographic_risk_level(certainty),
                profile=profile,
                pattern=pattern,
                base_duplicates=base,
                macs_compliant=False,
            )

        local = round_half_up(
            base
            * profile.density_multiplier
            * profile.apartment_multiplier
            * pattern.risk_multiplier
        )
        certainty = geographic_certainty(local, profile, pattern.risk_multiplier)

        logger.debug(
            "Geographic estimate for %s in %s: %d local duplicates",
            keyway, profile.area_label, local,
            extra={"keyway": keyway, "postal_code": profile.postal_area, "certainty": certainty},
        )

        return GeographicEstimate(
            certainty=certainty,
            local_duplicates=local,
            risk_level=geographic_risk_level(certainty),
            profile=profile,
            pattern=pattern,
            base_duplicates=base,
        )

    def describe_area(self, postal_code: Optional[str]) -> AreaSummary:
        """Area attribution for display, independent of any key."""
        profile = resolve_profile(postal_code)

        factors: list[str] = []
        if profile.density_multiplier > 2.0:
            factors.append("Very high population density")
        if profile.apartment_multiplier > 2.0:
            factors.append("High apartment complex concentration")
        if profile.apartment_multiplier > 1.5:
            factors.append("Known bulk lock installation area")

        return AreaSummary(
            area_label=profile.area_label,
            density=profile.density_tier.replace("_", " ").upper(),
            apartment_risk=apartment_risk(profile.apartment_multiplier),
            risk_factors=factors,
        )
