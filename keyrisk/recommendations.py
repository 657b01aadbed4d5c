"""Tier-specific guidance shown alongside a risk score."""

from __future__ import annotations

from keyrisk.numeric import round_half_up
from keyrisk.scorer import risk_level


def generate_recommendations(
    score: float,
    estimated_duplicates: int,
    confidence: float,
) -> list[str]:
    """Three sentences for the tier the score falls in."""
    level = risk_level(score)
    confidence_pct = round_half_up(confidence * 100)

    if level == "high":
        return [
            f"HIGH RISK: Your key pattern likely exists in ~{estimated_duplicates:,} other locks.",
            "URGENT: Consider rekeying for better security.",
            f"UPGRADE: High-security locks recommended (AI confidence: {confidence_pct}%).",
        ]
    if level == "medium":
        return [
            f"MEDIUM RISK: Moderate duplication likelihood (~{estimated_duplicates:,} estimated).",
            "CONSIDER: Rekeying would improve security.",
            f"AI confidence: {confidence_pct}%",
        ]
    return [
        f"LOW RISK: Relatively secure pattern (~{estimated_duplicates:,} estimated).",
        "GOOD: This pattern has lower duplication risk.",
        f"AI analysis: {confidence_pct}% confidence",
    ]
