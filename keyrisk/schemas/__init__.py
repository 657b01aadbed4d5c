from keyrisk.schemas.assessment import (
    AdditionalInfo,
    CertaintyBreakdown,
    CertaintyResult,
    KeyedAlikeRiskScore,
    MathematicalAnalysis,
    ModelPrediction,
    RiskFactors,
    RiskMetadata,
    UIFormattedResult,
)

__all__ = [
    "AdditionalInfo",
    "CertaintyBreakdown",
    "CertaintyResult",
    "KeyedAlikeRiskScore",
    "MathematicalAnalysis",
    "ModelPrediction",
    "RiskFactors",
    "RiskMetadata",
    "UIFormattedResult",
]
