"""
Risk level utilities.
The level is derived from the score alone: no indicator overrides.
"""

from qrshield.schemas.analysis_schemas import RiskLevel


SUSPICIOUS_THRESHOLD = 30  # Score >= this = suspicious
DANGEROUS_THRESHOLD = 70  # Score >= this = dangerous

MIN_SCORE = 0
MAX_SCORE = 100


def clamp_score(score: int) -> int:
    """Clamp a raw score into the 0-100 range."""
    return max(MIN_SCORE, min(MAX_SCORE, int(score)))


def derive_risk_from_score(score: int) -> RiskLevel:
    """
    Derive risk level purely from score (0-100 scale).

    Bands are closed on the lower side: 30 is suspicious, 70 is dangerous.

    Returns:
        RiskLevel.SAFE, RiskLevel.SUSPICIOUS or RiskLevel.DANGEROUS
    """
    if score >= DANGEROUS_THRESHOLD:
        return RiskLevel.DANGEROUS
    elif score >= SUSPICIOUS_THRESHOLD:
        return RiskLevel.SUSPICIOUS
    else:
        return RiskLevel.SAFE
