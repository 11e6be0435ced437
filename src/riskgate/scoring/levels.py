"""Score thresholds - numeric risk score to coarse risk level."""

from riskgate.accounts.schemas import RiskLevel
from riskgate.common.constants import RiskConstants


def classify_score(score: int) -> RiskLevel:
    """Map a total risk score onto LOW/MEDIUM/HIGH.

    score >= 70 is HIGH, 40 <= score < 70 is MEDIUM, anything lower is LOW.
    """
    if score >= RiskConstants.HIGH_RISK_SCORE:
        return RiskLevel.HIGH
    if score >= RiskConstants.MEDIUM_RISK_SCORE:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW
