"""Scoring - external risk registry clients and score thresholds."""

from riskgate.scoring.levels import classify_score
from riskgate.scoring.registry import (
    HttpRiskRegistry,
    InMemoryRiskRegistry,
    RiskRegistry,
)

__all__ = [
    "classify_score",
    "HttpRiskRegistry",
    "InMemoryRiskRegistry",
    "RiskRegistry",
]
