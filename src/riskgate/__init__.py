"""RiskGate - real-time login and transfer risk decisions."""

__version__ = "0.1.0"
__author__ = "RiskGate Team"

from riskgate.orchestration import Decision, DecisionOutcome, RiskDecisionEngine

__all__ = [
    "Decision",
    "DecisionOutcome",
    "RiskDecisionEngine",
]
