"""Orchestration - the risk decision engine and its decision context."""

from riskgate.orchestration.decision import (
    Decision,
    DecisionOutcome,
    DecisionReason,
    LoginAttempt,
    LogoutAttempt,
    TransferAttempt,
)
from riskgate.orchestration.network import (
    NetworkContext,
    normalize_country,
    resolve_source_ip,
)
from riskgate.orchestration.collaborators import CallResult, CollaboratorGuard
from riskgate.orchestration.engine import RiskDecisionEngine

__all__ = [
    "Decision",
    "DecisionOutcome",
    "DecisionReason",
    "LoginAttempt",
    "LogoutAttempt",
    "TransferAttempt",
    "NetworkContext",
    "normalize_country",
    "resolve_source_ip",
    "CallResult",
    "CollaboratorGuard",
    "RiskDecisionEngine",
]
