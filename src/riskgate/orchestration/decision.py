"""Decision context - attempts coming in, decisions going out.

All structures are frozen once created. Policy outcomes (BLOCKED,
FORCE_LOGOUT, VERIFICATION_REQUIRED) are regular decisions, not errors.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from riskgate.accounts.schemas import RiskLevel
from riskgate.events.schemas import EventResult
from riskgate.orchestration.network import NetworkContext


class DecisionOutcome(str, Enum):
    """What the caller must do with the request."""
    ALLOWED = "ALLOWED"
    VERIFICATION_REQUIRED = "VERIFICATION_REQUIRED"
    FORCE_LOGOUT = "FORCE_LOGOUT"
    BLOCKED = "BLOCKED"
    FAILURE = "FAILURE"


class DecisionReason(str, Enum):
    """Internal reason code attached to non-trivial outcomes."""
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"
    ACCOUNT_BLOCKED = "ACCOUNT_BLOCKED"
    MID_VERIFICATION = "MID_VERIFICATION"
    REGISTRY_BLOCKED = "REGISTRY_BLOCKED"
    HIGH_RISK = "HIGH_RISK"
    MEDIUM_RISK = "MEDIUM_RISK"
    VERIFIED = "VERIFIED"


@dataclass(frozen=True)
class LoginAttempt:
    user_id: str
    credential_secret: Optional[str]
    network: NetworkContext


@dataclass(frozen=True)
class LogoutAttempt:
    user_id: str
    network: NetworkContext


@dataclass(frozen=True)
class TransferAttempt:
    user_id: str
    amount: int
    network: NetworkContext
    verified: bool = False


@dataclass(frozen=True)
class Decision:
    """The outcome returned to the caller.

    ``result`` and ``event_id`` are set only when an event was published.
    """
    outcome: DecisionOutcome
    user_id: str
    message: str
    reason: Optional[DecisionReason] = None
    result: Optional[EventResult] = None
    event_id: Optional[str] = None

    # Transfer context
    amount: Optional[int] = None
    destination_label: Optional[str] = None
    destination_account_ref: Optional[str] = None
    score: Optional[int] = None
    risk_level: Optional[RiskLevel] = None
    velocity_count: Optional[int] = None
    average_amount_baseline: Optional[float] = None

    decision_id: str = field(default_factory=lambda: f"dec_{uuid4().hex[:12]}")
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_allowed(self) -> bool:
        return self.outcome == DecisionOutcome.ALLOWED

    @property
    def published(self) -> bool:
        return self.event_id is not None
