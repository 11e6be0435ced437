"""Account schemas - status state machine and seed file format."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class AccountStatus(str, Enum):
    """Authoritative account status."""
    NORMAL = "NORMAL"
    MEDIUM = "MEDIUM"
    BLOCKED = "BLOCKED"


class RiskLevel(str, Enum):
    """Coarse risk bucket reported externally or derived from a score."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


RISK_LEVEL_TO_STATUS = {
    RiskLevel.LOW: AccountStatus.NORMAL,
    RiskLevel.MEDIUM: AccountStatus.MEDIUM,
    RiskLevel.HIGH: AccountStatus.BLOCKED,
}


class Account(BaseModel):
    """A provisioned account.

    The credential secret is opaque and only ever compared for equality.
    """
    user_id: str = Field(..., min_length=1, description="Unique, immutable user identifier")
    credential_secret: str = Field(..., repr=False, description="Opaque credential")
    status: AccountStatus = Field(default=AccountStatus.NORMAL)

    model_config = {"frozen": True}


class AccountSeed(BaseModel):
    """One entry of the accounts seed file."""
    id: str = Field(..., min_length=1)
    credential: str
    status: AccountStatus = AccountStatus.NORMAL


class AccountSeedFile(BaseModel):
    """In-memory representation of accounts.yaml."""
    accounts: List[AccountSeed] = Field(default_factory=list)
