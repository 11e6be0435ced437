"""Accounts - status state machine, status store, and risk report handling."""

from riskgate.accounts.schemas import (
    Account,
    AccountStatus,
    RiskLevel,
    RISK_LEVEL_TO_STATUS,
)
from riskgate.accounts.store import (
    AccountStatusStore,
    InMemoryAccountStore,
    load_accounts_file,
)
from riskgate.accounts.risk_reports import (
    RiskReportHandler,
    StatusChange,
    parse_risk_level,
)

__all__ = [
    "Account",
    "AccountStatus",
    "RiskLevel",
    "RISK_LEVEL_TO_STATUS",
    "AccountStatusStore",
    "InMemoryAccountStore",
    "load_accounts_file",
    "RiskReportHandler",
    "StatusChange",
    "parse_risk_level",
]
