"""Risk report handling - external status mutations.

Applies risk-level reports from the automation pipeline and operator
actions (block, unblock, set medium) to the Account Status Store.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from riskgate.accounts.schemas import RISK_LEVEL_TO_STATUS, AccountStatus, RiskLevel
from riskgate.accounts.store import AccountStatusStore
from riskgate.common.exceptions import NotFoundError, ValidationError


logger = logging.getLogger(__name__)

# Legacy reporters send NORMAL for the lowest bucket
_LEVEL_ALIASES = {"NORMAL": RiskLevel.LOW}


@dataclass(frozen=True)
class StatusChange:
    """Outcome of a status mutation."""
    user_id: str
    previous_status: AccountStatus
    new_status: AccountStatus
    risk_level: Optional[RiskLevel] = None

    @property
    def changed(self) -> bool:
        return self.previous_status != self.new_status


def parse_risk_level(value: Union[str, RiskLevel]) -> RiskLevel:
    """Parse a reported risk level, case-insensitively."""
    if isinstance(value, RiskLevel):
        return value
    text = (value or "").strip().upper()
    if text in _LEVEL_ALIASES:
        return _LEVEL_ALIASES[text]
    try:
        return RiskLevel(text)
    except ValueError as e:
        raise ValidationError(
            f"Unknown risk level: {value!r}",
            details={"allowed": [level.value for level in RiskLevel]},
        ) from e


class RiskReportHandler:
    """Maps external risk reports and operator actions onto account status."""

    def __init__(self, store: AccountStatusStore):
        self.store = store

    def apply_risk_report(self, user_id: str, risk_level: Union[str, RiskLevel]) -> StatusChange:
        """Apply a LOW/MEDIUM/HIGH report (NORMAL/MEDIUM/BLOCKED).

        Re-applying the same level is a no-op transition, not an error.
        """
        level = parse_risk_level(risk_level)
        change = self._transition(user_id, RISK_LEVEL_TO_STATUS[level], level)

        log = logger.warning if level != RiskLevel.LOW else logger.info
        log(
            f"RISK_UPDATE userId={user_id} riskLevel={level.value} "
            f"newStatus={change.new_status.value} changed={change.changed}"
        )
        return change

    def block(self, user_id: str) -> StatusChange:
        change = self._transition(user_id, AccountStatus.BLOCKED)
        logger.warning(f"USER_BLOCKED userId={user_id}")
        return change

    def unblock(self, user_id: str) -> StatusChange:
        change = self._transition(user_id, AccountStatus.NORMAL)
        logger.info(f"USER_UNBLOCKED userId={user_id}")
        return change

    def set_medium(self, user_id: str) -> StatusChange:
        change = self._transition(user_id, AccountStatus.MEDIUM)
        logger.warning(f"USER_MEDIUM_STATUS userId={user_id}")
        return change

    def status(self, user_id: str) -> AccountStatus:
        status = self.store.get(user_id)
        if status is None:
            raise NotFoundError(user_id)
        return status

    def _transition(
        self,
        user_id: str,
        new_status: AccountStatus,
        level: Optional[RiskLevel] = None,
    ) -> StatusChange:
        previous = self.store.get(user_id)
        if previous is None or not self.store.set(user_id, new_status):
            raise NotFoundError(user_id)
        return StatusChange(
            user_id=user_id,
            previous_status=previous,
            new_status=new_status,
            risk_level=level,
        )
