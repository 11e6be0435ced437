"""Risk Decision Engine - the only place login and transfer decisions happen.

Login precedence (first match wins):
1. unknown user            -> FAILURE
2. status BLOCKED          -> BLOCKED (checked before the credential)
3. credential mismatch     -> FAILURE
4. status MEDIUM           -> VERIFICATION_REQUIRED
5. otherwise               -> ALLOWED

Transfer sequence:
1. count the attempt (always, telemetry only)
2. registry says blocked   -> FORCE_LOGOUT
3. score -> risk level (HIGH >= 70, MEDIUM >= 40, else LOW)
4. HIGH                    -> auto-block, FORCE_LOGOUT (verified or not)
5. verified                -> ALLOWED, tagged VERIFIED
6. MEDIUM                  -> VERIFICATION_REQUIRED
7. LOW                     -> ALLOWED
Only ALLOWED transfers compute the baseline and publish an event.

Error handling:
- Collaborator failures degrade to documented defaults, never to errors
- Event publication never affects the returned decision
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Optional

from riskgate.accounts.schemas import AccountStatus, RiskLevel
from riskgate.accounts.store import AccountStatusStore
from riskgate.baseline.calculator import BaselineCalculator
from riskgate.common.config.settings import UnknownUserEvents
from riskgate.common.constants import (
    HistoryConstants,
    Messages,
    RiskConstants,
    TransferConstants,
)
from riskgate.common.exceptions import CollaboratorUnavailableError, ValidationError
from riskgate.events.factory import EventFactory
from riskgate.events.publisher import BackgroundEventPublisher
from riskgate.events.schemas import EventRecord, EventResult, EventType
from riskgate.orchestration.collaborators import CollaboratorGuard
from riskgate.orchestration.decision import (
    Decision,
    DecisionOutcome,
    DecisionReason,
    LoginAttempt,
    LogoutAttempt,
    TransferAttempt,
)
from riskgate.scoring.levels import classify_score
from riskgate.scoring.registry import RiskRegistry
from riskgate.velocity.counter import VelocityCounter


logger = logging.getLogger(__name__)


class RiskDecisionEngine:
    """Combines account status, velocity, risk score and baseline into decisions.

    Holds no per-request state and takes no global lock; every collaborator
    is injected and owns its own concurrency control.
    """

    def __init__(
        self,
        accounts: AccountStatusStore,
        velocity: VelocityCounter,
        baseline: BaselineCalculator,
        registry: RiskRegistry,
        publisher: BackgroundEventPublisher,
        event_factory: Optional[EventFactory] = None,
        guard: Optional[CollaboratorGuard] = None,
        baseline_executor: Optional[ThreadPoolExecutor] = None,
        baseline_workers: int = HistoryConstants.WORKERS,
        baseline_timeout: float = HistoryConstants.TIMEOUT_SECONDS,
        unknown_user_events: UnknownUserEvents = UnknownUserEvents.LEGACY,
    ):
        """Initialize the engine.

        Args:
            accounts: Account Status Store (status and credentials).
            velocity: Per-user transfer velocity counter.
            baseline: Historical amount baseline calculator.
            registry: External risk registry (score, block list, auto-block).
            publisher: Non-blocking event publisher.
            event_factory: Builds event records. Uses local time if not provided.
            guard: Timeout guard for registry calls. Created if not provided.
            baseline_executor: Pool for blocking history scans. Created if not provided.
            baseline_workers: Size of the created baseline pool.
            baseline_timeout: Seconds to wait for a baseline before using 0.0.
            unknown_user_events: Publication policy for unknown users on login/logout.
        """
        self.accounts = accounts
        self.velocity = velocity
        self.baseline = baseline
        self.registry = registry
        self.publisher = publisher
        self.event_factory = event_factory or EventFactory()
        self.guard = guard or CollaboratorGuard()
        self.baseline_timeout = baseline_timeout
        self.unknown_user_events = unknown_user_events

        self._owns_baseline_executor = baseline_executor is None
        self._baseline_executor = baseline_executor or ThreadPoolExecutor(
            max_workers=baseline_workers,
            thread_name_prefix="BaselineWorker",
        )

    def shutdown(self) -> None:
        """Release the baseline worker pool if the engine created it."""
        if self._owns_baseline_executor:
            self._baseline_executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Login / logout
    # ------------------------------------------------------------------

    def login(self, attempt: LoginAttempt) -> Decision:
        """Decide a login attempt. Never raises for policy outcomes."""
        user_id = attempt.user_id
        country = attempt.network.country
        source_ip = attempt.network.source_ip

        status = self.accounts.get(user_id)
        if status is None:
            logger.warning(f"LOGIN_FAILURE userId={user_id} reason=USER_NOT_FOUND")
            event_id = None
            if self.unknown_user_events != UnknownUserEvents.NEVER:
                event_id = self._publish_auth(EventType.LOGIN, attempt, EventResult.FAILURE)
            return Decision(
                outcome=DecisionOutcome.FAILURE,
                user_id=user_id,
                message=Messages.LOGIN_FAILURE,
                reason=DecisionReason.USER_NOT_FOUND,
                result=EventResult.FAILURE if event_id else None,
                event_id=event_id,
            )

        if status == AccountStatus.BLOCKED:
            logger.warning(
                f"LOGIN_BLOCKED userId={user_id} country={country} "
                f"srcIp={source_ip} status=BLOCKED"
            )
            return self._auth_decision(
                EventType.LOGIN, attempt,
                outcome=DecisionOutcome.BLOCKED,
                result=EventResult.BLOCKED,
                message=Messages.LOGIN_BLOCKED,
                reason=DecisionReason.ACCOUNT_BLOCKED,
            )

        if not self.accounts.verify_credential(user_id, attempt.credential_secret):
            logger.warning(f"LOGIN_FAILURE userId={user_id} reason=INVALID_CREDENTIAL")
            return self._auth_decision(
                EventType.LOGIN, attempt,
                outcome=DecisionOutcome.FAILURE,
                result=EventResult.FAILURE,
                message=Messages.LOGIN_FAILURE,
                reason=DecisionReason.INVALID_CREDENTIAL,
            )

        if status == AccountStatus.MEDIUM:
            logger.warning(
                f"LOGIN_MID_VERIFICATION userId={user_id} country={country} "
                f"srcIp={source_ip} status=MEDIUM"
            )
            return self._auth_decision(
                EventType.LOGIN, attempt,
                outcome=DecisionOutcome.VERIFICATION_REQUIRED,
                result=EventResult.MID_VERIFICATION,
                message=Messages.LOGIN_MID_VERIFICATION,
                reason=DecisionReason.MID_VERIFICATION,
            )

        logger.info(
            f"LOGIN_SUCCESS userId={user_id} country={country} "
            f"srcIp={source_ip} status={status.value}"
        )
        return self._auth_decision(
            EventType.LOGIN, attempt,
            outcome=DecisionOutcome.ALLOWED,
            result=EventResult.SUCCESS,
            message=Messages.LOGIN_SUCCESS,
        )

    def logout(self, attempt: LogoutAttempt) -> Decision:
        """Decide a logout. Status and credentials are not consulted."""
        user_id = attempt.user_id

        if not self.accounts.exists(user_id):
            logger.warning(f"LOGOUT_FAILURE userId={user_id} reason=USER_NOT_FOUND")
            event_id = None
            # Legacy behaviour: logout never published for unknown users
            if self.unknown_user_events == UnknownUserEvents.ALWAYS:
                event_id = self._publish_auth(EventType.LOGOUT, attempt, EventResult.FAILURE)
            return Decision(
                outcome=DecisionOutcome.FAILURE,
                user_id=user_id,
                message=Messages.LOGOUT_FAILURE,
                reason=DecisionReason.USER_NOT_FOUND,
                result=EventResult.FAILURE if event_id else None,
                event_id=event_id,
            )

        logger.info(
            f"LOGOUT_SUCCESS userId={user_id} country={attempt.network.country} "
            f"srcIp={attempt.network.source_ip}"
        )
        return self._auth_decision(
            EventType.LOGOUT, attempt,
            outcome=DecisionOutcome.ALLOWED,
            result=EventResult.SUCCESS,
            message=Messages.LOGOUT_SUCCESS,
        )

    # ------------------------------------------------------------------
    # Transfer
    # ------------------------------------------------------------------

    def transfer(self, attempt: TransferAttempt) -> Decision:
        """Decide a funds transfer.

        Raises:
            ValidationError: If the amount is not a positive integer.
        """
        user_id = attempt.user_id
        amount = attempt.amount
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError(
                "Transfer amount must be a positive integer",
                details={"amount": repr(amount)},
            )

        velocity_count = self._count_attempt(user_id)

        if not self.accounts.exists(user_id):
            logger.warning(f"TRANSFER_FAILURE userId={user_id} reason=USER_NOT_FOUND")
            return self._transfer_decision(
                attempt,
                outcome=DecisionOutcome.FAILURE,
                message=Messages.TRANSFER_FAILURE,
                reason=DecisionReason.USER_NOT_FOUND,
                velocity_count=velocity_count,
            )

        blocked = self.guard.call(
            "risk_registry.is_blocked", self.registry.is_blocked, user_id, default=False
        )
        if blocked.value:
            logger.warning(
                f"TRANSFER_BLOCKED userId={user_id} amount={amount} reason=BLOCKED_IN_REGISTRY"
            )
            return self._transfer_decision(
                attempt,
                outcome=DecisionOutcome.FORCE_LOGOUT,
                message=Messages.TRANSFER_ACCOUNT_BLOCKED,
                reason=DecisionReason.REGISTRY_BLOCKED,
                velocity_count=velocity_count,
            )

        score_call = self.guard.call(
            "risk_registry.get_total_score",
            self.registry.get_total_score,
            user_id,
            default=RiskConstants.UNAVAILABLE_SCORE_DEFAULT,
        )
        if not score_call.available:
            logger.error(
                f"SCORE_UNAVAILABLE userId={user_id} amount={amount} "
                f"treating score as {RiskConstants.UNAVAILABLE_SCORE_DEFAULT} (LOW)"
            )
        score = score_call.value
        risk_level = classify_score(score)

        if risk_level == RiskLevel.HIGH:
            logger.warning(
                f"TRANSFER_AUTO_BLOCKED userId={user_id} amount={amount} score={score} "
                f"riskLevel=HIGH verified={attempt.verified}"
            )
            self._auto_block(user_id)
            return self._transfer_decision(
                attempt,
                outcome=DecisionOutcome.FORCE_LOGOUT,
                message=Messages.TRANSFER_SUSPICIOUS,
                reason=DecisionReason.HIGH_RISK,
                score=score,
                risk_level=risk_level,
                velocity_count=velocity_count,
            )

        if attempt.verified:
            logger.info(
                f"VERIFIED_TRANSFER userId={user_id} amount={amount} "
                f"score={score} riskLevel={risk_level.value}"
            )
            return self._allow_transfer(
                attempt, EventResult.VERIFIED, score, risk_level, velocity_count,
                reason=DecisionReason.VERIFIED,
            )

        if risk_level == RiskLevel.MEDIUM:
            logger.warning(
                f"TRANSFER_VERIFICATION_REQUIRED userId={user_id} amount={amount} riskLevel=MEDIUM"
            )
            return self._transfer_decision(
                attempt,
                outcome=DecisionOutcome.VERIFICATION_REQUIRED,
                message=Messages.TRANSFER_VERIFICATION_REQUIRED,
                reason=DecisionReason.MEDIUM_RISK,
                score=score,
                risk_level=risk_level,
                velocity_count=velocity_count,
            )

        return self._allow_transfer(
            attempt, EventResult.SUCCESS, score, risk_level, velocity_count
        )

    def _allow_transfer(
        self,
        attempt: TransferAttempt,
        result: EventResult,
        score: int,
        risk_level: RiskLevel,
        velocity_count: Optional[int],
        reason: Optional[DecisionReason] = None,
    ) -> Decision:
        baseline = self._compute_baseline(attempt.user_id)

        event = self.event_factory.transfer_event(
            user_id=attempt.user_id,
            result=result,
            country=attempt.network.country,
            source_ip=attempt.network.source_ip,
            amount=attempt.amount,
            average_amount_baseline=baseline,
            velocity_count=velocity_count,
        )
        self._publish(event)

        logger.info(
            "TRANSFER_SUCCESS",
            extra={
                "event_type": EventType.TRANSFER.value,
                "user_id": attempt.user_id,
                "amount": attempt.amount,
                "country": attempt.network.country,
                "src_ip": attempt.network.source_ip,
                "risk_level": risk_level.value,
                "to_bank": TransferConstants.DESTINATION_LABEL,
                "average_amount": baseline,
            },
        )

        return self._transfer_decision(
            attempt,
            outcome=DecisionOutcome.ALLOWED,
            message=Messages.TRANSFER_SUCCESS,
            reason=reason,
            result=result,
            event_id=event.event_id,
            score=score,
            risk_level=risk_level,
            velocity_count=velocity_count,
            average_amount_baseline=baseline,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _count_attempt(self, user_id: str) -> Optional[int]:
        try:
            return self.velocity.increment_and_get(user_id)
        except CollaboratorUnavailableError as e:
            logger.error(f"Velocity counter unavailable for user {user_id}: {e.message}")
            return None

    def _auto_block(self, user_id: str) -> None:
        """Escalate the user to BLOCKED in the registry and locally.

        Best effort: races with concurrent risk reports resolve last-write-wins.
        """
        block_call = self.guard.call(
            "risk_registry.block_user", self.registry.block_user, user_id, default=None
        )
        if not block_call.available:
            logger.error(f"Registry auto-block failed for user {user_id}; local status still updated")
        self.accounts.set(user_id, AccountStatus.BLOCKED)

    def _compute_baseline(self, user_id: str) -> float:
        as_of = self.event_factory.now().date()
        future = self._baseline_executor.submit(self.baseline.average_amount, user_id, as_of)
        try:
            return future.result(timeout=self.baseline_timeout)
        except FuturesTimeoutError:
            future.cancel()
            logger.warning(
                f"Baseline computation for {user_id} exceeded {self.baseline_timeout}s, using 0.0"
            )
        except Exception:
            logger.exception(f"Baseline computation failed for {user_id}, using 0.0")
        return HistoryConstants.NO_HISTORY_BASELINE

    def _publish(self, event: EventRecord) -> None:
        try:
            self.publisher.publish(event)
        except Exception:
            logger.exception(f"Failed to enqueue event {event.event_id}")

    def _publish_auth(self, event_type: EventType, attempt, result: EventResult) -> str:
        event = self.event_factory.auth_event(
            event_type=event_type,
            user_id=attempt.user_id,
            result=result,
            country=attempt.network.country,
            source_ip=attempt.network.source_ip,
        )
        self._publish(event)
        return event.event_id

    def _auth_decision(
        self,
        event_type: EventType,
        attempt,
        outcome: DecisionOutcome,
        result: EventResult,
        message: str,
        reason: Optional[DecisionReason] = None,
    ) -> Decision:
        event_id = self._publish_auth(event_type, attempt, result)
        return Decision(
            outcome=outcome,
            user_id=attempt.user_id,
            message=message,
            reason=reason,
            result=result,
            event_id=event_id,
        )

    def _transfer_decision(
        self,
        attempt: TransferAttempt,
        outcome: DecisionOutcome,
        message: str,
        **context,
    ) -> Decision:
        return Decision(
            outcome=outcome,
            user_id=attempt.user_id,
            message=message,
            amount=attempt.amount,
            destination_label=TransferConstants.DESTINATION_LABEL,
            destination_account_ref=TransferConstants.DESTINATION_ACCOUNT_REF,
            **context,
        )
