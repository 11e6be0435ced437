"""RiskGate Service - glue between the HTTP layer and the decision engine.

This service owns the component wiring and its shutdown, and converts
between API schemas and engine types.

Design principles:
- Policy outcomes are regular responses, never errors
- Collaborator failures are absorbed by the engine
- Scores and reason codes stay internal; transfer responses echo only the
  risk level and velocity count
"""

import logging
from typing import Optional

from riskgate.accounts.risk_reports import RiskReportHandler
from riskgate.api.schemas import (
    AuthResponse,
    LoginRequest,
    RiskReportRequest,
    TransferRequest,
    TransferResponse,
    UserActionRequest,
    UserStatusResponse,
)
from riskgate.common.config.settings import Config, get_config
from riskgate.factories import (
    create_account_store,
    create_baseline_calculator,
    create_event_publisher,
    create_risk_registry,
    create_velocity_counter,
)
from riskgate.orchestration.collaborators import CollaboratorGuard, shutdown_executor
from riskgate.orchestration.decision import (
    Decision,
    LoginAttempt,
    LogoutAttempt,
    TransferAttempt,
)
from riskgate.orchestration.engine import RiskDecisionEngine
from riskgate.orchestration.network import NetworkContext


logger = logging.getLogger(__name__)


class RiskGateService:
    """Service handling auth, transfer and operator requests.

    Orchestrates:
    1. Network context resolution (country, client IP)
    2. Engine decisions for login, logout and transfer
    3. Risk reports and operator status changes
    4. Response transformation
    """

    def __init__(
        self,
        engine: Optional[RiskDecisionEngine] = None,
        config: Optional[Config] = None,
    ):
        """Initialize the service.

        Args:
            engine: Decision engine. Built from configuration if not provided.
            config: Configuration used to build the engine.
        """
        self.config = config or get_config()
        self.engine = engine or self._build_engine(self.config)
        self.risk_reports = RiskReportHandler(self.engine.accounts)

    @staticmethod
    def _build_engine(config: Config) -> RiskDecisionEngine:
        engine = RiskDecisionEngine(
            accounts=create_account_store(config),
            velocity=create_velocity_counter(config),
            baseline=create_baseline_calculator(config),
            registry=create_risk_registry(config),
            publisher=create_event_publisher(config),
            guard=CollaboratorGuard(timeout=config.collaborator_timeout_seconds),
            baseline_workers=config.baseline_workers,
            baseline_timeout=config.baseline_timeout_seconds,
            unknown_user_events=config.unknown_user_events,
        )
        logger.info(
            f"Decision engine built: velocity={config.velocity_backend.value}, "
            f"history={config.event_log_source.value}"
        )
        return engine

    def shutdown(self) -> None:
        """Flush pending events and release collaborator resources."""
        self.engine.publisher.shutdown()
        self.engine.registry.close()
        self.engine.shutdown()
        shutdown_executor()
        logger.info("RiskGateService shutdown complete")

    # ------------------------------------------------------------------
    # Auth and transfer
    # ------------------------------------------------------------------

    def login(
        self,
        request: LoginRequest,
        forwarded_for: Optional[str] = None,
        peer_address: Optional[str] = None,
    ) -> AuthResponse:
        network = NetworkContext.resolve(request.country, forwarded_for, peer_address)
        decision = self.engine.login(
            LoginAttempt(
                user_id=request.user_id,
                credential_secret=request.password,
                network=network,
            )
        )
        return self._auth_response(decision)

    def logout(
        self,
        request: LoginRequest,
        forwarded_for: Optional[str] = None,
        peer_address: Optional[str] = None,
    ) -> AuthResponse:
        network = NetworkContext.resolve(request.country, forwarded_for, peer_address)
        decision = self.engine.logout(
            LogoutAttempt(user_id=request.user_id, network=network)
        )
        return self._auth_response(decision)

    def transfer(
        self,
        request: TransferRequest,
        forwarded_for: Optional[str] = None,
        peer_address: Optional[str] = None,
    ) -> TransferResponse:
        network = NetworkContext.resolve(request.country, forwarded_for, peer_address)
        decision = self.engine.transfer(
            TransferAttempt(
                user_id=request.user_id,
                amount=request.amount,
                network=network,
                verified=request.verified,
            )
        )
        return TransferResponse(
            outcome=decision.outcome.value,
            message=decision.message,
            user_id=decision.user_id,
            amount=decision.amount,
            to_bank=decision.destination_label,
            to_account=decision.destination_account_ref,
            risk_level=decision.risk_level.value if decision.risk_level else None,
            velocity_count=decision.velocity_count,
            status=decision.result.value if decision.result else None,
            decision_id=decision.decision_id,
        )

    @staticmethod
    def _auth_response(decision: Decision) -> AuthResponse:
        return AuthResponse(
            outcome=decision.outcome.value,
            message=decision.message,
            user_id=decision.user_id,
            status=decision.result.value if decision.result else None,
            decision_id=decision.decision_id,
        )

    # ------------------------------------------------------------------
    # Risk reports and operator actions
    # ------------------------------------------------------------------

    def update_risk(self, request: RiskReportRequest) -> UserStatusResponse:
        change = self.risk_reports.apply_risk_report(request.user_id, request.risk_level)
        return UserStatusResponse(
            user_id=change.user_id,
            status=change.new_status.value,
            previous_status=change.previous_status.value,
            changed=change.changed,
            message=f"Risk level {change.risk_level.value} applied",
        )

    def block(self, request: UserActionRequest) -> UserStatusResponse:
        change = self.risk_reports.block(request.user_id)
        return self._change_response(change, "User blocked")

    def unblock(self, request: UserActionRequest) -> UserStatusResponse:
        change = self.risk_reports.unblock(request.user_id)
        return self._change_response(change, "User unblocked")

    def set_medium(self, request: UserActionRequest) -> UserStatusResponse:
        change = self.risk_reports.set_medium(request.user_id)
        return self._change_response(change, "User set to MEDIUM status")

    def status(self, user_id: str) -> UserStatusResponse:
        status = self.risk_reports.status(user_id)
        return UserStatusResponse(
            user_id=user_id,
            status=status.value,
            message="Current account status",
        )

    @staticmethod
    def _change_response(change, message: str) -> UserStatusResponse:
        return UserStatusResponse(
            user_id=change.user_id,
            status=change.new_status.value,
            previous_status=change.previous_status.value,
            changed=change.changed,
            message=message,
        )
