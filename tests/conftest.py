"""Shared fixtures for RiskGate tests."""

from datetime import datetime, timezone, timedelta
from unittest.mock import MagicMock

import pytest

from riskgate.accounts.schemas import Account, AccountStatus
from riskgate.accounts.store import InMemoryAccountStore
from riskgate.baseline.calculator import BaselineCalculator
from riskgate.events.factory import EventFactory
from riskgate.events.publisher import BackgroundEventPublisher
from riskgate.orchestration.collaborators import CollaboratorGuard
from riskgate.orchestration.engine import RiskDecisionEngine
from riskgate.orchestration.network import NetworkContext
from riskgate.scoring.registry import InMemoryRiskRegistry
from riskgate.velocity.counter import InMemoryVelocityCounter


KST = timezone(timedelta(hours=9))
FIXED_NOW = datetime(2026, 1, 29, 14, 30, 5, tzinfo=KST)


@pytest.fixture
def fixed_clock():
    """Event clock pinned to 2026-01-29 14:30:05 +09:00."""
    return lambda: FIXED_NOW


@pytest.fixture
def account_store() -> InMemoryAccountStore:
    return InMemoryAccountStore([
        Account(user_id="user_01", credential_secret="12345678"),
        Account(user_id="user_02", credential_secret="12341234"),
        Account(user_id="medium_user", credential_secret="pw", status=AccountStatus.MEDIUM),
        Account(user_id="blocked_user", credential_secret="pw", status=AccountStatus.BLOCKED),
    ])


@pytest.fixture
def registry() -> InMemoryRiskRegistry:
    return InMemoryRiskRegistry()


@pytest.fixture
def publisher():
    """Publisher double recording every published event."""
    return MagicMock(spec=BackgroundEventPublisher)


@pytest.fixture
def baseline():
    """Baseline double returning 150.0 and counting calls."""
    calculator = MagicMock(spec=BaselineCalculator)
    calculator.average_amount.return_value = 150.0
    return calculator


@pytest.fixture
def seoul() -> NetworkContext:
    return NetworkContext(country="KR", source_ip="203.0.113.10")


@pytest.fixture
def engine(account_store, registry, publisher, baseline, fixed_clock):
    engine = RiskDecisionEngine(
        accounts=account_store,
        velocity=InMemoryVelocityCounter(),
        baseline=baseline,
        registry=registry,
        publisher=publisher,
        event_factory=EventFactory(clock=fixed_clock),
        guard=CollaboratorGuard(timeout=1.0),
        baseline_timeout=1.0,
    )
    yield engine
    engine.shutdown()


@pytest.fixture
def published(publisher):
    """Callable returning the events handed to the publisher double, in order."""
    return lambda: [c.args[0] for c in publisher.publish.call_args_list]
