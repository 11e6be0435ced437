"""Tests for login and logout decisions."""

import pytest

from riskgate.accounts.schemas import AccountStatus
from riskgate.common.config.settings import UnknownUserEvents
from riskgate.events.schemas import EventResult, EventType
from riskgate.orchestration.decision import (
    DecisionOutcome,
    DecisionReason,
    LoginAttempt,
    LogoutAttempt,
)
from riskgate.orchestration.engine import RiskDecisionEngine


def login(engine, seoul, user_id, secret):
    return engine.login(LoginAttempt(user_id=user_id, credential_secret=secret, network=seoul))


class TestLoginPrecedence:
    """Login checks run in a fixed order; the first match wins."""

    def test_valid_credential_is_allowed(self, engine, seoul, published):
        decision = login(engine, seoul, "user_01", "12345678")

        assert decision.outcome == DecisionOutcome.ALLOWED
        assert decision.result == EventResult.SUCCESS
        events = published()
        assert len(events) == 1
        assert events[0].event_type == EventType.LOGIN
        assert events[0].result == EventResult.SUCCESS
        assert events[0].country == "KR"
        assert events[0].source_ip == "203.0.113.10"
        assert events[0].hour_of_day == 14

    def test_wrong_credential_fails(self, engine, seoul, published):
        decision = login(engine, seoul, "user_01", "wrong")

        assert decision.outcome == DecisionOutcome.FAILURE
        assert decision.reason == DecisionReason.INVALID_CREDENTIAL
        assert [e.result for e in published()] == [EventResult.FAILURE]

    def test_missing_credential_fails(self, engine, seoul):
        decision = login(engine, seoul, "user_01", None)
        assert decision.outcome == DecisionOutcome.FAILURE

    @pytest.mark.parametrize("secret", ["pw", "wrong", None])
    def test_blocked_user_is_blocked_regardless_of_credential(self, engine, seoul, published, secret):
        """BLOCKED is checked before the credential."""
        decision = login(engine, seoul, "blocked_user", secret)

        assert decision.outcome == DecisionOutcome.BLOCKED
        assert decision.reason == DecisionReason.ACCOUNT_BLOCKED
        assert [e.result for e in published()] == [EventResult.BLOCKED]

    def test_medium_user_requires_verification(self, engine, seoul, published):
        decision = login(engine, seoul, "medium_user", "pw")

        assert decision.outcome == DecisionOutcome.VERIFICATION_REQUIRED
        assert decision.result == EventResult.MID_VERIFICATION
        assert [e.result for e in published()] == [EventResult.MID_VERIFICATION]

    def test_medium_user_with_wrong_credential_fails(self, engine, seoul):
        decision = login(engine, seoul, "medium_user", "nope")
        assert decision.outcome == DecisionOutcome.FAILURE

    def test_login_never_mutates_status(self, engine, seoul, account_store):
        for user_id in ("user_01", "medium_user", "blocked_user"):
            before = account_store.get(user_id)
            login(engine, seoul, user_id, "wrong")
            assert account_store.get(user_id) == before


class TestUnknownUsers:
    """Unknown users fail; event publication follows the configured policy."""

    def test_unknown_login_fails_and_publishes_by_default(self, engine, seoul, published):
        decision = login(engine, seoul, "ghost", "x")

        assert decision.outcome == DecisionOutcome.FAILURE
        assert decision.reason == DecisionReason.USER_NOT_FOUND
        events = published()
        assert len(events) == 1
        assert events[0].result == EventResult.FAILURE
        assert events[0].user_id == "ghost"

    def test_unknown_logout_fails_without_event_by_default(self, engine, seoul, published):
        decision = engine.logout(LogoutAttempt(user_id="ghost", network=seoul))

        assert decision.outcome == DecisionOutcome.FAILURE
        assert decision.event_id is None
        assert published() == []

    def test_unknown_user_creates_no_account(self, engine, seoul, account_store):
        login(engine, seoul, "ghost", "x")
        engine.logout(LogoutAttempt(user_id="ghost", network=seoul))
        assert account_store.get("ghost") is None
        assert len(account_store) == 4

    @pytest.mark.parametrize(
        "policy, login_events, logout_events",
        [
            (UnknownUserEvents.LEGACY, 1, 0),
            (UnknownUserEvents.ALWAYS, 1, 1),
            (UnknownUserEvents.NEVER, 0, 0),
        ],
    )
    def test_publication_policy(
        self, account_store, registry, publisher, baseline, seoul, policy, login_events, logout_events
    ):
        engine = RiskDecisionEngine(
            accounts=account_store,
            velocity=None,
            baseline=baseline,
            registry=registry,
            publisher=publisher,
            unknown_user_events=policy,
        )
        try:
            login(engine, seoul, "ghost", "x")
            assert publisher.publish.call_count == login_events

            publisher.reset_mock()
            engine.logout(LogoutAttempt(user_id="ghost", network=seoul))
            assert publisher.publish.call_count == logout_events
        finally:
            engine.shutdown()


class TestLogout:
    """Logout ignores status and credentials."""

    @pytest.mark.parametrize("user_id", ["user_01", "medium_user", "blocked_user"])
    def test_known_user_logout_succeeds(self, engine, seoul, published, user_id):
        decision = engine.logout(LogoutAttempt(user_id=user_id, network=seoul))

        assert decision.outcome == DecisionOutcome.ALLOWED
        events = published()
        assert len(events) == 1
        assert events[0].event_type == EventType.LOGOUT
        assert events[0].result == EventResult.SUCCESS
        assert "amount" not in events[0].to_wire()

    def test_logout_leaves_status_unchanged(self, engine, seoul, account_store):
        engine.logout(LogoutAttempt(user_id="blocked_user", network=seoul))
        assert account_store.get("blocked_user") == AccountStatus.BLOCKED


class TestPublisherFailure:
    """A publisher that raises never changes the decision."""

    def test_login_outcome_survives_publish_error(self, engine, seoul, publisher):
        publisher.publish.side_effect = RuntimeError("queue exploded")

        decision = login(engine, seoul, "user_01", "12345678")

        assert decision.outcome == DecisionOutcome.ALLOWED
