"""Tests for risk registry clients and score classification."""

import json

import httpx
import pytest

from riskgate.accounts.schemas import RiskLevel
from riskgate.common.exceptions import CollaboratorUnavailableError
from riskgate.scoring.levels import classify_score
from riskgate.scoring.registry import HttpRiskRegistry, InMemoryRiskRegistry


class TestClassifyScore:
    @pytest.mark.parametrize(
        "score, level",
        [
            (0, RiskLevel.LOW),
            (39, RiskLevel.LOW),
            (40, RiskLevel.MEDIUM),
            (69, RiskLevel.MEDIUM),
            (70, RiskLevel.HIGH),
            (150, RiskLevel.HIGH),
        ],
    )
    def test_thresholds(self, score, level):
        assert classify_score(score) == level


class TestInMemoryRiskRegistry:
    def test_defaults(self):
        registry = InMemoryRiskRegistry()
        assert registry.get_total_score("u1") == 0
        assert not registry.is_blocked("u1")

    def test_seeded_and_updated(self):
        registry = InMemoryRiskRegistry(scores={"u1": 55}, blocked=["u2"])
        registry.set_score("u1", 80)
        registry.block_user("u3")

        assert registry.get_total_score("u1") == 80
        assert registry.is_blocked("u2")
        assert registry.is_blocked("u3")


def make_registry(handler) -> HttpRiskRegistry:
    client = httpx.Client(
        base_url="https://registry.example.com",
        transport=httpx.MockTransport(handler),
    )
    return HttpRiskRegistry("https://registry.example.com", client=client)


class TestHttpRiskRegistry:
    """HTTP registry client against a mock transport."""

    def test_get_total_score(self):
        def handler(request):
            assert request.url.path == "/users/user_01/score"
            return httpx.Response(200, json={"total_score": 72})

        assert make_registry(handler).get_total_score("user_01") == 72

    def test_is_blocked(self):
        registry = make_registry(lambda r: httpx.Response(200, json={"blocked": True}))
        assert registry.is_blocked("user_01") is True

    def test_block_user_posts(self):
        calls = []

        def handler(request):
            calls.append((request.method, request.url.path))
            return httpx.Response(204)

        make_registry(handler).block_user("user_01")

        assert calls == [("POST", "/users/user_01/block")]

    def test_http_error_becomes_unavailable(self):
        registry = make_registry(lambda r: httpx.Response(500))
        with pytest.raises(CollaboratorUnavailableError):
            registry.get_total_score("user_01")

    @pytest.mark.parametrize("payload", [{}, {"total_score": "lots"}, ["x"]])
    def test_bad_payload_becomes_unavailable(self, payload):
        registry = make_registry(lambda r: httpx.Response(200, content=json.dumps(payload)))
        with pytest.raises(CollaboratorUnavailableError):
            registry.get_total_score("user_01")

    def test_timeout_becomes_unavailable(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(CollaboratorUnavailableError):
            make_registry(handler).is_blocked("user_01")
