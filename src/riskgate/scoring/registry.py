"""Risk registry - the external score provider and its block list.

The registry is a separate system of record from the local Account Status
Store: it accumulates the total risk score from off-system analysis,
remembers which users it has blocked, and accepts block requests.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional, Set

import httpx

from riskgate.common.constants import CollaboratorConstants
from riskgate.common.exceptions import CollaboratorUnavailableError


logger = logging.getLogger(__name__)


class RiskRegistry(ABC):
    """Abstract client for the external risk registry."""

    name = "risk_registry"

    @abstractmethod
    def get_total_score(self, user_id: str) -> int:
        """Total accumulated risk score (0-100+)."""

    @abstractmethod
    def is_blocked(self, user_id: str) -> bool:
        """Whether the registry already considers the user blocked."""

    @abstractmethod
    def block_user(self, user_id: str) -> None:
        """Mark the user blocked in the registry."""

    def close(self) -> None:
        """Release any held resources."""


class InMemoryRiskRegistry(RiskRegistry):
    """Process-local registry for development and tests."""

    name = "in_memory_registry"

    def __init__(
        self,
        scores: Optional[Dict[str, int]] = None,
        blocked: Optional[Iterable[str]] = None,
    ):
        self._lock = threading.Lock()
        self._scores: Dict[str, int] = dict(scores or {})
        self._blocked: Set[str] = set(blocked or ())

    def get_total_score(self, user_id: str) -> int:
        with self._lock:
            return self._scores.get(user_id, 0)

    def set_score(self, user_id: str, score: int) -> None:
        with self._lock:
            self._scores[user_id] = score

    def is_blocked(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._blocked

    def block_user(self, user_id: str) -> None:
        with self._lock:
            self._blocked.add(user_id)
        logger.warning(f"Registry marked user {user_id} as blocked")


class HttpRiskRegistry(RiskRegistry):
    """HTTP client for a remote risk registry.

    Endpoints:
        GET  {base_url}/users/{user_id}/score  -> {"total_score": int}
        GET  {base_url}/users/{user_id}/status -> {"blocked": bool}
        POST {base_url}/users/{user_id}/block
    """

    name = "http_registry"

    def __init__(
        self,
        base_url: str,
        timeout: float = CollaboratorConstants.TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json"},
        )

    def _request(self, method: str, path: str) -> httpx.Response:
        try:
            response = self._client.request(method, path)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CollaboratorUnavailableError(
                f"Risk registry request failed: {method} {path} ({type(e).__name__})",
                collaborator=self.name,
            ) from e
        return response

    def _json_field(self, response: httpx.Response, field: str):
        try:
            return response.json()[field]
        except (ValueError, KeyError, TypeError) as e:
            raise CollaboratorUnavailableError(
                f"Risk registry returned an unexpected payload (missing {field})",
                collaborator=self.name,
            ) from e

    def get_total_score(self, user_id: str) -> int:
        response = self._request("GET", f"/users/{user_id}/score")
        value = self._json_field(response, "total_score")
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise CollaboratorUnavailableError(
                "Risk registry returned a non-numeric score", collaborator=self.name
            ) from e

    def is_blocked(self, user_id: str) -> bool:
        response = self._request("GET", f"/users/{user_id}/status")
        return bool(self._json_field(response, "blocked"))

    def block_user(self, user_id: str) -> None:
        self._request("POST", f"/users/{user_id}/block")
        logger.warning(f"Registry block request accepted for user {user_id}")

    def close(self) -> None:
        self._client.close()
