"""Velocity Counter - fixed-window transfer attempt counting per user.

The window starts on the first increment (0 -> 1) and is never renewed by
later increments. After it expires the next increment starts a fresh
window at 1.

The count is telemetry only: it is logged and attached to published
events, and never gates a decision.

Every attempt is counted, including attempts for user ids that turn out
not to exist. The in-memory backend drops expired windows whenever it opens
a new one, so ids that stop transferring do not accumulate.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import redis

from riskgate.common.constants import CollaboratorConstants, VelocityConstants
from riskgate.common.exceptions import CollaboratorUnavailableError


logger = logging.getLogger(__name__)


class VelocityCounter(ABC):
    """Per-user fixed-window counter."""

    def __init__(self, window_seconds: int = VelocityConstants.WINDOW_SECONDS):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.window_seconds = window_seconds

    @abstractmethod
    def increment_and_get(self, user_id: str) -> int:
        """Atomically increment the user's counter and return the new count."""

    @abstractmethod
    def current(self, user_id: str) -> int:
        """Return the live count (0 if no window is open)."""


@dataclass
class _Window:
    count: int
    expires_at: float


class InMemoryVelocityCounter(VelocityCounter):
    """Process-local counter guarded by a single lock."""

    def __init__(
        self,
        window_seconds: int = VelocityConstants.WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(window_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, _Window] = {}

    def increment_and_get(self, user_id: str) -> int:
        now = self._clock()
        with self._lock:
            window = self._windows.get(user_id)
            if window is None or window.expires_at <= now:
                self._evict_expired(now)
                window = _Window(count=0, expires_at=now + self.window_seconds)
                self._windows[user_id] = window
                logger.info(
                    f"Velocity window opened for {user_id} "
                    f"(TTL {self.window_seconds}s)"
                )
            window.count += 1
            count = window.count

        logger.info(f"User {user_id} transfer count in window: {count}")
        return count

    def _evict_expired(self, now: float) -> None:
        # Caller holds the lock
        expired = [uid for uid, w in self._windows.items() if w.expires_at <= now]
        for uid in expired:
            del self._windows[uid]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired velocity windows")

    @property
    def tracked_windows(self) -> int:
        """Number of windows currently held in memory."""
        with self._lock:
            return len(self._windows)

    def current(self, user_id: str) -> int:
        now = self._clock()
        with self._lock:
            window = self._windows.get(user_id)
            if window is None or window.expires_at <= now:
                return 0
            return window.count

    def expires_at(self, user_id: str) -> Optional[float]:
        """Clock reading at which the user's live window closes."""
        with self._lock:
            window = self._windows.get(user_id)
            return window.expires_at if window is not None else None


class RedisVelocityCounter(VelocityCounter):
    """Counter backed by Redis keys with a TTL.

    The key is created with its TTL (SET NX EX) and incremented in the same
    MULTI/EXEC block, so the expiry is attached exactly once per window.
    """

    def __init__(
        self,
        redis_client,
        window_seconds: int = VelocityConstants.WINDOW_SECONDS,
        key_prefix: str = VelocityConstants.REDIS_KEY_PREFIX,
    ):
        super().__init__(window_seconds)
        self.redis = redis_client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(
        cls,
        url: str,
        window_seconds: int = VelocityConstants.WINDOW_SECONDS,
        timeout: float = CollaboratorConstants.TIMEOUT_SECONDS,
    ):
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        return cls(client, window_seconds=window_seconds)

    def _key(self, user_id: str) -> str:
        return f"{self.key_prefix}{user_id}"

    def increment_and_get(self, user_id: str) -> int:
        key = self._key(user_id)
        try:
            pipe = self.redis.pipeline(transaction=True)
            pipe.set(key, 0, ex=self.window_seconds, nx=True)
            pipe.incr(key)
            created, count = pipe.execute()
        except redis.RedisError as e:
            raise CollaboratorUnavailableError(
                "Velocity store unavailable", collaborator="redis"
            ) from e

        if created:
            logger.info(f"Redis key created: {key} with TTL {self.window_seconds}s")
        logger.info(f"User {user_id} transfer count in window: {count}")
        return int(count)

    def current(self, user_id: str) -> int:
        try:
            value = self.redis.get(self._key(user_id))
        except redis.RedisError as e:
            raise CollaboratorUnavailableError(
                "Velocity store unavailable", collaborator="redis"
            ) from e
        return int(value) if value is not None else 0
