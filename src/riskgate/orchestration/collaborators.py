"""Collaborator guard - bounded-time calls to external collaborators.

Calls run on a shared thread pool and are abandoned after the configured
timeout. A timeout or failure means "collaborator unavailable": the caller
gets the supplied default and a loud log line, never an exception.
"""

import atexit
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from riskgate.common.constants import CollaboratorConstants


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CallResult(Generic[T]):
    """Value returned by a guarded call."""
    value: T
    available: bool
    error_type: Optional[str] = None


# Module-level shared executor
_shared_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


def _get_shared_executor(max_workers: int = CollaboratorConstants.MAX_WORKERS) -> ThreadPoolExecutor:
    """Get or create the shared collaborator thread pool."""
    global _shared_executor

    with _executor_lock:
        if _shared_executor is None:
            _shared_executor = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix="CollaboratorWorker"
            )
            atexit.register(_shutdown_shared_executor)
            logger.info(f"Created shared collaborator executor with {max_workers} workers")

    return _shared_executor


def _shutdown_shared_executor() -> None:
    """Shutdown the shared executor on process exit."""
    global _shared_executor
    with _executor_lock:
        if _shared_executor is not None:
            _shared_executor.shutdown(wait=False, cancel_futures=True)
            logger.info("Shared collaborator executor shutdown complete")
            _shared_executor = None


class CollaboratorGuard:
    """Runs collaborator calls with a timeout and a fallback value."""

    def __init__(
        self,
        timeout: float = CollaboratorConstants.TIMEOUT_SECONDS,
        max_workers: int = CollaboratorConstants.MAX_WORKERS,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.timeout = timeout
        self.max_workers = max_workers
        self._executor = executor

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is not None:
            return self._executor
        return _get_shared_executor(self.max_workers)

    def call(
        self,
        collaborator: str,
        fn: Callable[..., T],
        *args: Any,
        default: T,
    ) -> CallResult[T]:
        """Call ``fn(*args)``; on timeout or error return ``default``."""
        future = self._get_executor().submit(fn, *args)
        try:
            return CallResult(value=future.result(timeout=self.timeout), available=True)
        except FuturesTimeoutError:
            future.cancel()
            logger.error(
                f"Collaborator {collaborator} timed out after {self.timeout}s, "
                f"using default {default!r}"
            )
            return CallResult(value=default, available=False, error_type="Timeout")
        except Exception as e:
            logger.error(
                f"Collaborator {collaborator} failed: {type(e).__name__}: {e}; "
                f"using default {default!r}"
            )
            return CallResult(value=default, available=False, error_type=type(e).__name__)


def shutdown_executor() -> None:
    """Explicitly shutdown the shared executor.

    Call this during application shutdown for clean termination.
    """
    _shutdown_shared_executor()
