"""Event sinks - delivery backends for published events.

Sinks are called from the publisher's background worker, never from a
request thread. A failing sink raises CollaboratorUnavailableError; the
publisher logs it and drops the event.
"""

import fcntl
import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional

import httpx

from riskgate.common.constants import CollaboratorConstants, HistoryConstants
from riskgate.common.exceptions import CollaboratorUnavailableError
from riskgate.events.schemas import EventRecord


logger = logging.getLogger(__name__)


class EventSink(ABC):
    """Abstract base class for event delivery backends."""

    name = "event_sink"

    @abstractmethod
    def send(self, event: EventRecord) -> None:
        """Deliver one event.

        Raises:
            CollaboratorUnavailableError: If delivery fails
        """

    def close(self) -> None:
        """Release any held resources."""


class WebhookEventSink(EventSink):
    """POSTs each event as JSON to an automation/alerting webhook."""

    name = "webhook"

    def __init__(
        self,
        url: str,
        timeout: float = CollaboratorConstants.TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout))

    def send(self, event: EventRecord) -> None:
        try:
            response = self._client.post(self.url, json=event.to_wire())
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CollaboratorUnavailableError(
                f"Webhook delivery failed: {type(e).__name__}",
                collaborator=self.name,
                details={"event_id": event.event_id},
            ) from e
        logger.info(f"Webhook delivery succeeded for event {event.event_id}")

    def close(self) -> None:
        self._client.close()


class JsonlPartitionEventSink(EventSink):
    """Appends events to the daily event log partition.

    One JSON object per line, one file per local calendar date
    (fds-YYYY-MM-DD.json). These partitions are what the baseline
    calculator later scans.
    """

    name = "event_log"

    def __init__(
        self,
        log_dir: Path,
        filename_pattern: str = HistoryConstants.PARTITION_FILENAME_PATTERN,
        fsync_on_write: bool = False,
    ):
        self.log_dir = Path(log_dir)
        self.filename_pattern = filename_pattern
        self.fsync_on_write = fsync_on_write
        self._lock = threading.Lock()
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def partition_path(self, event: EventRecord) -> Path:
        date = event.timestamp.strftime(HistoryConstants.DATE_FORMAT)
        return self.log_dir / self.filename_pattern.replace("{date}", date)

    def send(self, event: EventRecord) -> None:
        path = self.partition_path(event)
        line = event.to_jsonl() + "\n"
        with self._lock:
            try:
                fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o644)
                try:
                    # Exclusive lock for cross-process appends
                    fcntl.flock(fd, fcntl.LOCK_EX)
                    try:
                        os.write(fd, line.encode("utf-8"))
                        if self.fsync_on_write:
                            os.fsync(fd)
                    finally:
                        fcntl.flock(fd, fcntl.LOCK_UN)
                finally:
                    os.close(fd)
            except OSError as e:
                raise CollaboratorUnavailableError(
                    f"Event log append failed: {e.strerror}",
                    collaborator=self.name,
                    details={"partition": path.name},
                ) from e


class CompositeEventSink(EventSink):
    """Fans an event out to several sinks.

    Every sink is attempted; if any failed, the first failure is raised
    after the others have been tried.
    """

    name = "composite"

    def __init__(self, sinks: Iterable[EventSink]):
        self.sinks: List[EventSink] = list(sinks)

    def send(self, event: EventRecord) -> None:
        first_error: Optional[CollaboratorUnavailableError] = None
        for sink in self.sinks:
            try:
                sink.send(event)
            except CollaboratorUnavailableError as e:
                logger.error(f"Sink {sink.name} failed for event {event.event_id}: {e.message}")
                first_error = first_error or e
        if first_error is not None:
            raise first_error

    def close(self) -> None:
        for sink in self.sinks:
            sink.close()


class NullEventSink(EventSink):
    """Discards events (used when no sink is configured)."""

    name = "null"

    def send(self, event: EventRecord) -> None:
        logger.debug(f"Discarding event {event.event_id}")
