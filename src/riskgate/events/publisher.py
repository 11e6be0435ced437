"""Background Event Publisher - fire-and-forget event dispatch.

publish() only enqueues. A single daemon worker drains the queue in FIFO
order and hands each event to the sink. Delivery failures are logged and
the event is dropped; there is no retry.
"""

import atexit
import logging
import queue
import threading
import time
from typing import Optional

from riskgate.common.constants import PublisherConstants
from riskgate.common.exceptions import CollaboratorUnavailableError
from riskgate.events.schemas import EventRecord
from riskgate.events.sinks import EventSink


logger = logging.getLogger(__name__)


class BackgroundEventPublisher:
    """Non-blocking publisher backed by an unbounded queue."""

    DEFAULT_FLUSH_TIMEOUT = PublisherConstants.FLUSH_TIMEOUT_SECONDS

    def __init__(
        self,
        sink: EventSink,
        flush_timeout: float = DEFAULT_FLUSH_TIMEOUT,
    ):
        """Initialize the publisher and start its worker.

        Args:
            sink: Delivery backend.
            flush_timeout: Timeout for draining the queue on shutdown.
        """
        self.sink = sink
        self.flush_timeout = flush_timeout

        self._queue: "queue.Queue[Optional[EventRecord]]" = queue.Queue()

        # Shutdown coordination
        self._shutdown_event = threading.Event()
        self._worker_thread: Optional[threading.Thread] = None

        # Statistics
        self._events_published = 0
        self._events_delivered = 0
        self._events_failed = 0
        self._stats_lock = threading.Lock()

        self._start_worker()
        atexit.register(self.shutdown)

    def _start_worker(self) -> None:
        """Start the background delivery thread."""
        self._worker_thread = threading.Thread(
            target=self._worker_loop,
            name="EventPublisher",
            daemon=True,
        )
        self._worker_thread.start()
        logger.info("Background event publisher started")

    def _worker_loop(self) -> None:
        """Deliver events from the queue until shutdown."""
        while not self._shutdown_event.is_set():
            try:
                event = self._queue.get(timeout=PublisherConstants.QUEUE_GET_TIMEOUT)
            except queue.Empty:
                continue

            if event is None:
                self._queue.task_done()
                break

            try:
                self._deliver(event)
            finally:
                self._queue.task_done()

        self._drain_queue()
        logger.info("Background event publisher stopped")

    def _deliver(self, event: EventRecord) -> None:
        try:
            self.sink.send(event)
            with self._stats_lock:
                self._events_delivered += 1
        except CollaboratorUnavailableError as e:
            with self._stats_lock:
                self._events_failed += 1
            logger.error(
                f"Event delivery failed, dropping {event.event_type.value} event "
                f"{event.event_id}: {e.message}"
            )
        except Exception as e:
            with self._stats_lock:
                self._events_failed += 1
            logger.exception(
                f"Unexpected error delivering event {event.event_id}: {type(e).__name__}"
            )

    def _drain_queue(self) -> None:
        """Deliver whatever is still queued at shutdown."""
        drained = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                break
            if event is not None:
                self._deliver(event)
                drained += 1
            self._queue.task_done()

        if drained > 0:
            logger.info(f"Drained {drained} events during shutdown")

    def publish(self, event: EventRecord) -> None:
        """Enqueue an event for delivery. Never blocks, never raises."""
        if self._shutdown_event.is_set():
            logger.warning(f"Publisher is shut down, dropping event {event.event_id}")
            with self._stats_lock:
                self._events_failed += 1
            return

        self._queue.put_nowait(event)
        with self._stats_lock:
            self._events_published += 1

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until every queued event has been handled.

        Returns:
            True if the queue drained, False if the timeout elapsed first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while self._queue.unfinished_tasks:
            if deadline is not None and time.monotonic() >= deadline:
                return False
            time.sleep(PublisherConstants.FLUSH_POLL_INTERVAL)
        return True

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop the worker after draining pending events."""
        if self._shutdown_event.is_set():
            return

        timeout = timeout if timeout is not None else self.flush_timeout

        logger.info("Shutting down background event publisher...")
        self._queue.put_nowait(None)
        self.flush(timeout)
        self._shutdown_event.set()

        if self._worker_thread and self._worker_thread.is_alive():
            self._worker_thread.join(timeout=timeout)
            if self._worker_thread.is_alive():
                logger.warning("Event publisher did not stop cleanly")

        self.sink.close()
        stats = self.get_stats()
        logger.info(
            f"Event publisher shutdown complete. "
            f"Delivered: {stats['events_delivered']}, "
            f"Failed: {stats['events_failed']}"
        )

    def get_stats(self) -> dict:
        """Get publisher statistics."""
        with self._stats_lock:
            return {
                "events_published": self._events_published,
                "events_delivered": self._events_delivered,
                "events_failed": self._events_failed,
                "queue_size": self._queue.qsize(),
            }

    @property
    def is_running(self) -> bool:
        """Whether the publisher accepts new events."""
        return not self._shutdown_event.is_set()
