"""Events - published domain event records, sinks, and the background publisher.

Components:
- EventRecord: the stable camelCase wire record
- EventFactory: stamps records with local time
- EventSink: delivery backends (webhook, daily JSONL partition, fan-out)
- BackgroundEventPublisher: queue + worker, failures logged and dropped
"""

from riskgate.events.schemas import EventRecord, EventResult, EventType
from riskgate.events.factory import EventFactory, local_now
from riskgate.events.sinks import (
    CompositeEventSink,
    EventSink,
    JsonlPartitionEventSink,
    NullEventSink,
    WebhookEventSink,
)
from riskgate.events.publisher import BackgroundEventPublisher

__all__ = [
    "EventRecord",
    "EventResult",
    "EventType",
    "EventFactory",
    "local_now",
    "CompositeEventSink",
    "EventSink",
    "JsonlPartitionEventSink",
    "NullEventSink",
    "WebhookEventSink",
    "BackgroundEventPublisher",
]
