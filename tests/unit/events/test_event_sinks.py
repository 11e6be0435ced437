"""Tests for event sinks."""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from riskgate.common.exceptions import CollaboratorUnavailableError
from riskgate.events.factory import EventFactory
from riskgate.events.schemas import EventResult, EventType
from riskgate.events.sinks import (
    CompositeEventSink,
    EventSink,
    JsonlPartitionEventSink,
    WebhookEventSink,
)


@pytest.fixture
def event(fixed_clock):
    return EventFactory(clock=fixed_clock).transfer_event(
        "user_01", EventResult.SUCCESS, "KR", "203.0.113.10", 1000, 150.0, 1
    )


class TestJsonlPartitionEventSink:
    """Events append to the daily partition named by their local date."""

    def test_appends_lines(self, tmp_path, event):
        sink = JsonlPartitionEventSink(tmp_path)

        sink.send(event)
        sink.send(event)

        lines = (tmp_path / "fds-2026-01-29.json").read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["userId"] == "user_01"

    def test_partition_follows_event_date(self, tmp_path):
        late = datetime(2026, 1, 30, 0, 5, tzinfo=timezone(timedelta(hours=9)))
        event = EventFactory(clock=lambda: late).auth_event(
            EventType.LOGIN, "u", EventResult.SUCCESS, "KR", "1.2.3.4"
        )
        sink = JsonlPartitionEventSink(tmp_path)

        sink.send(event)

        assert (tmp_path / "fds-2026-01-30.json").exists()

    def test_unwritable_directory(self, tmp_path, event):
        sink = JsonlPartitionEventSink(tmp_path)
        (tmp_path / "fds-2026-01-29.json").mkdir()

        with pytest.raises(CollaboratorUnavailableError):
            sink.send(event)


class TestWebhookEventSink:
    """Webhook delivery over httpx."""

    def test_posts_wire_json(self, event):
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(json.loads(request.content))
            return httpx.Response(200)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        sink = WebhookEventSink("https://hooks.example.com/fds", client=client)

        sink.send(event)

        assert received[0]["eventId"] == event.event_id
        assert received[0]["amount"] == 1000

    def test_server_error_raises(self, event):
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(503)))
        sink = WebhookEventSink("https://hooks.example.com/fds", client=client)

        with pytest.raises(CollaboratorUnavailableError):
            sink.send(event)

    def test_connection_error_raises(self, event):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(refuse))
        sink = WebhookEventSink("https://hooks.example.com/fds", client=client)

        with pytest.raises(CollaboratorUnavailableError):
            sink.send(event)


class RecordingSink(EventSink):
    name = "recording"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.events = []
        self.closed = False

    def send(self, event):
        if self.fail:
            raise CollaboratorUnavailableError("down", collaborator=self.name)
        self.events.append(event)

    def close(self):
        self.closed = True


class TestCompositeEventSink:
    def test_all_sinks_attempted_before_raising(self, event):
        broken, healthy = RecordingSink(fail=True), RecordingSink()
        sink = CompositeEventSink([broken, healthy])

        with pytest.raises(CollaboratorUnavailableError):
            sink.send(event)

        assert healthy.events == [event]

    def test_close_closes_all(self):
        sinks = [RecordingSink(), RecordingSink()]
        CompositeEventSink(sinks).close()
        assert all(s.closed for s in sinks)
