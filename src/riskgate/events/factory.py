"""Event factory - builds event records stamped with local time."""

from datetime import datetime
from typing import Callable, Optional

from riskgate.common.constants import TransferConstants
from riskgate.events.schemas import EventRecord, EventResult, EventType


def local_now() -> datetime:
    """Current local time with its UTC offset."""
    return datetime.now().astimezone()


class EventFactory:
    """Creates LOGIN/LOGOUT/TRANSFER records.

    Country and source IP are expected to be already normalized by the caller.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or local_now

    def now(self) -> datetime:
        return self._clock()

    def auth_event(
        self,
        event_type: EventType,
        user_id: str,
        result: EventResult,
        country: str,
        source_ip: str,
    ) -> EventRecord:
        if event_type == EventType.TRANSFER:
            raise ValueError("Use transfer_event for TRANSFER records")
        now = self.now()
        return EventRecord(
            timestamp=now,
            event_type=event_type,
            user_id=user_id,
            result=result,
            source_ip=source_ip,
            country=country,
            hour_of_day=now.hour,
        )

    def transfer_event(
        self,
        user_id: str,
        result: EventResult,
        country: str,
        source_ip: str,
        amount: int,
        average_amount_baseline: float,
        velocity_count: Optional[int] = None,
    ) -> EventRecord:
        now = self.now()
        return EventRecord(
            timestamp=now,
            event_type=EventType.TRANSFER,
            user_id=user_id,
            result=result,
            source_ip=source_ip,
            country=country,
            hour_of_day=now.hour,
            amount=amount,
            destination_label=TransferConstants.DESTINATION_LABEL,
            destination_account_ref=TransferConstants.DESTINATION_ACCOUNT_REF,
            average_amount_baseline=average_amount_baseline,
            velocity_count=velocity_count,
        )
