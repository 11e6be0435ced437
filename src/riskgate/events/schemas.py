"""Event schemas - the published domain event record.

The wire shape uses camelCase keys. Transfer-only keys (amount,
destination, baseline, velocity) are omitted for LOGIN/LOGOUT events.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Types of published events."""
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    TRANSFER = "TRANSFER"


class EventResult(str, Enum):
    """Published result value for an event."""
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    BLOCKED = "BLOCKED"
    MID_VERIFICATION = "MID_VERIFICATION"
    VERIFIED = "VERIFIED"


TRANSFER_ONLY_FIELDS = (
    "amount",
    "destinationLabel",
    "destinationAccountRef",
    "averageAmountBaseline",
    "velocityCount",
)


class EventRecord(BaseModel):
    """A single domain event sent to the event sink.

    Immutable once built.
    """
    timestamp: datetime = Field(..., description="Event time, offset-aware")
    event_type: EventType = Field(..., alias="eventType")
    event_id: str = Field(
        default_factory=lambda: str(uuid4()),
        alias="eventId",
        description="Globally unique event identifier",
    )
    user_id: str = Field(..., alias="userId")
    result: EventResult
    source_ip: str = Field(..., alias="sourceIp")
    country: str = Field(..., description="Upper-case ISO code or UNKNOWN")
    hour_of_day: int = Field(..., ge=0, le=23, alias="hourOfDay")

    # Transfer only
    amount: Optional[int] = Field(default=None, gt=0)
    destination_label: Optional[str] = Field(default=None, alias="destinationLabel")
    destination_account_ref: Optional[str] = Field(default=None, alias="destinationAccountRef")
    average_amount_baseline: Optional[float] = Field(
        default=None, ge=0, alias="averageAmountBaseline"
    )
    velocity_count: Optional[int] = Field(default=None, ge=0, alias="velocityCount")

    model_config = {"frozen": True, "populate_by_name": True}

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to the stable camelCase wire shape."""
        data = self.model_dump(mode="json", by_alias=True)
        data["timestamp"] = self.timestamp.isoformat()
        if self.event_type != EventType.TRANSFER:
            for key in TRANSFER_ONLY_FIELDS:
                data.pop(key, None)
        return data

    def to_jsonl(self) -> str:
        """Serialize to a single JSON line (no trailing newline)."""
        return json.dumps(self.to_wire(), ensure_ascii=False)
