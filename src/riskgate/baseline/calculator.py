"""Baseline Calculator - a user's representative recent transfer amount.

Algorithm:
1. Scan the partition for the as-of date; mean of the user's TRANSFER amounts.
2. If the partition is missing, unreadable, or has no matches, walk back one
   day at a time, up to the lookback limit, and use the most recent day that
   has at least one match.
3. Otherwise return 0.0 ("no history").

Malformed lines, including undecodable bytes and nesting too deep to parse,
are skipped one by one. History problems never propagate
to the caller.
"""

import json
import logging
import math
import statistics
import threading
from datetime import date, timedelta
from typing import List, Optional

from riskgate.baseline.partitions import PartitionSource
from riskgate.common.constants import HistoryConstants
from riskgate.common.exceptions import HistoryUnavailableError
from riskgate.events.schemas import EventType


logger = logging.getLogger(__name__)


def parse_transfer_amount(line: str, user_id: str) -> Optional[float]:
    """Return the amount of a TRANSFER line for ``user_id``, else None.

    Raises:
        ValueError: If the line is not a well-formed event.
    """
    record = json.loads(line)
    if not isinstance(record, dict):
        raise ValueError("event line is not a JSON object")

    if record.get("eventType") != EventType.TRANSFER.value or record.get("userId") != user_id:
        return None

    raw = record.get("amount")
    if raw is None or isinstance(raw, bool) or raw == "":
        return None
    if isinstance(raw, str):
        raw = raw.strip()

    try:
        amount = float(raw)
    except OverflowError as e:
        raise ValueError(f"amount out of range: {raw!r}") from e
    if not math.isfinite(amount) or amount < 0:
        raise ValueError(f"invalid amount: {raw!r}")
    return amount


class BaselineCalculator:
    """Computes average transfer amounts from the daily event log.

    Holds no per-scan state, so concurrent calls for different users are safe.
    """

    def __init__(
        self,
        source: PartitionSource,
        lookback_days: int = HistoryConstants.LOOKBACK_DAYS,
    ):
        if lookback_days < 0:
            raise ValueError("lookback_days cannot be negative")
        self.source = source
        self.lookback_days = lookback_days

        self._scans_lock = threading.Lock()
        self._scans_performed = 0

    @property
    def scans_performed(self) -> int:
        """Number of partition scans attempted since construction."""
        with self._scans_lock:
            return self._scans_performed

    def average_amount(self, user_id: str, as_of_date: date) -> float:
        """Mean transfer amount for the user, or 0.0 when there is no history."""
        for days_ago in range(self.lookback_days + 1):
            day = as_of_date - timedelta(days=days_ago)
            amounts = self._scan_partition(user_id, day)
            if amounts:
                average = statistics.fmean(amounts)
                logger.info(
                    f"User {user_id} average transfer amount from {day.isoformat()} "
                    f"({days_ago} days ago): {average} (based on {len(amounts)} transfers)"
                )
                return average

            if days_ago == 0:
                logger.info(
                    f"No transfer records found for user {user_id} on {day.isoformat()}, "
                    f"checking recent days"
                )

        logger.info(
            f"No transfer records found for user {user_id} "
            f"in recent {self.lookback_days} days"
        )
        return HistoryConstants.NO_HISTORY_BASELINE

    def _scan_partition(self, user_id: str, day: date) -> List[float]:
        with self._scans_lock:
            self._scans_performed += 1

        amounts: List[float] = []
        skipped = 0
        try:
            for raw in self.source.read_lines(day):
                try:
                    line = raw.decode("utf-8") if isinstance(raw, bytes) else raw
                    line = line.strip()
                    if not line:
                        continue
                    amount = parse_transfer_amount(line, user_id)
                except (ValueError, TypeError, OverflowError, RecursionError):
                    skipped += 1
                    continue
                if amount is not None:
                    amounts.append(amount)
        except HistoryUnavailableError as e:
            # Partial results from a broken partition are discarded
            logger.debug(f"History unavailable for {day.isoformat()}: {e.message}")
            return []

        if skipped:
            logger.debug(f"Skipped {skipped} malformed lines in partition {day.isoformat()}")
        return amounts
