"""
records.py — Record Construction for Accepted Quotes

Turns a validated submission into the immutable QuoteRecord that is exported
and logged. All server-side fields (identifier, receipt time, authoritative
total) are assigned here and nowhere else.
"""

import threading
import time
from datetime import datetime, timezone

from .models import QuoteRecord, QuoteSubmission


def iso_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a 'Z' suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class QuoteIdGenerator:
    """
    Issues quote identifiers of the form "Q<epoch milliseconds>".

    Identifiers are strictly increasing within the process: when two requests
    arrive in the same millisecond (or the clock steps backwards) the counter
    is bumped past the last issued value under a lock, so no two callers can
    ever receive the same identifier.
    """
    def __init__(self, clock=None):
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._lock = threading.Lock()
        self._last = 0

    def next_id(self) -> str:
        with self._lock:
            value = max(self._clock(), self._last + 1)
            self._last = value
        return f"Q{value}"


def build_record(submission: QuoteSubmission, id_generator: QuoteIdGenerator,
                 now: datetime = None) -> QuoteRecord:
    """
    Builds the server-authoritative record for a validated submission.

    Args:
        submission (QuoteSubmission): Output of validate_submission().
        id_generator (QuoteIdGenerator): Shared identifier source.
        now (datetime, optional): Receipt instant, defaults to the current UTC time.

    Returns:
        QuoteRecord: Frozen record; `total` is the recomputed total and
        `orderTime` falls back from orderTime to createdAt to receipt time.
    """
    received_at = iso_timestamp(now or datetime.now(timezone.utc))
    extras = {
        key: value for key, value in (submission.model_extra or {}).items()
        if key not in QuoteRecord.model_fields
    }
    order_time = submission.orderTime or extras.get("createdAt") or received_at

    return QuoteRecord(
        **extras,
        id=id_generator.next_id(),
        customerName=submission.customerName,
        customerContact=submission.customerContact,
        customerAddress=submission.customerAddress,
        items=submission.items,
        total=submission.calcTotal,
        orderTime=str(order_time),
        receivedAt=received_at,
    )
