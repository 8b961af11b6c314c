"""Runtime adapters: wall clock and id generation.

Implements ClockPort and IdSupplierPort on top of the host system.
"""

import threading
import uuid
from datetime import UTC, datetime

from skillverify.core.ports import ClockPort, IdSupplierPort


class SystemClock(ClockPort):
    """UTC wall clock that never goes backwards.

    If the system time steps back (NTP adjustment), the last returned
    timestamp is reused so rating timestamps stay non-decreasing.
    """

    def __init__(self) -> None:
        self._last: datetime | None = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        current = datetime.now(UTC)
        with self._lock:
            if self._last is not None and current < self._last:
                current = self._last
            self._last = current
        return current


class UUIDSupplier(IdSupplierPort):
    """Random UUID4 ids rendered as canonical strings."""

    def new_id(self) -> str:
        return str(uuid.uuid4())
