"""Fake ClockPort and IdSupplierPort implementations for testing."""

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from skillverify.core.ports import ClockPort, IdSupplierPort


class FakeClock(ClockPort):
    """Clock that returns a fixed time until advanced."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
        self.call_count = 0

    def now(self) -> datetime:
        self.call_count += 1
        return self.current

    def advance(self, **kwargs: float) -> None:
        """Move the clock forward by a timedelta built from kwargs."""
        self.current = self.current + timedelta(**kwargs)


class FakeIdSupplier(IdSupplierPort):
    """Deterministic id supplier.

    Returns scripted ids first (to provoke collisions), then
    ``user-001``, ``user-002`` and so on.
    """

    def __init__(self, scripted: Iterable[str] = ()):
        self.scripted = list(scripted)
        self.counter = 0
        self.issued: list[str] = []

    def new_id(self) -> str:
        if self.scripted:
            new_id = self.scripted.pop(0)
        else:
            self.counter += 1
            new_id = f"user-{self.counter:03d}"
        self.issued.append(new_id)
        return new_id
