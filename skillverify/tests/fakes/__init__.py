"""Fake implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeUserStorePort: In-memory user persistence with call tracking
- FakeClock: Manually advanced clock
- FakeIdSupplier: Deterministic, scriptable id sequence
"""

from .runtime import FakeClock, FakeIdSupplier
from .store import FakeUserStorePort

__all__ = [
    "FakeClock",
    "FakeIdSupplier",
    "FakeUserStorePort",
]
