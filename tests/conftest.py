import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class FakeClock:
    """Manually driven clock with an awaitable sleep that advances it."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start
        self._events = []

    def __call__(self) -> float:
        return self.now

    def at(self, offset: float, callback) -> None:
        """Run ``callback`` once the clock passes ``now + offset``."""
        self._events.append((self.now + offset, callback))
        self._events.sort(key=lambda event: event[0])

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._events and self._events[0][0] <= target:
            when, callback = self._events.pop(0)
            self.now = when
            callback()
        self.now = target

    async def sleep(self, seconds: float) -> None:
        self.advance(seconds)


@pytest.fixture
def clock():
    return FakeClock()
