"""Injectable clock. Recurrence math always takes "today" from here, never from the store."""

from abc import ABC, abstractmethod
from datetime import date


class Clock(ABC):
    @abstractmethod
    def today(self) -> date:
        """The current calendar day."""


class SystemClock(Clock):
    def today(self) -> date:
        return date.today()


class FixedClock(Clock):
    """Clock pinned to a given day; ``set`` moves it."""

    def __init__(self, current: date):
        self.current = current

    def today(self) -> date:
        return self.current

    def set(self, current: date) -> None:
        self.current = current


_system_clock = SystemClock()

# Dependency to get the clock
def get_clock() -> Clock:
    return _system_clock
