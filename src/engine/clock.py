"""Clock — источник времени движка (unix seconds)."""

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Системное время."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """
    Управляемое время для тестов и симуляций.

    Время не обязано быть монотонным: set() может вернуть его назад.
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError(f"start must be >= 0, got {start}")
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"seconds must be >= 0, got {seconds}")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < 0:
            raise ValueError(f"timestamp must be >= 0, got {timestamp}")
        self._now = timestamp
