"""Реализации Clock."""

import time


class SystemClock:
    """Системное время, секунды UTC."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Управляемые часы для тестов и симуляций. Время не убывает."""

    def __init__(self, start: int):
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"clock cannot go backwards, got {seconds}")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> int:
        if timestamp < self._now:
            raise ValueError(f"clock cannot go backwards: {timestamp} < {self._now}")
        self._now = timestamp
        return self._now
