"""Sliding-window request tracking and adaptive inter-item pacing."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True, slots=True)
class PacingSettings:
    base_delay_ms: int = 3000
    max_delay_ms: int = 30000
    growth_factor: float = 1.5
    window_seconds: float = 60.0


class RateGovernor:
    """Advisory pacing for a single run.

    The governor never blocks a request; it only reports throughput and
    computes the delay the driver waits between items.
    """

    def __init__(
        self,
        settings: PacingSettings | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._settings = settings or PacingSettings()
        self._clock = clock
        self._requests: deque[float] = deque()

    @property
    def baseline_delay(self) -> int:
        return self._settings.base_delay_ms

    def record_request(self, timestamp: float | None = None) -> None:
        self._requests.append(self._clock() if timestamp is None else timestamp)

    def requests_in_last_minute(self) -> int:
        cutoff = self._clock() - self._settings.window_seconds
        while self._requests and self._requests[0] <= cutoff:
            self._requests.popleft()
        return len(self._requests)

    def next_delay(self, current_delay: int, rate_limit_hit: bool) -> int:
        if not rate_limit_hit:
            return self._settings.base_delay_ms
        grown = round(current_delay * self._settings.growth_factor)
        return min(self._settings.max_delay_ms, grown)
