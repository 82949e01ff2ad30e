from __future__ import annotations

from hrevaluation.core import PacingSettings, RateGovernor


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_delay_grows_only_after_rate_limit():
    governor = RateGovernor()

    assert governor.baseline_delay == 3000
    assert governor.next_delay(3000, False) == 3000

    delays = [3000]
    for _ in range(2):
        delays.append(governor.next_delay(delays[-1], True))
    assert delays == [3000, 4500, 6750]


def test_delay_returns_to_baseline_without_rate_limit():
    governor = RateGovernor(PacingSettings(base_delay_ms=2000))

    assert governor.next_delay(4500, False) == 2000
    assert governor.next_delay(2000, False) == 2000


def test_delay_is_capped():
    governor = RateGovernor()
    delay = 3000
    for _ in range(20):
        delay = governor.next_delay(delay, True)

    assert delay == 30000


def test_custom_baseline():
    governor = RateGovernor(PacingSettings(base_delay_ms=1000, max_delay_ms=2000))

    assert governor.baseline_delay == 1000
    assert governor.next_delay(1000, True) == 1500
    assert governor.next_delay(1500, True) == 2000


def test_window_prunes_old_requests():
    clock = FakeClock()
    governor = RateGovernor(clock=clock)
    for timestamp in (0.0, 10.0, 59.0):
        governor.record_request(timestamp)

    clock.now = 30.0
    assert governor.requests_in_last_minute() == 3

    clock.now = 65.0
    assert governor.requests_in_last_minute() == 2

    clock.now = 200.0
    assert governor.requests_in_last_minute() == 0


def test_record_request_uses_clock():
    clock = FakeClock(100.0)
    governor = RateGovernor(clock=clock)
    governor.record_request()
    clock.now = 159.0

    assert governor.requests_in_last_minute() == 1
