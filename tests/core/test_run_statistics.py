from __future__ import annotations

import pytest

from hrevaluation.core import RunStatistics, judge_run


@pytest.mark.parametrize(
    ("processed", "errors", "failed"),
    [
        (4, 6, True),
        (6, 4, False),
        (6, 5, False),
        (5, 5, False),
        (5, 6, True),
    ],
)
def test_error_rate_gate(processed: int, errors: int, failed: bool):
    stats = RunStatistics(processed=processed, errors=errors)

    assert judge_run(stats).failed is failed


def test_high_error_rate_reason():
    verdict = judge_run(RunStatistics(processed=5, errors=6))

    assert verdict.reason == "High error rate: 54.5%"


def test_zero_successes_fail_the_run():
    verdict = judge_run(RunStatistics(processed=0, errors=2, skipped=3))

    assert verdict.failed
    assert verdict.reason == "All evaluations failed"


def test_nothing_attempted_is_a_success():
    stats = RunStatistics(total_items=4, skipped=4)

    assert stats.error_rate == 0.0
    assert judge_run(stats).failed is False


def test_threshold_is_configurable():
    stats = RunStatistics(processed=8, errors=2)

    assert judge_run(stats, max_error_rate=0.1).failed
    assert not judge_run(stats).failed


def test_as_dict_includes_error_rate():
    data = RunStatistics(total_items=3, processed=2, errors=1).as_dict()

    assert data["total_items"] == 3
    assert data["error_rate"] == pytest.approx(0.3333)
