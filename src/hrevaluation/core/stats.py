"""Per-run counters and the run-level verdict."""

from __future__ import annotations

from dataclasses import asdict, dataclass

DEFAULT_MAX_ERROR_RATE = 0.5


@dataclass(slots=True)
class RunStatistics:
    """Counters mutated by the batch driver during one run."""

    total_items: int = 0
    processed: int = 0
    skipped: int = 0
    incomplete: int = 0
    errors: int = 0
    rate_limit_errors: int = 0
    other_errors: int = 0
    requests: int = 0

    @property
    def attempted(self) -> int:
        return self.processed + self.errors

    @property
    def error_rate(self) -> float:
        if self.attempted == 0:
            return 0.0
        return self.errors / self.attempted

    def as_dict(self) -> dict[str, int | float]:
        data: dict[str, int | float] = asdict(self)
        data["error_rate"] = round(self.error_rate, 4)
        return data


@dataclass(frozen=True, slots=True)
class RunVerdict:
    failed: bool
    reason: str | None = None


def judge_run(stats: RunStatistics, max_error_rate: float = DEFAULT_MAX_ERROR_RATE) -> RunVerdict:
    """Decide whether a finished run counts as a hard failure."""
    if stats.processed == 0 and stats.errors > 0:
        return RunVerdict(True, "All evaluations failed")
    if stats.error_rate > max_error_rate:
        return RunVerdict(True, f"High error rate: {stats.error_rate * 100:.1f}%")
    return RunVerdict(False)
