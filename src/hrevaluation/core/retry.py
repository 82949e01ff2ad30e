"""Retry policy and backoff controller for evaluation calls.

Only rate-limited calls are retried by default. Every other failure is
terminal for the item within the current run; the item stays pending in the
datastore for a later run.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

import structlog

from ..client import EvaluationClient, EvaluationFailure, FailureKind
from ..schemas import EvaluationOutcome, WorkItem
from .governor import RateGovernor
from .stats import RunStatistics


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded exponential backoff parameters."""

    max_attempts: int = 3
    base_delay: float = 5.0
    cap_delay: float = 30.0
    retryable: frozenset[FailureKind] = field(
        default_factory=lambda: frozenset({FailureKind.RATE_LIMITED})
    )

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def from_settings(
        cls,
        *,
        max_attempts: int = 3,
        base_delay: float = 5.0,
        cap_delay: float = 30.0,
        retry_timeouts: bool = False,
    ) -> "RetryPolicy":
        kinds = {FailureKind.RATE_LIMITED}
        if retry_timeouts:
            kinds.add(FailureKind.TIMEOUT)
        return cls(
            max_attempts=max_attempts,
            base_delay=base_delay,
            cap_delay=cap_delay,
            retryable=frozenset(kinds),
        )

    def is_retryable(self, kind: FailureKind) -> bool:
        return kind in self.retryable

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given 1-based attempt failed."""
        return min(self.cap_delay, self.base_delay * 2 ** (attempt - 1))

    def should_retry(self, kind: FailureKind, attempt: int) -> bool:
        return attempt < self.max_attempts and self.is_retryable(kind)


@dataclass(slots=True)
class RetryResult:
    """Result of evaluating one item under a retry policy."""

    outcome: EvaluationOutcome | None
    attempts: int
    last_failure: EvaluationFailure | None = None
    exhausted: bool = False

    @property
    def succeeded(self) -> bool:
        return self.outcome is not None


class RetryController:
    """Wraps an evaluation client with the retry policy for one run."""

    def __init__(
        self,
        client: EvaluationClient,
        policy: RetryPolicy | None = None,
        *,
        governor: RateGovernor | None = None,
        stats: RunStatistics | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._client = client
        self._policy = policy or RetryPolicy()
        self._governor = governor
        self._stats = stats
        self._sleep = sleep
        self._logger = structlog.get_logger(__name__)

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def with_retry(self, item: WorkItem, model_id: str) -> RetryResult:
        last_failure: EvaluationFailure | None = None
        attempt = 0

        for attempt in range(1, self._policy.max_attempts + 1):
            result = self._call(item, model_id)
            if isinstance(result, EvaluationOutcome):
                return RetryResult(outcome=result, attempts=attempt)

            last_failure = result
            self._record_failure(item, result, attempt)

            if not self._policy.is_retryable(result.kind):
                return RetryResult(outcome=None, attempts=attempt, last_failure=result)

            if self._policy.should_retry(result.kind, attempt):
                delay = self._policy.delay_for(attempt)
                self._logger.info(
                    "evaluation.retry_scheduled",
                    answer_id=item.answer_id,
                    delay_seconds=delay,
                    next_attempt=attempt + 1,
                    max_attempts=self._policy.max_attempts,
                )
                self._sleep(delay)

        self._logger.error(
            "evaluation.retries_exhausted",
            answer_id=item.answer_id,
            attempts=attempt,
            kind=last_failure.kind.value if last_failure else None,
        )
        return RetryResult(outcome=None, attempts=attempt, last_failure=last_failure, exhausted=True)

    def _call(self, item: WorkItem, model_id: str):
        if self._governor is not None:
            self._governor.record_request()
        if self._stats is not None:
            self._stats.requests += 1
        self._logger.info(
            "evaluation.request",
            answer_id=item.answer_id,
            interview_id=item.interview_id,
            model_id=model_id,
            requests_total=self._stats.requests if self._stats else None,
            requests_last_minute=(
                self._governor.requests_in_last_minute() if self._governor else None
            ),
        )
        return self._client.evaluate(item, model_id)

    def _record_failure(self, item: WorkItem, failure: EvaluationFailure, attempt: int) -> None:
        if self._stats is not None:
            if failure.kind is FailureKind.RATE_LIMITED:
                self._stats.rate_limit_errors += 1
            else:
                self._stats.other_errors += 1

        context = {
            "answer_id": item.answer_id,
            "interview_id": item.interview_id,
            "attempt": attempt,
            "kind": failure.kind.value,
            "status": failure.status,
            "error": failure.message,
        }
        if failure.rate_limit is not None:
            context.update(
                rate_limit_limit=failure.rate_limit.limit,
                rate_limit_remaining=failure.rate_limit.remaining,
                rate_limit_reset=failure.rate_limit.reset_at(),
            )
        if failure.kind is FailureKind.RATE_LIMITED:
            self._logger.warning("evaluation.rate_limited", **context)
        else:
            self._logger.error("evaluation.failed", **context)
