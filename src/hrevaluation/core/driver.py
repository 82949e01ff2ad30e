"""Sequential batch driver for one evaluation run."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping, Protocol, Sequence

import pendulum
import structlog

from ..client import EvaluationClient
from ..schemas import EvaluationOutcome, ExistingEvaluation, WorkItem
from .governor import PacingSettings, RateGovernor
from .retry import RetryController, RetryPolicy
from .stats import DEFAULT_MAX_ERROR_RATE, RunStatistics, RunVerdict, judge_run
from .text import AnswerSanitizer


class ResumeMode(str, Enum):
    SKIP_EXISTING = "skip_existing"
    FORCE_REDO = "force_redo"


class ResultSink(Protocol):
    """Destination for successful evaluations."""

    def upsert(
        self,
        answer_id: str,
        interview_id: str,
        question_id: str,
        outcome: EvaluationOutcome,
        *,
        question: str | None = None,
        answer: str | None = None,
        extra: Mapping[str, object] | None = None,
    ) -> None:
        """Persist the outcome, replacing any earlier one for the same answer."""


@dataclass(slots=True)
class RunSummary:
    """Everything a caller needs to report on a finished run."""

    scope: str
    model_id: str
    mode: ResumeMode
    stats: RunStatistics
    verdict: RunVerdict
    final_delay_ms: int
    requests_last_minute: int
    started_at: pendulum.DateTime
    finished_at: pendulum.DateTime
    metadata: dict[str, object] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.verdict.failed

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


class BatchDriver:
    """Evaluates work items one at a time, in source order."""

    def __init__(
        self,
        client: EvaluationClient,
        sink: ResultSink,
        *,
        policy: RetryPolicy | None = None,
        pacing: PacingSettings | None = None,
        max_error_rate: float = DEFAULT_MAX_ERROR_RATE,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._sink = sink
        self._policy = policy or RetryPolicy()
        self._pacing = pacing or PacingSettings()
        self._max_error_rate = max_error_rate
        self._sleep = sleep
        self._clock = clock
        self._logger = structlog.get_logger(__name__)

    def run(
        self,
        items: Sequence[WorkItem],
        *,
        model_id: str,
        mode: ResumeMode = ResumeMode.SKIP_EXISTING,
        existing: Mapping[str, ExistingEvaluation] | None = None,
        sanitizer: AnswerSanitizer | None = None,
        scope: str = "",
    ) -> RunSummary:
        started_at = pendulum.now("UTC")
        stats = RunStatistics(total_items=len(items))
        governor = RateGovernor(self._pacing, clock=self._clock)
        controller = RetryController(
            self._client,
            self._policy,
            governor=governor,
            stats=stats,
            sleep=self._sleep,
        )
        index = {} if mode is ResumeMode.FORCE_REDO else dict(existing or {})
        delay_ms = governor.baseline_delay
        pending_delay = False

        self._logger.info(
            "run.started",
            scope=scope,
            model_id=model_id,
            mode=mode.value,
            total_items=len(items),
            already_evaluated=sum(1 for item in items if item.answer_id in index),
            base_delay_ms=delay_ms,
        )

        for position, item in enumerate(items, start=1):
            if item.answer_id in index:
                stats.skipped += 1
                self._logger.info(
                    "item.skipped_existing",
                    answer_id=item.answer_id,
                    evaluated_at=_iso(index[item.answer_id].evaluated_at),
                )
                continue

            prepared = self._prepare(item, sanitizer)
            if prepared is None:
                stats.skipped += 1
                stats.incomplete += 1
                self._logger.warning(
                    "item.skipped_incomplete",
                    answer_id=item.answer_id,
                    question_id=item.question_id,
                )
                continue

            if pending_delay:
                delay_ms = governor.next_delay(delay_ms, stats.rate_limit_errors > 0)
                self._logger.info(
                    "run.pacing",
                    delay_ms=delay_ms,
                    rate_limit_errors=stats.rate_limit_errors,
                )
                self._sleep(delay_ms / 1000)

            self._logger.info(
                "item.evaluating",
                answer_id=prepared.answer_id,
                question_id=prepared.question_id,
                progress=f"{position}/{len(items)}",
            )
            result = controller.with_retry(prepared, model_id)
            pending_delay = True

            if result.outcome is not None:
                self._sink.upsert(
                    prepared.answer_id,
                    prepared.interview_id,
                    prepared.question_id,
                    result.outcome,
                    question=prepared.question_text,
                    answer=prepared.answer_text,
                    extra={"position_id": prepared.position_id} if prepared.position_id else None,
                )
                stats.processed += 1
                self._logger.info(
                    "item.evaluated",
                    answer_id=prepared.answer_id,
                    attempts=result.attempts,
                    addressing=result.outcome.scores.addressing,
                    specificity=result.outcome.scores.specificity,
                    openness=result.outcome.scores.openness,
                )
            else:
                stats.errors += 1
                self._logger.error(
                    "item.failed",
                    answer_id=prepared.answer_id,
                    attempts=result.attempts,
                    exhausted=result.exhausted,
                    kind=result.last_failure.kind.value if result.last_failure else None,
                )

        verdict = judge_run(stats, self._max_error_rate)
        summary = RunSummary(
            scope=scope,
            model_id=model_id,
            mode=mode,
            stats=stats,
            verdict=verdict,
            final_delay_ms=delay_ms,
            requests_last_minute=governor.requests_in_last_minute(),
            started_at=started_at,
            finished_at=pendulum.now("UTC"),
        )
        log = self._logger.error if verdict.failed else self._logger.info
        log(
            "run.summary",
            scope=scope,
            failed=verdict.failed,
            reason=verdict.reason,
            requests_last_minute=summary.requests_last_minute,
            **stats.as_dict(),
        )
        return summary

    @staticmethod
    def _prepare(item: WorkItem, sanitizer: AnswerSanitizer | None) -> WorkItem | None:
        if not item.is_complete:
            return None
        if sanitizer is None:
            return item
        return sanitizer.prepare(item)


def _iso(value) -> str | None:
    if value is None:
        return None
    return value.isoformat()
