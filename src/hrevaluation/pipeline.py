"""Evaluation pipeline assembly and execution."""

from __future__ import annotations

import pendulum
import structlog

from . import __version__
from .catalog import is_known_model
from .core import AnswerSanitizer, BatchDriver, ResumeMode, RunSummary
from .errors import ConfigError
from .schemas import EvaluationStats, WorkItem
from .schemas.config import AppConfig
from .storage import DatamartWorkSource, SqlResultStore


def require_ready(config: AppConfig) -> None:
    """Raise ConfigError when the config cannot start a run."""
    problems = config.runtime_problems()
    if problems:
        raise ConfigError(problems)


class EvaluationPipeline:
    """Binds work source, result store and driver for one scope at a time."""

    def __init__(
        self,
        *,
        config: AppConfig,
        source: DatamartWorkSource,
        store: SqlResultStore,
        driver: BatchDriver,
        sanitizer: AnswerSanitizer | None = None,
    ) -> None:
        self._config = config
        self._source = source
        self._store = store
        self._driver = driver
        self._sanitizer = sanitizer or AnswerSanitizer()
        self._logger = structlog.get_logger(__name__)

    def run_for_interview(
        self,
        interview_id: str,
        *,
        model_id: str | None = None,
        mode: ResumeMode = ResumeMode.SKIP_EXISTING,
    ) -> RunSummary:
        model = self._prepare(model_id)
        scope = f"interview:{interview_id}"
        if mode is ResumeMode.FORCE_REDO:
            self._store.clear_evaluations(interview_id=interview_id)

        items = self._source.items_for_interview(interview_id)
        existing = self._store.existing_index(interview_id=interview_id)
        summary = self._driver.run(items, model_id=model, mode=mode, existing=existing, scope=scope)
        return self._finish(summary, interview_id=interview_id)

    def run_for_position(
        self,
        position_id: str,
        *,
        model_id: str | None = None,
        mode: ResumeMode = ResumeMode.SKIP_EXISTING,
    ) -> RunSummary:
        model = self._prepare(model_id)
        scope = f"position:{position_id}"
        if mode is ResumeMode.FORCE_REDO:
            self._store.clear_evaluations(position_id=position_id)

        items = self._source.items_for_position(position_id)
        existing = self._store.existing_index(position_id=position_id)
        summary = self._driver.run(items, model_id=model, mode=mode, existing=existing, scope=scope)
        return self._finish(
            summary,
            position_id=position_id,
            interviews=len({item.interview_id for item in items}),
            evaluation_stats=self._store.evaluation_stats(position_id),
        )

    def retry_failed(
        self,
        *,
        model_id: str | None = None,
        position_id: str | None = None,
        limit: int | None = None,
    ) -> RunSummary:
        """Evaluate every answer that has a transcript but no stored result."""
        model = self._prepare(model_id)
        scope = f"retry-failed:{position_id}" if position_id else "retry-failed"
        items: list[WorkItem] = self._source.unevaluated_items(position_id=position_id, limit=limit)
        summary = self._driver.run(
            items,
            model_id=model,
            mode=ResumeMode.SKIP_EXISTING,
            existing={},
            sanitizer=self._sanitizer,
            scope=scope,
        )
        return self._finish(summary, position_id=position_id, limit=limit)

    def evaluation_stats(self, position_id: str | None = None) -> EvaluationStats:
        return self._store.evaluation_stats(position_id)

    def _prepare(self, model_id: str | None) -> str:
        require_ready(self._config)
        self._store.ensure_schema()
        model = model_id or self._config.evaluation.model_id
        if not is_known_model(model):
            self._logger.warning("pipeline.unknown_model", model_id=model)
        return model

    def _finish(self, summary: RunSummary, **metadata: object) -> RunSummary:
        summary.metadata.update(
            {key: value for key, value in metadata.items() if value is not None},
        )
        summary.metadata["app_version"] = __version__
        summary.metadata["timestamp"] = pendulum.now("UTC").to_iso8601_string()
        stats = summary.metadata.get("evaluation_stats")
        if isinstance(stats, EvaluationStats):
            self._logger.info("pipeline.evaluation_stats", scope=summary.scope, **stats.model_dump())
        return summary
