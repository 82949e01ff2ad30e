"""SQL-backed store for evaluation results."""

from __future__ import annotations

from typing import Any

import pendulum
import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine

from ..schemas import EvaluationOutcome, EvaluationStats, ExistingEvaluation
from .tables import UPSERT_COLUMNS, evaluation_results, interview_answers_datamart

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlResultStore:
    """Evaluation rows keyed by answer id, one row per answer."""

    def __init__(self, engine: Engine):
        self._engine = engine
        self._logger = structlog.get_logger(__name__)

    @property
    def engine(self) -> Engine:
        return self._engine

    def ensure_schema(self) -> None:
        evaluation_results.create(self._engine, checkfirst=True)
        self._logger.info("store.schema_ready", table=evaluation_results.name)

    def upsert(
        self,
        answer_id: str,
        interview_id: str,
        question_id: str,
        outcome: EvaluationOutcome,
    ) -> None:
        try:
            insert = _INSERT_BY_DIALECT[self._engine.dialect.name]
        except KeyError as exc:
            raise NotImplementedError(
                f"Upsert is not supported for dialect {self._engine.dialect.name!r}"
            ) from exc

        stmt = insert(evaluation_results).values(
            answer_id=answer_id,
            interview_id=interview_id,
            question_id=question_id,
            evaluation_addressing=outcome.scores.addressing,
            evaluation_be_specific=outcome.scores.specificity,
            evaluation_openness=outcome.scores.openness,
            evaluation_summary=outcome.summary,
            gpt_model=outcome.model_used,
            evaluation_prompt_version=outcome.prompt_version,
            evaluation_timestamp=outcome.timestamp,
            updated_at=pendulum.now("UTC"),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[evaluation_results.c.answer_id],
            set_={name: stmt.excluded[name] for name in UPSERT_COLUMNS},
        )
        with self._engine.begin() as conn:
            conn.execute(stmt)
        self._logger.info(
            "store.upserted",
            answer_id=answer_id,
            interview_id=interview_id,
            question_id=question_id,
        )

    def fetch(self, answer_id: str) -> dict[str, Any] | None:
        query = select(evaluation_results).where(evaluation_results.c.answer_id == answer_id)
        with self._engine.connect() as conn:
            row = conn.execute(query).mappings().first()
        return dict(row) if row else None

    def existing_index(
        self,
        *,
        interview_id: str | None = None,
        position_id: str | None = None,
    ) -> dict[str, ExistingEvaluation]:
        query = select(
            evaluation_results.c.answer_id,
            evaluation_results.c.gpt_model,
            evaluation_results.c.evaluation_prompt_version,
            evaluation_results.c.evaluation_timestamp,
        ).where(_scope_clause(interview_id, position_id))
        with self._engine.connect() as conn:
            rows = conn.execute(query).all()
        return {
            row.answer_id: ExistingEvaluation(
                answer_id=row.answer_id,
                model_used=row.gpt_model,
                prompt_version=row.evaluation_prompt_version,
                evaluated_at=row.evaluation_timestamp,
            )
            for row in rows
        }

    def clear_evaluations(
        self,
        *,
        interview_id: str | None = None,
        position_id: str | None = None,
    ) -> int:
        stmt = delete(evaluation_results).where(_scope_clause(interview_id, position_id))
        with self._engine.begin() as conn:
            removed = conn.execute(stmt).rowcount or 0
        self._logger.info(
            "store.cleared",
            interview_id=interview_id,
            position_id=position_id,
            removed=removed,
        )
        return removed

    def evaluation_stats(self, position_id: str | None = None) -> EvaluationStats:
        dm = interview_answers_datamart
        ev = evaluation_results
        query = select(
            func.count(dm.c.answer_id).label("total_answers"),
            func.count(ev.c.answer_id).label("evaluated_answers"),
            func.count(ev.c.gpt_model.distinct()).label("models_used"),
            func.count(ev.c.evaluation_prompt_version.distinct()).label("prompt_versions_used"),
        ).select_from(dm.outerjoin(ev, dm.c.answer_id == ev.c.answer_id))
        if position_id is not None:
            query = query.where(dm.c.position_id == position_id)

        with self._engine.connect() as conn:
            row = conn.execute(query).mappings().one()
        total = int(row["total_answers"] or 0)
        evaluated = int(row["evaluated_answers"] or 0)
        return EvaluationStats(
            total_answers=total,
            evaluated_answers=evaluated,
            pending_answers=total - evaluated,
            models_used=int(row["models_used"] or 0),
            prompt_versions_used=int(row["prompt_versions_used"] or 0),
        )


def _scope_clause(interview_id: str | None, position_id: str | None):
    if interview_id is not None:
        return evaluation_results.c.interview_id == interview_id
    if position_id is not None:
        answers_in_position = select(interview_answers_datamart.c.answer_id).where(
            interview_answers_datamart.c.position_id == position_id
        )
        return evaluation_results.c.answer_id.in_(answers_in_position)
    raise ValueError("Either interview_id or position_id must be provided")
