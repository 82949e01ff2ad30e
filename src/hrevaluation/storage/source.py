"""Work items read from the interview answers datamart."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import case, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import WorkSourceError
from ..core.text import has_control_characters
from ..schemas import AnswerSample, TranscriptHealth, WorkItem
from .tables import evaluation_results, interview_answers_datamart

_dm = interview_answers_datamart


class DatamartWorkSource:
    """Loads question/answer pairs in stable source order."""

    def __init__(self, engine: Engine):
        self._engine = engine
        self._logger = structlog.get_logger(__name__)

    def items_for_interview(self, interview_id: str) -> list[WorkItem]:
        query = (
            select(_dm)
            .where(_dm.c.interview_id == interview_id)
            .order_by(_dm.c.question_order, _dm.c.answer_id)
        )
        return self._load(query, interview_id=interview_id)

    def interviews_for_position(self, position_id: str) -> list[dict[str, Any]]:
        # One row per interview even when candidate columns disagree across its answers.
        query = (
            select(
                _dm.c.interview_id,
                func.max(_dm.c.candidate_email).label("candidate_email"),
                func.max(_dm.c.candidate_first_name).label("candidate_first_name"),
                func.max(_dm.c.candidate_last_name).label("candidate_last_name"),
            )
            .where(_dm.c.position_id == position_id)
            .group_by(_dm.c.interview_id)
            .order_by(_dm.c.interview_id)
        )
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(query).mappings().all()
        except SQLAlchemyError as exc:
            raise WorkSourceError(f"Failed to list interviews for position {position_id}") from exc
        return [dict(row) for row in rows]

    def items_for_position(self, position_id: str) -> list[WorkItem]:
        items: list[WorkItem] = []
        for interview in self.interviews_for_position(position_id):
            self._logger.info(
                "source.interview",
                position_id=position_id,
                interview_id=interview["interview_id"],
                candidate_email=interview["candidate_email"],
            )
            items.extend(self.items_for_interview(interview["interview_id"]))
        return items

    def unevaluated_items(
        self,
        *,
        position_id: str | None = None,
        limit: int | None = None,
    ) -> list[WorkItem]:
        """Answers with a transcript and no stored evaluation."""
        query = (
            select(_dm)
            .select_from(
                _dm.outerjoin(evaluation_results, _dm.c.answer_id == evaluation_results.c.answer_id)
            )
            .where(evaluation_results.c.answer_id.is_(None))
            .where(_dm.c.transcription_text.is_not(None))
            .order_by(_dm.c.interview_id, _dm.c.question_order, _dm.c.answer_id)
        )
        if position_id is not None:
            query = query.where(_dm.c.position_id == position_id)
        if limit is not None:
            query = query.limit(limit)
        return self._load(query, position_id=position_id)

    def transcript_health(
        self,
        *,
        sample_size: int = 20,
        short_threshold: int = 50,
    ) -> TranscriptHealth:
        """Coverage and quality report over every transcript in the datamart."""
        length = func.length(_dm.c.transcription_text)
        counts = select(
            func.count().label("total"),
            func.sum(case((_dm.c.transcription_text.is_(None), 1), else_=0)).label("nulls"),
            func.sum(case((_dm.c.transcription_text == "", 1), else_=0)).label("empties"),
        ).select_from(_dm)
        short = (
            select(_dm)
            .where(_dm.c.transcription_text.is_not(None))
            .where(length < short_threshold)
            .order_by(length, _dm.c.answer_id)
            .limit(sample_size)
        )
        with_text = (
            select(_dm)
            .where(_dm.c.transcription_text.is_not(None))
            .order_by(_dm.c.interview_id, _dm.c.question_order, _dm.c.answer_id)
        )

        try:
            with self._engine.connect() as conn:
                totals = conn.execute(counts).mappings().one()
                short_rows = conn.execute(short).mappings().all()
                flagged = []
                for row in conn.execute(with_text).mappings():
                    if has_control_characters(row["transcription_text"]):
                        flagged.append(row)
                        if len(flagged) >= sample_size:
                            break
        except SQLAlchemyError as exc:
            raise WorkSourceError("Failed to analyze transcripts") from exc

        unevaluated = self.unevaluated_items(limit=sample_size)
        report = TranscriptHealth(
            total_answers=int(totals["total"] or 0),
            null_transcripts=int(totals["nulls"] or 0),
            empty_transcripts=int(totals["empties"] or 0),
            unevaluated=[_sample(item) for item in unevaluated],
            short_transcripts=[_sample(WorkItem.from_datamart_row(row), keep_text=True) for row in short_rows],
            control_characters=[_sample(WorkItem.from_datamart_row(row)) for row in flagged],
        )
        self._logger.info(
            "source.transcript_health",
            total_answers=report.total_answers,
            unevaluated=len(report.unevaluated),
            short_transcripts=len(report.short_transcripts),
            control_characters=len(report.control_characters),
        )
        return report

    def _load(self, query, **context: Any) -> list[WorkItem]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(query).mappings().all()
        except SQLAlchemyError as exc:
            raise WorkSourceError(f"Failed to load work items ({context})") from exc
        items = [WorkItem.from_datamart_row(row) for row in rows]
        self._logger.info("source.loaded", count=len(items), **context)
        return items


def _sample(item: WorkItem, *, keep_text: bool = False) -> AnswerSample:
    return AnswerSample(
        answer_id=item.answer_id,
        interview_id=item.interview_id,
        candidate_identifier=item.candidate_identifier,
        question_text=item.question_text,
        transcript=item.answer_text if keep_text else None,
        transcript_length=len(item.answer_text) if item.answer_text is not None else None,
    )
