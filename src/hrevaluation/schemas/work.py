"""Pydantic schemas for work items and evaluation results."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

CURRENT_PROMPT_VERSION = "1.0"


class WorkItem(BaseModel):
    """One question/answer pair awaiting evaluation."""

    answer_id: str
    interview_id: str
    question_id: str
    question_text: str | None = None
    answer_text: str | None = None
    candidate_identifier: str | None = None
    position_id: str | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_complete(self) -> bool:
        """True when both the question and the answer carry text."""
        return bool(
            self.question_text
            and self.question_text.strip()
            and self.answer_text
            and self.answer_text.strip()
        )

    @classmethod
    def from_datamart_row(cls, row: Mapping[str, Any]) -> "WorkItem":
        title = row.get("question_title")
        description = row.get("question_description")
        question_text = f"{title}: {description}" if title and description else title
        return cls(
            answer_id=str(row["answer_id"]),
            interview_id=str(row["interview_id"]),
            question_id=str(row["question_id"]),
            question_text=question_text,
            answer_text=row.get("transcription_text"),
            candidate_identifier=row.get("candidate_email"),
            position_id=_optional_str(row.get("position_id")),
        )


class EvaluationScores(BaseModel):
    """Three rubric scores on a 1-10 scale."""

    addressing: int = Field(ge=1, le=10)
    specificity: int = Field(ge=1, le=10, alias="be_specific")
    openness: int = Field(ge=1, le=10)

    model_config = ConfigDict(populate_by_name=True, extra="ignore", strict=True)


class EvaluationOutcome(BaseModel):
    """Successful evaluation of a single answer."""

    answer_id: str
    scores: EvaluationScores
    summary: str
    model_used: str
    prompt_version: str = CURRENT_PROMPT_VERSION
    timestamp: datetime
    raw: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class ExistingEvaluation(BaseModel):
    """Metadata of an evaluation already stored for an answer."""

    answer_id: str
    model_used: str | None = None
    prompt_version: str | None = None
    evaluated_at: datetime | None = None


class EvaluationStats(BaseModel):
    """Aggregate evaluation coverage for a scope."""

    total_answers: int = 0
    evaluated_answers: int = 0
    pending_answers: int = 0
    models_used: int = 0
    prompt_versions_used: int = 0


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)
