"""Pydantic schema definitions shared across the pipeline."""

from __future__ import annotations

from .work import (
    CURRENT_PROMPT_VERSION,
    EvaluationOutcome,
    EvaluationScores,
    EvaluationStats,
    ExistingEvaluation,
    WorkItem,
)
from .report import AnswerSample, BackupSummary, TranscriptHealth

__all__ = [
    "AnswerSample",
    "BackupSummary",
    "CURRENT_PROMPT_VERSION",
    "EvaluationOutcome",
    "EvaluationScores",
    "EvaluationStats",
    "ExistingEvaluation",
    "TranscriptHealth",
    "WorkItem",
]
