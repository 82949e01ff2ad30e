"""Pydantic schemas for the evaluation diagnostics report."""

from __future__ import annotations

from pydantic import BaseModel, Field


class AnswerSample(BaseModel):
    answer_id: str
    interview_id: str
    candidate_identifier: str | None = None
    question_text: str | None = None
    transcript: str | None = None
    transcript_length: int | None = None


class TranscriptHealth(BaseModel):
    """Transcript coverage and quality problems found in the datamart."""

    total_answers: int = 0
    null_transcripts: int = 0
    empty_transcripts: int = 0
    unevaluated: list[AnswerSample] = Field(default_factory=list)
    short_transcripts: list[AnswerSample] = Field(default_factory=list)
    control_characters: list[AnswerSample] = Field(default_factory=list)


class BackupSummary(BaseModel):
    """Outcome counts over the most recent backup files."""

    files_analyzed: int = 0
    succeeded: int = 0
    failed: int = 0
    error_patterns: dict[str, int] = Field(default_factory=dict)
