"""Core evaluation pipeline components."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .driver import BatchDriver, ResultSink, ResumeMode, RunSummary
from .governor import PacingSettings, RateGovernor
from .retry import RetryController, RetryPolicy, RetryResult
from .stats import RunStatistics, RunVerdict, judge_run
from .text import AnswerSanitizer, clean_transcript, has_control_characters

__all__ = [
    "AnswerSanitizer",
    "BatchDriver",
    "PacingSettings",
    "RateGovernor",
    "ResultSink",
    "ResumeMode",
    "RetryController",
    "RetryPolicy",
    "RetryResult",
    "RunStatistics",
    "RunSummary",
    "RunVerdict",
    "clean_transcript",
    "has_control_characters",
    "judge_run",
]
