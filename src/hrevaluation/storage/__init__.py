"""Persistence for work items, evaluation results and backups."""

from __future__ import annotations

from .backup import BackupWriter
from .sink import StoreResultSink
from .source import DatamartWorkSource
from .store import SqlResultStore
from .tables import evaluation_results, interview_answers_datamart, metadata

__all__ = [
    "BackupWriter",
    "DatamartWorkSource",
    "SqlResultStore",
    "StoreResultSink",
    "evaluation_results",
    "interview_answers_datamart",
    "metadata",
]
