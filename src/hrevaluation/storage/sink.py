"""Result sink combining the SQL upsert with file backups."""

from __future__ import annotations

from typing import Mapping

import structlog

from ..schemas import EvaluationOutcome
from .backup import BackupWriter
from .store import SqlResultStore


class StoreResultSink:
    """Persists outcomes; a failed backup never fails the upsert."""

    def __init__(self, store: SqlResultStore, backup: BackupWriter | None = None):
        self._store = store
        self._backup = backup
        self._logger = structlog.get_logger(__name__)

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
        self._store.upsert(answer_id, interview_id, question_id, outcome)
        if self._backup is None:
            return

        record = {
            **outcome.raw,
            **(dict(extra) if extra else {}),
            "answer_id": answer_id,
            "interview_id": interview_id,
            "question_id": question_id,
            "model_used": outcome.model_used,
            "prompt_version": outcome.prompt_version,
            "evaluated_at": outcome.timestamp,
            "question": question,
            "answer": answer,
        }
        try:
            path = self._backup.write(record, interview_id=interview_id, answer_id=answer_id)
        except (OSError, TypeError, ValueError) as exc:
            self._logger.warning("backup.write_failed", answer_id=answer_id, error=str(exc))
            return
        self._logger.info("backup.written", answer_id=answer_id, path=str(path))
