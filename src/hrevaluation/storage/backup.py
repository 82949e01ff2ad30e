"""Append-only JSON backups of raw evaluation results."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import pendulum

from ..schemas import BackupSummary


class BackupWriter:
    """Writes one timestamped JSON file per evaluation."""

    def __init__(self, directory: Path):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def write(self, record: dict[str, Any], *, interview_id: str, answer_id: str) -> Path:
        self._directory.mkdir(parents=True, exist_ok=True)
        millis = int(pendulum.now("UTC").timestamp() * 1000)
        path = self._directory / f"evaluation_{_safe(interview_id)}_{_safe(answer_id)}_{millis}.json"
        path.write_text(
            json.dumps(record, ensure_ascii=False, indent=2, default=_json_default),
            encoding="utf-8",
        )
        return path

    def summarize_recent(self, limit: int = 10) -> BackupSummary:
        """Count successful and failed evaluations in the newest backup files."""
        if not self._directory.is_dir():
            return BackupSummary()
        paths = sorted(
            self._directory.glob("*.json"),
            key=lambda path: (path.stat().st_mtime, path.name),
            reverse=True,
        )[:limit]

        summary = BackupSummary(files_analyzed=len(paths))
        for path in paths:
            try:
                record = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError):
                record = {"error": {"message": "Unreadable backup file"}}
            if not isinstance(record, dict):
                record = {}
            evaluation = record.get("evaluation")
            if isinstance(evaluation, dict) and evaluation.get("addressing"):
                summary.succeeded += 1
                continue
            summary.failed += 1
            error = record.get("error")
            message = error.get("message") if isinstance(error, dict) else None
            key = str(message or "Unknown error")
            summary.error_patterns[key] = summary.error_patterns.get(key, 0) + 1
        return summary


def _safe(value: str) -> str:
    return "".join(ch if ch.isalnum() or ch in "-_" else "-" for ch in str(value))


def _json_default(value):  # type: ignore[override]
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
