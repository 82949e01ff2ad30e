from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from hrevaluation.schemas import EvaluationOutcome, EvaluationScores
from hrevaluation.storage import BackupWriter, StoreResultSink


class RecordingStore:
    def __init__(self) -> None:
        self.rows: list[tuple] = []

    def upsert(self, answer_id, interview_id, question_id, outcome) -> None:
        self.rows.append((answer_id, interview_id, question_id, outcome.summary))


class BrokenBackup:
    def write(self, record, *, interview_id, answer_id):
        raise OSError("disk full")


def make_outcome() -> EvaluationOutcome:
    raw = {
        "evaluation": {"addressing": 6, "be_specific": 5, "openness": 7, "short_summary": "Thoughtful"},
        "model_used": "openai/gpt-4o-mini",
        "prompt_version": "1.0",
    }
    return EvaluationOutcome(
        answer_id="A-1",
        scores=EvaluationScores.model_validate(raw["evaluation"]),
        summary="Thoughtful",
        model_used="openai/gpt-4o-mini",
        timestamp=datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc),
        raw=raw,
    )


def test_upsert_writes_backup(tmp_path: Path):
    store = RecordingStore()
    sink = StoreResultSink(store, BackupWriter(tmp_path / "backups"))

    sink.upsert(
        "A-1",
        "I-1",
        "Q-1",
        make_outcome(),
        question="Why us?",
        answer="Because of the mission.",
        extra={"position_id": "P-1"},
    )

    assert store.rows == [("A-1", "I-1", "Q-1", "Thoughtful")]
    files = list((tmp_path / "backups").glob("evaluation_I-1_A-1_*.json"))
    assert len(files) == 1
    record = json.loads(files[0].read_text(encoding="utf-8"))
    assert record["evaluation"]["be_specific"] == 5
    assert record["question"] == "Why us?"
    assert record["answer"] == "Because of the mission."
    assert record["position_id"] == "P-1"
    assert record["evaluated_at"].startswith("2024-05-01T09:30:00")


def test_backup_failure_is_swallowed():
    store = RecordingStore()
    sink = StoreResultSink(store, BrokenBackup())

    sink.upsert("A-1", "I-1", "Q-1", make_outcome())

    assert len(store.rows) == 1


def test_sink_without_backup():
    store = RecordingStore()

    StoreResultSink(store).upsert("A-1", "I-1", "Q-1", make_outcome())

    assert len(store.rows) == 1


def test_backup_file_names_are_safe(tmp_path: Path):
    path = BackupWriter(tmp_path).write({"ok": True}, interview_id="int/1", answer_id="a 1")

    assert path.parent == tmp_path
    assert path.name.startswith("evaluation_int-1_a-1_")
