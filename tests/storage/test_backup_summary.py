from __future__ import annotations

import json
from pathlib import Path

from hrevaluation.storage import BackupWriter


def test_summarize_recent_counts_outcomes(tmp_path: Path):
    writer = BackupWriter(tmp_path)
    writer.write(
        {"evaluation": {"addressing": 7, "be_specific": 6, "openness": 8, "short_summary": "Good"}},
        interview_id="I-1",
        answer_id="A-1",
    )
    for name in ("failed_1.json", "failed_2.json"):
        (tmp_path / name).write_text(json.dumps({"error": {"message": "HTTP 500: boom"}}), encoding="utf-8")
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    summary = writer.summarize_recent()

    assert summary.files_analyzed == 4
    assert summary.succeeded == 1
    assert summary.failed == 3
    assert summary.error_patterns == {"HTTP 500: boom": 2, "Unreadable backup file": 1}


def test_summarize_recent_respects_limit(tmp_path: Path):
    writer = BackupWriter(tmp_path)
    for index in range(3):
        (tmp_path / f"evaluation_I-1_A-{index}_0.json").write_text(json.dumps({"result": index}), encoding="utf-8")

    summary = writer.summarize_recent(limit=2)

    assert summary.files_analyzed == 2
    assert summary.failed == 2
    assert summary.error_patterns == {"Unknown error": 2}


def test_summarize_missing_directory(tmp_path: Path):
    summary = BackupWriter(tmp_path / "missing").summarize_recent()

    assert summary.files_analyzed == 0
    assert summary.error_patterns == {}
