from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import create_engine, insert

from hrevaluation.storage import DatamartWorkSource, evaluation_results, interview_answers_datamart, metadata


def datamart_row(answer_id: str, interview_id: str, order: int, text: str | None) -> dict:
    return {
        "answer_id": answer_id,
        "interview_id": interview_id,
        "position_id": "P-1",
        "question_id": f"Q-{order}",
        "question_title": f"Question {order}",
        "question_description": None,
        "question_order": order,
        "transcription_text": text,
        "candidate_email": f"{interview_id.lower()}@example.com",
    }


@pytest.fixture
def source(tmp_path: Path) -> DatamartWorkSource:
    engine = create_engine(f"sqlite:///{tmp_path / 'health.db'}")
    metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(
            insert(interview_answers_datamart),
            [
                datamart_row("A-1", "I-1", 1, "A thorough answer about leading the platform migration end to end."),
                datamart_row("A-2", "I-1", 2, "ok"),
                datamart_row("A-3", "I-1", 3, "Line one of the answer\nline two of a long enough transcript here."),
                datamart_row("B-1", "I-2", 1, None),
                datamart_row("B-2", "I-2", 2, ""),
            ],
        )
        conn.execute(
            insert(evaluation_results),
            [{"answer_id": "A-2", "interview_id": "I-1", "question_id": "Q-2", "evaluation_addressing": 3}],
        )
    return DatamartWorkSource(engine)


def test_transcript_health_report(source: DatamartWorkSource):
    report = source.transcript_health()

    assert report.total_answers == 5
    assert report.null_transcripts == 1
    assert report.empty_transcripts == 1
    assert [sample.answer_id for sample in report.unevaluated] == ["A-1", "A-3", "B-2"]
    assert report.unevaluated[0].candidate_identifier == "i-1@example.com"
    assert [sample.answer_id for sample in report.short_transcripts] == ["B-2", "A-2"]
    assert report.short_transcripts[1].transcript == "ok"
    assert report.short_transcripts[1].transcript_length == 2
    assert [sample.answer_id for sample in report.control_characters] == ["A-3"]
    assert report.control_characters[0].transcript is None


def test_transcript_health_sample_size(source: DatamartWorkSource):
    report = source.transcript_health(sample_size=1)

    assert report.total_answers == 5
    assert len(report.unevaluated) == 1
    assert len(report.short_transcripts) == 1
    assert len(report.control_characters) == 1
