from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine, insert

from hrevaluation.errors import WorkSourceError
from hrevaluation.storage import DatamartWorkSource, evaluation_results, interview_answers_datamart, metadata

ROWS = [
    {
        "answer_id": "A-2",
        "interview_id": "I-1",
        "position_id": "P-1",
        "question_id": "Q-2",
        "question_title": "Teamwork",
        "question_description": "Describe a time you disagreed with a teammate",
        "question_order": 2,
        "transcription_text": "We paired on the design and settled it with data.",
        "candidate_email": "jane@example.com",
    },
    {
        "answer_id": "A-1",
        "interview_id": "I-1",
        "position_id": "P-1",
        "question_id": "Q-1",
        "question_title": "Introduce yourself",
        "question_description": None,
        "question_order": 1,
        "transcription_text": "I am a backend engineer with six years of experience.",
        "candidate_email": "jane@example.com",
    },
    {
        "answer_id": "B-1",
        "interview_id": "I-2",
        "position_id": "P-1",
        "question_id": "Q-1",
        "question_title": "Introduce yourself",
        "question_order": 1,
        "transcription_text": None,
        "candidate_email": "li@example.com",
    },
    {
        "answer_id": "C-1",
        "interview_id": "I-3",
        "position_id": "P-2",
        "question_id": "Q-1",
        "question_title": "Introduce yourself",
        "question_order": 1,
        "transcription_text": "Data analyst, mostly SQL and Python.",
        "candidate_email": "sam@example.com",
    },
]


@pytest.fixture
def source(tmp_path: Path) -> DatamartWorkSource:
    engine = create_engine(f"sqlite:///{tmp_path / 'datamart.db'}")
    metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(insert(interview_answers_datamart), [{**{"question_description": None}, **row} for row in ROWS])
        conn.execute(
            insert(evaluation_results),
            [
                {
                    "answer_id": "A-2",
                    "interview_id": "I-1",
                    "question_id": "Q-2",
                    "evaluation_addressing": 7,
                    "evaluation_timestamp": datetime(2024, 5, 1, tzinfo=timezone.utc),
                }
            ],
        )
    return DatamartWorkSource(engine)


def test_items_for_interview_follow_question_order(source: DatamartWorkSource):
    items = source.items_for_interview("I-1")

    assert [item.answer_id for item in items] == ["A-1", "A-2"]
    assert items[0].question_text == "Introduce yourself"
    assert items[1].question_text == "Teamwork: Describe a time you disagreed with a teammate"
    assert items[1].candidate_identifier == "jane@example.com"
    assert items[1].position_id == "P-1"


def test_unknown_interview_is_empty(source: DatamartWorkSource):
    assert source.items_for_interview("missing") == []


def test_items_for_position_span_interviews(source: DatamartWorkSource):
    interviews = source.interviews_for_position("P-1")
    items = source.items_for_position("P-1")

    assert [row["interview_id"] for row in interviews] == ["I-1", "I-2"]
    assert [item.answer_id for item in items] == ["A-1", "A-2", "B-1"]
    assert items[2].is_complete is False


def test_unevaluated_items(source: DatamartWorkSource):
    everything = source.unevaluated_items()
    in_position = source.unevaluated_items(position_id="P-1")
    limited = source.unevaluated_items(limit=1)

    assert [item.answer_id for item in everything] == ["A-1", "C-1"]
    assert [item.answer_id for item in in_position] == ["A-1"]
    assert [item.answer_id for item in limited] == ["A-1"]


def test_missing_tables_raise_work_source_error(tmp_path: Path):
    source = DatamartWorkSource(create_engine(f"sqlite:///{tmp_path / 'empty.db'}"))

    with pytest.raises(WorkSourceError):
        source.items_for_interview("I-1")
    with pytest.raises(WorkSourceError):
        source.interviews_for_position("P-1")


def test_interview_listed_once_when_candidate_columns_differ(tmp_path: Path):
    engine = create_engine(f"sqlite:///{tmp_path / 'mismatch.db'}")
    metadata.create_all(engine)
    base = {
        "interview_id": "I-1",
        "position_id": "P-1",
        "question_title": "Introduce yourself",
        "question_description": None,
        "transcription_text": "I have run platform teams for a while now.",
        "candidate_email": "jane@example.com",
        "candidate_first_name": "Jane",
    }
    with engine.begin() as conn:
        conn.execute(
            insert(interview_answers_datamart),
            [
                {**base, "answer_id": "A-1", "question_id": "Q-1", "question_order": 1, "candidate_last_name": "Doe"},
                {**base, "answer_id": "A-2", "question_id": "Q-2", "question_order": 2, "candidate_last_name": None},
            ],
        )
    source = DatamartWorkSource(engine)

    interviews = source.interviews_for_position("P-1")
    items = source.items_for_position("P-1")

    assert [row["interview_id"] for row in interviews] == ["I-1"]
    assert interviews[0]["candidate_last_name"] == "Doe"
    assert [item.answer_id for item in items] == ["A-1", "A-2"]
