"""Table definitions for the interview datamart and evaluation results."""

from __future__ import annotations

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
)

from ..catalog import DEFAULT_MODEL
from ..schemas import CURRENT_PROMPT_VERSION

metadata = MetaData()

# Populated by the ATS sync; read-only from this package.
interview_answers_datamart = Table(
    "interview_answers_datamart",
    metadata,
    Column("answer_id", String(255), primary_key=True),
    Column("interview_id", String(255), nullable=False, index=True),
    Column("position_id", String(255), index=True),
    Column("question_id", String(255), nullable=False),
    Column("question_title", Text),
    Column("question_description", Text),
    Column("question_order", Integer),
    Column("transcription_text", Text),
    Column("candidate_email", String(255)),
    Column("candidate_first_name", String(255)),
    Column("candidate_last_name", String(255)),
)

evaluation_results = Table(
    "ai_evaluation_results",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("answer_id", String(255), nullable=False, unique=True),
    Column("interview_id", String(255), nullable=False, index=True),
    Column("question_id", String(255), nullable=False, index=True),
    Column("evaluation_addressing", Integer),
    Column("evaluation_be_specific", Integer),
    Column("evaluation_openness", Integer),
    Column("evaluation_summary", Text),
    Column("evaluation_timestamp", DateTime(timezone=True), server_default=func.now()),
    Column("gpt_model", String(100), server_default=DEFAULT_MODEL),
    Column("evaluation_prompt_version", String(20), server_default=CURRENT_PROMPT_VERSION),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now()),
)

# Columns replaced when an answer is evaluated again.
UPSERT_COLUMNS = (
    "evaluation_addressing",
    "evaluation_be_specific",
    "evaluation_openness",
    "evaluation_summary",
    "gpt_model",
    "evaluation_prompt_version",
    "evaluation_timestamp",
    "updated_at",
)
