"""Transcript cleanup applied before re-submitting failed answers."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..schemas import WorkItem

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")

TRUNCATION_MARKER = "... [truncated]"


def has_control_characters(text: str | None) -> bool:
    return bool(text) and _CONTROL_CHARS.search(text) is not None


def clean_transcript(text: str | None) -> str:
    if not text:
        return ""
    cleaned = _CONTROL_CHARS.sub(" ", text)
    return _WHITESPACE.sub(" ", cleaned).strip()


@dataclass(frozen=True, slots=True)
class AnswerSanitizer:
    """Cleans answer text, rejecting answers too short to evaluate."""

    min_length: int = 20
    max_length: int = 4000

    def prepare(self, item: WorkItem) -> WorkItem | None:
        """Return a cleaned copy of the item, or None when the answer is too short."""
        cleaned = clean_transcript(item.answer_text)
        if len(cleaned) < self.min_length:
            return None
        if len(cleaned) > self.max_length:
            cleaned = cleaned[: self.max_length] + TRUNCATION_MARKER
        return item.model_copy(update={"answer_text": cleaned})
