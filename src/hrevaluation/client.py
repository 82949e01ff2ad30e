"""HTTP client for the remote "evaluate one answer" endpoint."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Protocol, runtime_checkable
from urllib import error, request

import pendulum
import structlog
from pydantic import ValidationError

from .schemas import CURRENT_PROMPT_VERSION, EvaluationOutcome, EvaluationScores, WorkItem


class FailureKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"
    TRANSPORT_ERROR = "transport_error"
    HTTP_ERROR = "http_error"


@dataclass(slots=True)
class RateLimitInfo:
    """Quota hints returned alongside a 429 response."""

    limit: int | None = None
    remaining: int | None = None
    reset: int | None = None
    retry_after: float | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str] | None) -> "RateLimitInfo | None":
        if not headers:
            return None
        info = cls(
            limit=_int_header(headers, "x-ratelimit-limit"),
            remaining=_int_header(headers, "x-ratelimit-remaining"),
            reset=_int_header(headers, "x-ratelimit-reset"),
            retry_after=_float_header(headers, "retry-after"),
        )
        if info.limit is None and info.remaining is None and info.reset is None and info.retry_after is None:
            return None
        return info

    def reset_at(self) -> str | None:
        if self.reset is None:
            return None
        return pendulum.from_timestamp(self.reset).to_iso8601_string()


@dataclass(slots=True)
class EvaluationFailure:
    """Normalized failure of one evaluation call."""

    kind: FailureKind
    message: str
    status: int | None = None
    rate_limit: RateLimitInfo | None = None


EvaluationResult = EvaluationOutcome | EvaluationFailure


@runtime_checkable
class EvaluationClient(Protocol):
    """Contract for evaluating a single work item."""

    def evaluate(self, item: WorkItem, model_id: str) -> EvaluationResult:
        """Return an outcome on success, or a failure value; never raise for remote errors."""


class HTTPEvaluationClient:
    """POSTs one question/answer pair to the evaluation endpoint."""

    def __init__(
        self,
        endpoint: str,
        api_key: str | None = None,
        *,
        timeout: float = 60.0,
        opener: Callable[..., Any] | None = None,
    ):
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout = timeout
        self._open = opener or request.urlopen
        self._logger = structlog.get_logger(__name__)

    def evaluate(self, item: WorkItem, model_id: str) -> EvaluationResult:
        if not item.question_text or not item.answer_text:
            raise ValueError(f"Work item {item.answer_id} is missing question or answer text")

        payload = {
            "candidate_id": item.candidate_identifier,
            "interview_id": item.interview_id,
            "question": item.question_text,
            "answer": item.answer_text,
            "gpt_model": model_id,
        }
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        req = request.Request(self._endpoint, data=data, headers=headers, method="POST")

        try:
            with self._open(req, timeout=self._timeout) as resp:
                status = getattr(resp, "status", 200)
                body = resp.read()
        except error.HTTPError as exc:
            return self._http_failure(exc)
        except error.URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                return EvaluationFailure(FailureKind.TIMEOUT, f"request timed out after {self._timeout}s")
            return EvaluationFailure(FailureKind.TRANSPORT_ERROR, str(exc.reason))
        except TimeoutError:
            return EvaluationFailure(FailureKind.TIMEOUT, f"request timed out after {self._timeout}s")
        except OSError as exc:
            return EvaluationFailure(FailureKind.TRANSPORT_ERROR, str(exc))

        return self._parse_outcome(item, model_id, body, status)

    def _http_failure(self, exc: error.HTTPError) -> EvaluationFailure:
        message = _error_message(exc)
        if exc.code == 429:
            return EvaluationFailure(
                FailureKind.RATE_LIMITED,
                message,
                status=exc.code,
                rate_limit=RateLimitInfo.from_headers(exc.headers),
            )
        return EvaluationFailure(FailureKind.HTTP_ERROR, message, status=exc.code)

    def _parse_outcome(
        self,
        item: WorkItem,
        model_id: str,
        body: bytes,
        status: int,
    ) -> EvaluationResult:
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            return _malformed(f"invalid JSON body ({exc})", status)

        if not isinstance(payload, dict) or not isinstance(payload.get("evaluation"), dict):
            return _malformed("response has no 'evaluation' object", status)

        evaluation = payload["evaluation"]
        summary = evaluation.get("short_summary")
        if not isinstance(summary, str) or not summary.strip():
            return _malformed("evaluation has no 'short_summary'", status)
        try:
            scores = EvaluationScores.model_validate(evaluation)
        except ValidationError as exc:
            return _malformed(f"invalid scores: {exc.error_count()} error(s)", status)

        return EvaluationOutcome(
            answer_id=item.answer_id,
            scores=scores,
            summary=summary.strip(),
            model_used=str(payload.get("model_used") or model_id),
            prompt_version=str(payload.get("prompt_version") or CURRENT_PROMPT_VERSION),
            timestamp=pendulum.now("UTC"),
            raw=payload,
        )


def _malformed(message: str, status: int | None) -> EvaluationFailure:
    return EvaluationFailure(FailureKind.MALFORMED_RESPONSE, message, status=status)


def _error_message(exc: error.HTTPError) -> str:
    try:
        body = exc.read().decode("utf-8", errors="replace")
    except OSError:
        body = ""
    try:
        parsed = json.loads(body) if body else None
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        detail = parsed.get("message") or parsed.get("error")
        if detail:
            return f"HTTP {exc.code}: {detail}"
    return f"HTTP {exc.code}: {body[:200] or exc.reason}"


def _int_header(headers: Mapping[str, str], name: str) -> int | None:
    value = headers.get(name)
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


def _float_header(headers: Mapping[str, str], name: str) -> float | None:
    value = headers.get(name)
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None
