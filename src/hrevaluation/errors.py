"""Exception types raised by the evaluation pipeline."""

from __future__ import annotations


class EvaluationError(Exception):
    """Base class for pipeline errors that abort a run."""


class ConfigError(EvaluationError):
    """Raised when required runtime configuration is missing or invalid."""

    def __init__(self, problems: list[str]):
        super().__init__("Invalid configuration")
        self.problems = problems

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Invalid configuration: {'; '.join(self.problems)}"


class WorkSourceError(EvaluationError):
    """Raised when work items cannot be loaded from the datamart."""


__all__ = ["EvaluationError", "ConfigError", "WorkSourceError"]
