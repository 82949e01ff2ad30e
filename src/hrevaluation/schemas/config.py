"""Pydantic configuration schema for YAML and environment input."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..catalog import DEFAULT_MODEL


class EvaluationEndpointConfig(BaseModel):
    endpoint_url: str | None = None
    api_key: str | None = None
    model_id: str = DEFAULT_MODEL
    timeout_seconds: float = Field(default=60.0, gt=0)


class RetryConfig(BaseModel):
    max_attempts: int = Field(default=3, ge=1)
    base_delay_seconds: float = Field(default=5.0, ge=0)
    cap_delay_seconds: float = Field(default=30.0, ge=0)
    retry_timeouts: bool = False


class PacingConfig(BaseModel):
    base_delay_ms: int = Field(default=3000, ge=0)
    max_delay_ms: int = Field(default=30000, ge=0)
    growth_factor: float = Field(default=1.5, ge=1.0)
    window_seconds: float = Field(default=60.0, gt=0)


class AppConfig(BaseModel):
    evaluation: EvaluationEndpointConfig = Field(default_factory=EvaluationEndpointConfig)
    database_url: str | None = None
    retry: RetryConfig = Field(default_factory=RetryConfig)
    pacing: PacingConfig = Field(default_factory=PacingConfig)
    backup_dir: Path = Path("evaluation-results")
    max_error_rate: float = Field(default=0.5, ge=0.0, le=1.0)

    def runtime_problems(self) -> list[str]:
        """Return the reasons this config cannot start a run, if any."""
        problems: list[str] = []
        url = self.evaluation.endpoint_url
        if not url:
            problems.append("evaluation endpoint URL is not set (CLOUD_FUNCTION_URL)")
        elif not url.startswith(("http://", "https://")):
            problems.append("evaluation endpoint URL must start with http:// or https://")
        if not self.database_url:
            problems.append("database URL is not set (DATABASE_URL)")
        return problems


# Environment variable -> dotted config path.
ENV_OVERRIDES: dict[str, tuple[str, ...]] = {
    "CLOUD_FUNCTION_URL": ("evaluation", "endpoint_url"),
    "EVALUATION_API_KEY": ("evaluation", "api_key"),
    "EVALUATION_MODEL": ("evaluation", "model_id"),
    "DATABASE_URL": ("database_url",),
    "RATE_LIMIT_DELAY": ("pacing", "base_delay_ms"),
}


def apply_env_overrides(raw: dict[str, Any], environ: dict[str, str]) -> dict[str, Any]:
    merged = {key: (dict(value) if isinstance(value, dict) else value) for key, value in raw.items()}
    for env_name, path in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if not value:
            continue
        target = merged
        for part in path[:-1]:
            target = target.setdefault(part, {})
        target[path[-1]] = value
    return merged


def load_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
