"""Configuration management utilities."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..schemas.config import AppConfig, apply_env_overrides, load_config


def read_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML mapping from the given path."""
    with Path(path).open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file must be a YAML object: {path}")
    return loaded


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Build the application config from an optional YAML file and the environment.

    Environment variables take precedence over values in the file.
    """
    raw = read_yaml(Path(path)) if path else {}
    env = dict(os.environ if environ is None else environ)
    return load_config(apply_env_overrides(raw, env))


__all__ = ["load_settings", "read_yaml"]
