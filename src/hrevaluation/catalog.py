"""Known evaluation models served through GitHub Models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ModelInfo:
    model_id: str
    name: str
    provider: str
    context_window: int
    recommended: bool = False


DEFAULT_MODEL = "openai/gpt-4o-mini"

MODEL_CATALOG: dict[str, ModelInfo] = {
    info.model_id: info
    for info in (
        ModelInfo("openai/gpt-4o", "GPT-4o", "OpenAI", 128_000, recommended=True),
        ModelInfo("openai/gpt-4o-mini", "GPT-4o Mini", "OpenAI", 128_000, recommended=True),
        ModelInfo("google/gemini-1.5-pro", "Gemini 1.5 Pro", "Google", 1_000_000, recommended=True),
        ModelInfo("google/gemini-1.5-flash", "Gemini 1.5 Flash", "Google", 1_000_000, recommended=True),
        ModelInfo("claude-3-5-sonnet-latest", "Claude 3.5 Sonnet", "Anthropic", 200_000, recommended=True),
        ModelInfo("claude-3-haiku", "Claude 3 Haiku", "Anthropic", 200_000),
        ModelInfo("meta-llama/llama-3.1-405b-instruct", "Llama 3.1 405B", "Meta", 128_000, recommended=True),
        ModelInfo("meta-llama/llama-3.1-70b-instruct", "Llama 3.1 70B", "Meta", 128_000, recommended=True),
        ModelInfo("meta-llama/llama-3.1-8b-instruct", "Llama 3.1 8B", "Meta", 128_000),
        ModelInfo("mistral/mistral-large-2407", "Mistral Large", "Mistral AI", 128_000, recommended=True),
        ModelInfo("mistral/mistral-small-2409", "Mistral Small", "Mistral AI", 128_000),
        ModelInfo("cohere/command-r-plus", "Command R+", "Cohere", 128_000, recommended=True),
        ModelInfo("cohere/command-r", "Command R", "Cohere", 128_000),
    )
}


def is_known_model(model_id: str) -> bool:
    return model_id in MODEL_CATALOG


def recommended_models() -> list[ModelInfo]:
    return [info for info in MODEL_CATALOG.values() if info.recommended]


__all__ = [
    "DEFAULT_MODEL",
    "MODEL_CATALOG",
    "ModelInfo",
    "is_known_model",
    "recommended_models",
]
