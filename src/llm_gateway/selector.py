"""Cheapest usable provider/model choice for auxiliary tasks."""

from __future__ import annotations

from typing import NamedTuple

from llm_gateway.models.catalog import Provider

# Curated low-cost model per provider
CHEAPEST_MODELS: dict[str, str] = {
    "openai": "gpt-5-nano",
    "google": "gemini-2.5-flash-lite",
    "poe": "GPT-OSS-120B-T",
    "anthropic": "claude-3-haiku-20240307",
    "cohere": "command-r7b-12-2024",
    "openrouter": "meta-llama/llama-3.1-8b-instruct",
}

# Fallback order when no (usable) preference is given
PROVIDER_PRIORITY: tuple[str, ...] = (
    "openai",
    "google",
    "anthropic",
    "cohere",
    "openrouter",
    "poe",
)

# Providers that can generate conversation titles
TITLING_PROVIDERS: tuple[str, ...] = (
    "openai",
    "anthropic",
    "google",
    "poe",
    "cohere",
    "openrouter",
)


class Selection(NamedTuple):
    """A provider descriptor and the model to call on it."""

    provider: Provider
    model_name: str


def _resolve(provider_id: str, providers: list[Provider]) -> Selection | None:
    provider = next((p for p in providers if p.provider == provider_id), None)
    if provider is None or not provider.models:
        return None

    cheapest = CHEAPEST_MODELS.get(provider_id)
    if cheapest is not None and cheapest in provider.model_names:
        return Selection(provider, cheapest)
    return Selection(provider, provider.models[0].name)


def select_provider_and_model(
    preferred_provider: str | None,
    providers: list[Provider],
    active_keys: set[str],
) -> Selection | None:
    """Choose a provider and model for a disposable auxiliary call.

    Args:
        preferred_provider: Provider to try first, if any.
        providers: Current catalog.
        active_keys: Ids of providers with a configured API key.

    Returns:
        The selection, or None if no keyed provider resolves to a model.
    """
    if preferred_provider and preferred_provider in active_keys:
        selection = _resolve(preferred_provider, providers)
        if selection is not None:
            return selection

    for provider_id in PROVIDER_PRIORITY:
        if provider_id not in active_keys:
            continue
        selection = _resolve(provider_id, providers)
        if selection is not None:
            return selection

    return None


def titling_providers(active_keys: set[str]) -> list[str]:
    """Keyed providers that may be chosen explicitly for title generation."""
    return [provider_id for provider_id in TITLING_PROVIDERS if provider_id in active_keys]
