"""Conversion from the remote feed schema to internal catalog models."""

from __future__ import annotations

from llm_gateway.models.catalog import (
    ComplexModel,
    ContinuousThinking,
    DiscreteThinking,
    Model,
    ModelPricing,
    SimpleModel,
    TemperatureConfig,
    ThinkingBudgetType,
)
from llm_gateway.models.remote import (
    RemoteContinuousThinking,
    RemoteModel,
    RemoteTemperatureConfig,
    RemoteThinkingConfig,
)

# Display labels for discrete effort levels
EFFORT_DISPLAY_NAMES: dict[str, str] = {
    "none": "ללא",
    "minimal": "מינימלי",
    "low": "נמוך",
    "medium": "בינוני",
    "high": "גבוה",
    "xhigh": "גבוה מאוד",
}

PRICING_FIELDS = (
    "min_points",
    "points",
    "input_points_per_1k",
    "output_points_per_1k",
    "input_price_per_1k",
    "output_price_per_1k",
)


def derive_thinking_step(min_tokens: int, max_tokens: int) -> int:
    """Slider step for a continuous budget whose feed entry has none.

    Args:
        min_tokens: Lower bound of the budget.
        max_tokens: Upper bound of the budget.

    Returns:
        1024, 256, 128 or 64 depending on the magnitude of the range.
    """
    budget_range = max_tokens - min_tokens
    if budget_range >= 100_000:
        return 1024
    if budget_range >= 10_000:
        return 256
    if budget_range >= 1_000:
        return 128
    return 64


def _convert_continuous(config: RemoteContinuousThinking) -> ContinuousThinking:
    step = config.step
    if step is None:
        step = derive_thinking_step(config.min, config.max)
    return ContinuousThinking(
        min_tokens=config.min,
        max_tokens=config.max,
        default=config.default,
        step=step,
        supports_off=config.supports_off,
    )


def convert_thinking_config(config: RemoteThinkingConfig | None) -> ThinkingBudgetType | None:
    """Convert a remote thinking config; discrete wins when both are present."""
    if config is None:
        return None
    if config.discrete is not None:
        return DiscreteThinking(
            options=list(config.discrete.options),
            default=config.discrete.default,
            display_names=dict(EFFORT_DISPLAY_NAMES),
        )
    if config.continuous is not None:
        return _convert_continuous(config.continuous)
    return None


def convert_temperature_config(config: RemoteTemperatureConfig | None) -> TemperatureConfig | None:
    """Copy a remote temperature config field by field."""
    if config is None:
        return None
    return TemperatureConfig(
        min=config.min,
        max=config.max,
        default=config.default,
        step=config.step,
    )


def has_pricing(remote: RemoteModel) -> bool:
    """True if the remote model carries any pricing field."""
    return any(getattr(remote, field) is not None for field in PRICING_FIELDS)


def remote_model_to_model(remote: RemoteModel) -> Model:
    """Convert one remote model entry to a SimpleModel or ComplexModel."""
    thinking_config = convert_thinking_config(remote.thinking)
    temperature_config = convert_temperature_config(remote.temperature)

    if has_pricing(remote):
        pricing = ModelPricing(**{field: getattr(remote, field) for field in PRICING_FIELDS})
        return ComplexModel(
            name=remote.name,
            min_points=remote.min_points,
            pricing=pricing,
            thinking_config=thinking_config,
            temperature_config=temperature_config,
            release_order=remote.release_order,
        )

    return SimpleModel(
        name=remote.name,
        thinking_config=thinking_config,
        temperature_config=temperature_config,
        release_order=remote.release_order,
    )


def remote_models_to_models(remote_models: list[RemoteModel]) -> list[Model]:
    """Convert a provider's remote model list, preserving order."""
    return [remote_model_to_model(remote) for remote in remote_models]
