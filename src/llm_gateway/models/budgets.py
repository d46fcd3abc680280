"""Thinking budget values and temperature defaults per provider."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from llm_gateway.models.catalog import (
    ContinuousThinking,
    DiscreteThinking,
    Model,
    TemperatureConfig,
    ThinkingBudgetType,
)

THINKING_OFF_LABEL = "כבוי"
TEMPERATURE_DEFAULT_LABEL = "ברירת מחדל"


class Effort(BaseModel):
    """A discrete effort level such as "low" or "high"."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["effort"] = "effort"
    level: str


class Tokens(BaseModel):
    """A continuous thinking budget in tokens; 0 disables thinking."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tokens"] = "tokens"
    count: int


# None stands for "no budget set"
ThinkingBudgetValue = Annotated[Effort | Tokens, Field(discriminator="kind")]


def default_thinking_value(config: ThinkingBudgetType | None) -> Effort | Tokens | None:
    """The starting budget for a model's thinking config."""
    if isinstance(config, DiscreteThinking):
        return Effort(level=config.default)
    if isinstance(config, ContinuousThinking):
        return Tokens(count=config.default)
    return None


def is_thinking_enabled(value: Effort | Tokens | None) -> bool:
    """False for the "none" effort, a zero budget, or no budget at all."""
    if isinstance(value, Effort):
        return value.level.lower() != "none"
    if isinstance(value, Tokens):
        return value.count > 0
    return False


def format_thinking_value(value: Effort | Tokens | None, config: ThinkingBudgetType | None) -> str:
    """Short display label for a budget value.

    Args:
        value: The current budget.
        config: The model's thinking config, used for effort labels.

    Returns:
        The localized effort label, "{n}K" for budgets of 1000 tokens or
        more, the "off" label for 0, or an empty string for no budget.
    """
    if isinstance(value, Effort):
        display_names = config.display_names if isinstance(config, DiscreteThinking) else {}
        return display_names.get(value.level, value.level)
    if isinstance(value, Tokens):
        if value.count == 0:
            return THINKING_OFF_LABEL
        if value.count >= 1000:
            return f"{value.count // 1000}K"
        return str(value.count)
    return ""


# ============================================================================
# Temperature
# ============================================================================

DEFAULT_TEMPERATURE_CONFIGS: dict[str, TemperatureConfig | None] = {
    "openai": TemperatureConfig(min=0.0, max=2.0, default=1.0),
    "google": TemperatureConfig(min=0.0, max=2.0, default=1.0),
    "anthropic": TemperatureConfig(min=0.0, max=1.0, default=1.0),
    "cohere": TemperatureConfig(min=0.0, max=1.0, default=0.3),
    "openrouter": TemperatureConfig(min=0.0, max=2.0, default=1.0),
    "poe": None,  # Poe doesn't expose temperature
}


def temperature_config_for(provider_id: str, model: Model | None = None) -> TemperatureConfig | None:
    """Temperature config for a provider/model pair.

    The model's own config wins; otherwise the provider default applies.
    None means temperature is not adjustable.
    """
    if model is not None and model.temperature_config is not None:
        return model.temperature_config
    return DEFAULT_TEMPERATURE_CONFIGS.get(provider_id.lower())


def format_temperature_value(value: float | None) -> str:
    """Display label for a temperature; None means the API default."""
    if value is None:
        return TEMPERATURE_DEFAULT_LABEL
    if value == int(value):
        return str(int(value))
    return f"{value:.1f}"
