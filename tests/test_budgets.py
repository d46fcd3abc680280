"""Tests for thinking budget values and temperature defaults."""

from __future__ import annotations

import pytest

from llm_gateway.models import (
    TEMPERATURE_DEFAULT_LABEL,
    THINKING_OFF_LABEL,
    ContinuousThinking,
    DiscreteThinking,
    Effort,
    SimpleModel,
    TemperatureConfig,
    Tokens,
    default_thinking_value,
    format_temperature_value,
    format_thinking_value,
    is_thinking_enabled,
    temperature_config_for,
)


class TestThinkingValues:
    """Tests for thinking budget values."""

    def test_default_for_discrete(self) -> None:
        config = DiscreteThinking(options=["low", "high"], default="high")
        assert default_thinking_value(config) == Effort(level="high")

    def test_default_for_continuous(self) -> None:
        config = ContinuousThinking(min_tokens=1024, max_tokens=32000, default=4096)
        assert default_thinking_value(config) == Tokens(count=4096)

    def test_default_without_config(self) -> None:
        assert default_thinking_value(None) is None

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (Effort(level="medium"), True),
            (Effort(level="none"), False),
            (Tokens(count=2048), True),
            (Tokens(count=0), False),
            (None, False),
        ],
    )
    def test_is_thinking_enabled(self, value: Effort | Tokens | None, expected: bool) -> None:
        assert is_thinking_enabled(value) is expected

    def test_format_effort_uses_display_names(self) -> None:
        config = DiscreteThinking(
            options=["low", "high"], default="low", display_names={"low": "נמוך"}
        )
        assert format_thinking_value(Effort(level="low"), config) == "נמוך"
        assert format_thinking_value(Effort(level="high"), config) == "high"

    def test_format_tokens(self) -> None:
        assert format_thinking_value(Tokens(count=0), None) == THINKING_OFF_LABEL
        assert format_thinking_value(Tokens(count=8192), None) == "8K"
        assert format_thinking_value(Tokens(count=512), None) == "512"
        assert format_thinking_value(None, None) == ""


class TestTemperature:
    """Tests for temperature configs."""

    def test_provider_defaults(self) -> None:
        assert temperature_config_for("anthropic").max == 1.0
        assert temperature_config_for("cohere").default == 0.3
        assert temperature_config_for("poe") is None

    def test_model_config_wins(self) -> None:
        model = SimpleModel(
            name="gpt-4.1", temperature_config=TemperatureConfig(min=0.0, max=1.5, default=0.7)
        )
        assert temperature_config_for("openai", model).max == 1.5

    def test_format_temperature(self) -> None:
        assert format_temperature_value(None) == TEMPERATURE_DEFAULT_LABEL
        assert format_temperature_value(1.0) == "1"
        assert format_temperature_value(0.7) == "0.7"
