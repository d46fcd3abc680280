"""Wire-format models for the remote models.json catalog feed."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _RemoteBase(BaseModel):
    # Unknown keys are tolerated so the feed can grow; wrong types are not.
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RemoteDiscreteThinking(_RemoteBase):
    """Discrete thinking configuration (effort levels)."""

    options: list[str]
    default: str


class RemoteContinuousThinking(_RemoteBase):
    """Continuous thinking configuration (token budget)."""

    min: int
    max: int
    default: int
    step: int | None = None  # Derived from the range when omitted
    supports_off: bool = False


class RemoteThinkingConfig(_RemoteBase):
    """Only one of discrete or continuous is expected; neither means no thinking."""

    discrete: RemoteDiscreteThinking | None = None
    continuous: RemoteContinuousThinking | None = None


class RemoteTemperatureConfig(_RemoteBase):
    """Remote temperature configuration for a model."""

    min: float
    max: float
    default: float | None = None
    step: float = 0.1


class RemoteModel(_RemoteBase):
    """A single model entry in the remote feed."""

    name: str
    min_points: int | None = None  # Legacy, superseded by the fields below
    points: int | None = None
    input_points_per_1k: float | None = Field(default=None, alias="1k_input_points")
    output_points_per_1k: float | None = Field(default=None, alias="1k_output_points")
    input_price_per_1k: float | None = Field(default=None, alias="1k_input_price")
    output_price_per_1k: float | None = Field(default=None, alias="1k_output_price")
    thinking: RemoteThinkingConfig | None = None
    temperature: RemoteTemperatureConfig | None = None
    release_order: int | None = None


class RemoteProviderModels(_RemoteBase):
    """One provider's entry in the remote feed."""

    provider: str
    models: list[RemoteModel] = Field(default_factory=list)


RemoteCatalog = TypeAdapter(list[RemoteProviderModels])
