"""Pydantic models for the provider/model catalog."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ProviderId = Literal["openai", "anthropic", "google", "poe", "cohere", "openrouter", "llmstats"]

PROVIDER_IDS: tuple[ProviderId, ...] = (
    "openai",
    "anthropic",
    "google",
    "poe",
    "cohere",
    "openrouter",
    "llmstats",
)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ============================================================================
# Thinking budget
# ============================================================================


class DiscreteThinking(_Frozen):
    """Model supports discrete effort levels (e.g. "low", "medium", "high")."""

    kind: Literal["discrete"] = "discrete"
    options: list[str]
    default: str
    display_names: dict[str, str] = Field(default_factory=dict)


class ContinuousThinking(_Frozen):
    """Model supports a continuous token budget.

    When supports_off is set, 0 is a valid value that disables thinking
    (the slider jumps from 0 straight to min_tokens).
    """

    kind: Literal["continuous"] = "continuous"
    min_tokens: int
    max_tokens: int
    default: int
    step: int = 1024
    supports_off: bool = False


ThinkingBudgetType = Annotated[
    DiscreteThinking | ContinuousThinking, Field(discriminator="kind")
]


class TemperatureConfig(_Frozen):
    """Temperature range for a model. A None default means "don't send it"."""

    min: float
    max: float
    default: float | None = None
    step: float = 0.1


# ============================================================================
# Models
# ============================================================================


class ModelPricing(_Frozen):
    """Pricing for a model: Poe points (fixed or per 1k tokens) or USD per 1k tokens."""

    min_points: int | None = None  # Legacy minimum points per message
    points: int | None = None  # Fixed points per message
    input_points_per_1k: float | None = None
    output_points_per_1k: float | None = None
    input_price_per_1k: float | None = None
    output_price_per_1k: float | None = None

    @property
    def is_fixed_pricing(self) -> bool:
        """Exact points per message."""
        return self.points is not None

    @property
    def is_token_based_pricing(self) -> bool:
        """Points or USD per 1000 tokens."""
        return any(
            value is not None
            for value in (
                self.input_points_per_1k,
                self.output_points_per_1k,
                self.input_price_per_1k,
                self.output_price_per_1k,
            )
        )

    @property
    def is_legacy_pricing(self) -> bool:
        """Only the deprecated min_points field is set."""
        return (
            self.min_points is not None
            and self.points is None
            and not self.is_token_based_pricing
        )

    @property
    def has_pricing(self) -> bool:
        """Any pricing information at all."""
        return self.is_fixed_pricing or self.min_points is not None or self.is_token_based_pricing


class SimpleModel(_Frozen):
    """A model without pricing information."""

    kind: Literal["simple"] = "simple"
    name: str
    thinking_config: ThinkingBudgetType | None = None
    temperature_config: TemperatureConfig | None = None
    release_order: int | None = None


class ComplexModel(_Frozen):
    """A model that carries pricing (Poe points or USD)."""

    kind: Literal["complex"] = "complex"
    name: str
    min_points: int | None = None
    pricing: ModelPricing = Field(default_factory=ModelPricing)
    thinking_config: ThinkingBudgetType | None = None
    temperature_config: TemperatureConfig | None = None
    release_order: int | None = None


Model = Annotated[SimpleModel | ComplexModel, Field(discriminator="kind")]


# ============================================================================
# Provider descriptors
# ============================================================================


class ApiRequest(_Frozen):
    """Static description of a provider's chat request."""

    request_type: str = "POST"
    base_url: str  # May contain {model_name}
    headers: dict[str, str] = Field(default_factory=dict)  # Contain {*_API_KEY_HERE}
    params: dict[str, str] | None = None


class ResponseFields(_Frozen):
    """Fields of a provider's response that matter to the client."""

    id: str | None = None
    model: str | None = None
    output: list[Any] | None = None
    usage: Any | None = None
    response_format: str | None = None  # "server_sent_events" for SSE-only providers
    candidates: list[Any] | None = None
    usageMetadata: Any | None = None  # noqa: N815 - wire name
    modelVersion: str | None = None  # noqa: N815 - wire name
    responseId: str | None = None  # noqa: N815 - wire name


class UploadRequest(_Frozen):
    """Static description of a provider's file upload endpoint."""

    request_type: str = "POST"
    base_url: str
    headers: dict[str, str] = Field(default_factory=dict)
    data: dict[str, str] | None = None
    params: dict[str, str] | None = None


class UploadResponseFields(_Frozen):
    """Fields of an upload response that matter to the client."""

    id: str | None = None
    file_id: str | None = None
    attachment_url: str | None = None
    mime_type: str | None = None
    file: Any | None = None


class Provider(_Frozen):
    """A provider with its current model list and static request descriptors."""

    provider: ProviderId
    models: list[Model] = Field(default_factory=list)
    request: ApiRequest
    response_important_fields: ResponseFields = Field(default_factory=ResponseFields)
    upload_files_request: UploadRequest | None = None
    upload_files_response_important_fields: UploadResponseFields | None = None

    @property
    def model_names(self) -> list[str]:
        """Names of the provider's models, in catalog order."""
        return [model.name for model in self.models]


class CacheMetadata(BaseModel):
    """Metadata stored next to the catalog cache."""

    model_config = ConfigDict(populate_by_name=True)

    last_fetch_timestamp: int = Field(alias="lastFetchTimestamp")  # Epoch milliseconds
    version: str = "1"
