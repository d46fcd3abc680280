"""Pydantic models for LLM Gateway."""

from llm_gateway.models.catalog import (
    PROVIDER_IDS,
    ApiRequest,
    CacheMetadata,
    ComplexModel,
    ContinuousThinking,
    DiscreteThinking,
    Model,
    ModelPricing,
    Provider,
    ProviderId,
    ResponseFields,
    SimpleModel,
    TemperatureConfig,
    ThinkingBudgetType,
    UploadRequest,
    UploadResponseFields,
)
from llm_gateway.models.budgets import (
    TEMPERATURE_DEFAULT_LABEL,
    THINKING_OFF_LABEL,
    Effort,
    ThinkingBudgetValue,
    Tokens,
    default_thinking_value,
    format_temperature_value,
    format_thinking_value,
    is_thinking_enabled,
    temperature_config_for,
)
from llm_gateway.models.conversation import Attachment, Conversation, Message
from llm_gateway.models.remote import (
    RemoteCatalog,
    RemoteContinuousThinking,
    RemoteDiscreteThinking,
    RemoteModel,
    RemoteProviderModels,
    RemoteTemperatureConfig,
    RemoteThinkingConfig,
)
from llm_gateway.models.streaming import (
    ApiError,
    ApiResponse,
    ApiSuccess,
    ProviderStreamingResult,
    StreamError,
    StreamEvent,
    StreamFailed,
    StreamSucceeded,
    TextComplete,
    TextDelta,
    ThinkingDelta,
    ThoughtStatus,
    ToolCall,
    ToolCallDetected,
)

__all__ = [
    # Catalog models
    "PROVIDER_IDS",
    "ApiRequest",
    "CacheMetadata",
    "ComplexModel",
    "ContinuousThinking",
    "DiscreteThinking",
    "Model",
    "ModelPricing",
    "Provider",
    "ProviderId",
    "ResponseFields",
    "SimpleModel",
    "TemperatureConfig",
    "ThinkingBudgetType",
    "UploadRequest",
    "UploadResponseFields",
    # Budget values
    "TEMPERATURE_DEFAULT_LABEL",
    "THINKING_OFF_LABEL",
    "Effort",
    "ThinkingBudgetValue",
    "Tokens",
    "default_thinking_value",
    "format_temperature_value",
    "format_thinking_value",
    "is_thinking_enabled",
    "temperature_config_for",
    # Conversation models
    "Attachment",
    "Conversation",
    "Message",
    # Remote feed models
    "RemoteCatalog",
    "RemoteContinuousThinking",
    "RemoteDiscreteThinking",
    "RemoteModel",
    "RemoteProviderModels",
    "RemoteTemperatureConfig",
    "RemoteThinkingConfig",
    # Streaming models
    "ApiError",
    "ApiResponse",
    "ApiSuccess",
    "ProviderStreamingResult",
    "StreamError",
    "StreamEvent",
    "StreamFailed",
    "StreamSucceeded",
    "TextComplete",
    "TextDelta",
    "ThinkingDelta",
    "ThoughtStatus",
    "ToolCall",
    "ToolCallDetected",
]
