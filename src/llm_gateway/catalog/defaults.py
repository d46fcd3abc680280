"""Compiled-in fallback models and static provider descriptors."""

from __future__ import annotations

from llm_gateway.models.catalog import (
    ApiRequest,
    ComplexModel,
    Model,
    ModelPricing,
    Provider,
    ProviderId,
    ResponseFields,
    SimpleModel,
    UploadRequest,
    UploadResponseFields,
)

SERVER_SENT_EVENTS = "server_sent_events"

# ============================================================================
# Fallback model lists
# ============================================================================

DEFAULT_MODELS: dict[ProviderId, list[Model]] = {
    "openai": [
        SimpleModel(name="gpt-4o"),
        SimpleModel(name="gpt-4-turbo"),
    ],
    "anthropic": [
        SimpleModel(name="claude-sonnet-4-5"),
        SimpleModel(name="claude-3-7-sonnet-latest"),
    ],
    "google": [
        SimpleModel(name="gemini-2.5-pro"),
        SimpleModel(name="gemini-1.5-pro-latest"),
    ],
    "poe": [
        ComplexModel(name="GPT-4o", min_points=250, pricing=ModelPricing(min_points=250)),
        ComplexModel(
            name="Claude-Sonnet-3.5", min_points=270, pricing=ModelPricing(min_points=270)
        ),
    ],
    "cohere": [
        SimpleModel(name="command-a-03-2025"),
        SimpleModel(name="command-r-plus-08-2024"),
    ],
    "openrouter": [
        SimpleModel(name="openai/gpt-4o"),
        SimpleModel(name="anthropic/claude-3.5-sonnet"),
    ],
    "llmstats": [
        SimpleModel(name="gpt-5-nano"),
        SimpleModel(name="gpt-4o-mini"),
        SimpleModel(name="claude-3-haiku-20240307"),
    ],
}

# ============================================================================
# Provider descriptors (models are filled in by the catalog manager)
# ============================================================================

PROVIDER_DESCRIPTORS: dict[ProviderId, Provider] = {
    "openai": Provider(
        provider="openai",
        request=ApiRequest(
            base_url="https://api.openai.com/v1/responses",
            headers={
                "Authorization": "Bearer {OPENAI_API_KEY_HERE}",
                "Content-Type": "application/json",
            },
        ),
        response_important_fields=ResponseFields(
            id="{response_id}", model="{model_name}", output=[]
        ),
        upload_files_request=UploadRequest(
            base_url="https://api.openai.com/v1/files",
            headers={
                "Authorization": "Bearer {OPENAI_API_KEY_HERE}",
                "Content-Type": "multipart/form-data",
            },
            data={"purpose": "assistants"},
        ),
        upload_files_response_important_fields=UploadResponseFields(id="{file_ID}"),
    ),
    "anthropic": Provider(
        provider="anthropic",
        request=ApiRequest(
            base_url="https://api.anthropic.com/v1/messages",
            headers={
                "x-api-key": "{ANTHROPIC_API_KEY_HERE}",
                "anthropic-version": "2023-06-01",
                "Content-Type": "application/json",
            },
        ),
        response_important_fields=ResponseFields(id="{message_id}", model="{model_name}"),
    ),
    "google": Provider(
        provider="google",
        request=ApiRequest(
            base_url=(
                "https://generativelanguage.googleapis.com/v1beta/models/"
                "{model_name}:generateContent"
            ),
            headers={"Content-Type": "application/json"},
            params={"key": "{GOOGLE_API_KEY_HERE}"},
        ),
        response_important_fields=ResponseFields(
            candidates=[], modelVersion="{model_name}", responseId="{response_id}"
        ),
        upload_files_request=UploadRequest(
            base_url="https://generativelanguage.googleapis.com/upload/v1beta/files",
            headers={"Content-Type": "{mime_type}"},
            params={"key": "{GOOGLE_API_KEY_HERE}"},
        ),
        upload_files_response_important_fields=UploadResponseFields(file=None),
    ),
    "poe": Provider(
        provider="poe",
        request=ApiRequest(
            base_url="https://api.poe.com/bot/{model_name}",
            headers={
                "Authorization": "Bearer {POE_API_KEY_HERE}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        ),
        response_important_fields=ResponseFields(response_format=SERVER_SENT_EVENTS),
        upload_files_request=UploadRequest(
            base_url="https://www.quora.com/poe_api/file_upload_3RD_PARTY_POST",
            headers={"Authorization": "{POE_API_KEY_HERE}"},
        ),
        upload_files_response_important_fields=UploadResponseFields(
            file_id="{file_ID}", attachment_url="{file_URL}", mime_type="{mime_type}"
        ),
    ),
    # Cohere and OpenRouter take attachments inline, so no upload endpoint
    "cohere": Provider(
        provider="cohere",
        request=ApiRequest(
            base_url="https://api.cohere.ai/v2/chat",
            headers={
                "Authorization": "Bearer {COHERE_API_KEY_HERE}",
                "Content-Type": "application/json",
            },
        ),
        response_important_fields=ResponseFields(response_format=SERVER_SENT_EVENTS),
    ),
    "openrouter": Provider(
        provider="openrouter",
        request=ApiRequest(
            base_url="https://openrouter.ai/api/v1/chat/completions",
            headers={
                "Authorization": "Bearer {OPENROUTER_API_KEY_HERE}",
                "Content-Type": "application/json",
                "HTTP-Referer": "https://github.com/your-app",
                "X-Title": "LLM Chat App",
            },
        ),
        response_important_fields=ResponseFields(response_format=SERVER_SENT_EVENTS),
    ),
    "llmstats": Provider(
        provider="llmstats",
        request=ApiRequest(
            base_url="https://api.zeroeval.com/v1/chat/completions",
            headers={
                "Authorization": "Bearer {LLMSTATS_API_KEY_HERE}",
                "Content-Type": "application/json",
            },
        ),
        response_important_fields=ResponseFields(response_format=SERVER_SENT_EVENTS),
    ),
}
