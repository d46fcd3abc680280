"""Application settings using pydantic-settings."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import SecretStr
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    EnvSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_CATALOG_URL = "https://raw.githubusercontent.com/divonr/android-app/main/models.json"

# Provider API keys are read from their conventional, unprefixed variable names.
# Google accepts either name; the first one set wins.
API_KEY_ENV_VARS: dict[str, tuple[str, ...]] = {
    "openai_api_key": ("OPENAI_API_KEY",),
    "anthropic_api_key": ("ANTHROPIC_API_KEY",),
    "google_api_key": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "poe_api_key": ("POE_API_KEY",),
    "cohere_api_key": ("COHERE_API_KEY",),
    "openrouter_api_key": ("OPENROUTER_API_KEY",),
    "llmstats_api_key": ("LLMSTATS_API_KEY",),
}


class _ApiKeyEnvSettings(EnvSettingsSource):
    """Env source that falls back to unprefixed provider key variables."""

    def prepare_field_value(
        self, field_name: str, field: FieldInfo, value: Any, value_is_complex: bool
    ) -> Any:
        if field_name in API_KEY_ENV_VARS and value is None:
            for env_var in API_KEY_ENV_VARS[field_name]:
                if os.environ.get(env_var):
                    return os.environ[env_var]
        return super().prepare_field_value(field_name, field, value, value_is_complex)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables with the
    LLM_GATEWAY_ prefix. Provider API keys also load from their usual
    unprefixed names (OPENAI_API_KEY, ANTHROPIC_API_KEY, ...).
    """

    model_config = SettingsConfigDict(
        env_prefix="LLM_GATEWAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remote catalog
    catalog_url: str = DEFAULT_CATALOG_URL
    catalog_ttl_seconds: int = 24 * 60 * 60
    background_fetch_timeout: float = 10.0
    force_fetch_timeout: float = 15.0

    # Live provider calls
    stream_timeout: float = 120.0

    # Storage
    cache_dir: Path = Path.home() / ".llm-gateway"
    conversations_dir: Path = Path.home() / ".llm-gateway" / "conversations"

    # Title generation
    default_title: str = "שיחה חדשה"
    title_enabled: bool = True
    title_provider: str = "auto"  # "auto" or a provider id
    title_update_on_extension: bool = True

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True

    # Server settings
    host: str = "127.0.0.1"
    port: int = 8002

    # Provider API keys (any subset may be configured)
    openai_api_key: SecretStr | None = None
    anthropic_api_key: SecretStr | None = None
    google_api_key: SecretStr | None = None
    poe_api_key: SecretStr | None = None
    cohere_api_key: SecretStr | None = None
    openrouter_api_key: SecretStr | None = None
    llmstats_api_key: SecretStr | None = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Swap the env source for one that understands unprefixed key names."""
        return (
            init_settings,
            _ApiKeyEnvSettings(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )


# Global settings instance
settings = Settings()
