"""API key lookup for provider calls.

Keys come from settings, which read them from the environment
(``OPENAI_API_KEY``, ``GEMINI_API_KEY``/``GOOGLE_API_KEY``, ...). The user
argument exists so a multi-user host can substitute its own provider.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from llm_gateway.logging import get_logger
from llm_gateway.models.catalog import PROVIDER_IDS

if TYPE_CHECKING:
    from llm_gateway.settings import Settings

logger = get_logger(__name__)


class KeyProvider:
    """Provides API keys for the providers configured in settings."""

    def __init__(self, settings: Settings) -> None:
        """Initialize the key provider.

        Args:
            settings: Application settings instance.
        """
        self._settings = settings

    def get_key(self, provider_id: str) -> str | None:
        """API key for a provider, or None if not configured or blank."""
        secret = getattr(self._settings, f"{provider_id}_api_key", None)
        if secret is None:
            return None

        value = secret.get_secret_value().strip()
        return value or None

    async def load_active_keys(self, user: str | None = None) -> dict[str, str]:
        """Non-empty keys by provider id.

        Args:
            user: Requesting user; all users share the configured keys.

        Returns:
            Dict of provider id -> API key.
        """
        keys = {}
        for provider_id in PROVIDER_IDS:
            key = self.get_key(provider_id)
            if key:
                keys[provider_id] = key
        logger.debug("Loaded active keys", user=user, providers=sorted(keys))
        return keys

    def get_configured_providers(self) -> dict[str, bool]:
        """Check which providers have keys configured.

        Returns:
            Dict of provider -> has_key.
        """
        return {provider_id: self.get_key(provider_id) is not None for provider_id in PROVIDER_IDS}
