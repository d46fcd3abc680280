"""Conversation title generation.

Titles are a disposable convenience: every failure path (missing
conversation, no usable provider, provider error, blank answer, or any
unexpected exception) yields the same default title instead of an error.
"""

from __future__ import annotations

import contextlib
import json
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from pydantic import BaseModel

from llm_gateway.client import LLMClient
from llm_gateway.logging import get_logger
from llm_gateway.models.catalog import Provider
from llm_gateway.models.conversation import Conversation, Message
from llm_gateway.selector import select_provider_and_model

if TYPE_CHECKING:
    from llm_gateway.settings import Settings

logger = get_logger(__name__)

DEFAULT_TITLE = "שיחה חדשה"

TITLE_PROMPT_TEMPLATE = (
    "I am about to make a request, and I expect that in response you will return only "
    "the relevant answer. Do not precede anything, do not explain anything, do not refer "
    "to me beyond returning the response I requested.   The question is: Attached are "
    "messages that constitute a conversation between a user and LLM. Give a title for the "
    "conversation, which will remind the user in the future what the conversation is "
    "about. The title will be in the same language in which the conversation is taking "
    "place, and will contain up to 6 words, with a preference for a shorter title (2-3 "
    "words).    I remind you: In response, I expect to receive from you only the title you "
    "set, without any further introductions or explanations. That is, your response should "
    "be a maximum of 6 words.    Below are the messages, in json format: {messages_json}"
)

ConversationLoader = Callable[[str], Awaitable[Conversation | None]]
ProvidersLoader = Callable[[], Awaitable[list[Provider]]]
KeysLoader = Callable[[str | None], Awaitable[dict[str, str]]]


class TitleSettings(BaseModel):
    """User-facing switches for automatic titles."""

    enabled: bool = True
    provider: str = "auto"  # "auto" or a provider id
    update_on_extension: bool = True  # Re-title after the third reply

    @property
    def preferred_provider(self) -> str | None:
        """Provider to try first, or None for automatic selection."""
        if not self.provider or self.provider == "auto":
            return None
        return self.provider

    @classmethod
    def from_settings(cls, app_settings: Settings) -> TitleSettings:
        return cls(
            enabled=app_settings.title_enabled,
            provider=app_settings.title_provider,
            update_on_extension=app_settings.title_update_on_extension,
        )


def should_generate_title(conversation: Conversation, title_settings: TitleSettings) -> bool:
    """True right after the first assistant reply, and after the third if enabled."""
    if not title_settings.enabled:
        return False
    replies = conversation.assistant_message_count
    return replies == 1 or (title_settings.update_on_extension and replies == 3)


def format_messages_for_prompt(messages: list[Message]) -> str:
    """Compact JSON array of ``{role, text, attachments?}`` objects."""
    try:
        items = []
        for message in messages:
            item: dict[str, object] = {"role": message.role, "text": message.text}
            if message.attachments:
                item["attachments"] = [
                    {"file_name": a.file_name, "mime_type": a.mime_type}
                    for a in message.attachments
                ]
            items.append(item)
        return json.dumps(items, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return "[]"


def build_title_prompt(messages: list[Message]) -> str:
    return TITLE_PROMPT_TEMPLATE.format(messages_json=format_messages_for_prompt(messages))


class _TitleCollector:
    """StreamingCallback that keeps the final text or the error."""

    def __init__(self) -> None:
        self.text = ""
        self.error: str | None = None

    def on_partial(self, text: str) -> None:
        self.text += text

    def on_complete(self, text: str) -> None:
        self.text = text

    def on_error(self, message: str) -> None:
        self.error = message


class TitleGenerator:
    """Names conversations with the cheapest available model."""

    def __init__(
        self,
        load_conversation: ConversationLoader,
        load_providers: ProvidersLoader,
        load_active_keys: KeysLoader,
        client: LLMClient,
        default_title: str = DEFAULT_TITLE,
    ) -> None:
        """Initialize the generator.

        Args:
            load_conversation: Returns a conversation by id, or None.
            load_providers: Returns the current provider catalog.
            load_active_keys: Returns API keys by provider id for a user.
            client: Client used for the streaming call.
            default_title: Returned whenever a title cannot be produced.
        """
        self._load_conversation = load_conversation
        self._load_providers = load_providers
        self._load_active_keys = load_active_keys
        self._client = client
        self.default_title = default_title

    async def generate_title(
        self,
        user: str | None,
        conversation_id: str,
        provider: str | None = None,
    ) -> str:
        """Generate a short title for a conversation.

        Args:
            user: User whose API keys are used.
            conversation_id: Conversation to title.
            provider: Preferred provider id, or None for automatic selection.

        Returns:
            The generated title, or the default title on any failure.
        """
        try:
            return await self._generate(user, conversation_id, provider)
        except Exception as e:
            # Never raises, not even when logging itself fails
            with contextlib.suppress(Exception):
                logger.warning(
                    "Title generation failed",
                    conversation_id=conversation_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
            return self.default_title

    async def _generate(self, user: str | None, conversation_id: str, provider: str | None) -> str:
        conversation = await self._load_conversation(conversation_id)
        if conversation is None or not conversation.messages:
            logger.debug("No messages to title", conversation_id=conversation_id)
            return self.default_title

        providers = await self._load_providers()
        api_keys = await self._load_active_keys(user)

        selection = select_provider_and_model(provider, providers, set(api_keys))
        if selection is None:
            logger.info("No keyed provider available for titles", conversation_id=conversation_id)
            return self.default_title

        prompt = Message(role="user", text=build_title_prompt(conversation.messages))
        collector = _TitleCollector()

        logger.info(
            "Generating title",
            conversation_id=conversation_id,
            provider=selection.provider.provider,
            model=selection.model_name,
        )
        await self._client.stream_message(
            selection.provider,
            selection.model_name,
            [prompt],
            api_keys,
            collector,
        )

        if collector.error is not None:
            logger.info("Title call failed", conversation_id=conversation_id, error=collector.error)
            return self.default_title

        title = collector.text.strip()
        return title or self.default_title
