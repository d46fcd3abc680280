"""Conversation files: one JSON document per conversation id."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import aiofiles
import aiofiles.os
from pydantic import ValidationError

from llm_gateway.errors import StorageError
from llm_gateway.logging import get_logger
from llm_gateway.models.conversation import Conversation

logger = get_logger(__name__)


class ConversationNotFoundError(StorageError):
    """No file exists for the requested conversation."""

    def __init__(self, conv_id: str) -> None:
        self.conv_id = conv_id
        super().__init__(f"Conversation not found: {conv_id}")


class ConversationStorage:
    """Reads conversations for title generation and writes titles back.

    Files live at ``{conversations_dir}/{id}.json`` and are replaced
    atomically, so a concurrent reader sees either the old or the new
    document.
    """

    def __init__(self, conversations_dir: Path) -> None:
        self.conversations_dir = Path(conversations_dir).expanduser()

    async def ensure_dir(self) -> None:
        await aiofiles.os.makedirs(self.conversations_dir, exist_ok=True)

    def path_for(self, conv_id: str) -> Path:
        if not conv_id or Path(conv_id).name != conv_id:
            msg = f"Invalid conversation id: {conv_id!r}"
            raise StorageError(msg)
        return self.conversations_dir / f"{conv_id}.json"

    async def get(self, conv_id: str) -> Conversation | None:
        """Load a conversation.

        Returns:
            The conversation, or None when no file exists for ``conv_id``.

        Raises:
            StorageError: If the file exists but is unreadable or malformed.
        """
        path = self.path_for(conv_id)
        if not await aiofiles.os.path.exists(path):
            return None

        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                raw = await f.read()
            return Conversation.model_validate_json(raw)
        except (OSError, ValidationError) as e:
            msg = f"Failed to load conversation {conv_id}: {e}"
            raise StorageError(msg) from e

    async def require(self, conv_id: str) -> Conversation:
        conversation = await self.get(conv_id)
        if conversation is None:
            raise ConversationNotFoundError(conv_id)
        return conversation

    async def save(self, conversation: Conversation) -> None:
        """Write a conversation, stamping ``updated_at``."""
        await self.ensure_dir()
        path = self.path_for(conversation.id)
        staging = path.with_name(f".{path.name}.partial")

        conversation.updated_at = datetime.utcnow()
        document = conversation.model_dump_json(indent=2)

        try:
            async with aiofiles.open(staging, "w", encoding="utf-8") as f:
                await f.write(document)
                await f.flush()
                os.fsync(f.fileno())
            await aiofiles.os.replace(staging, path)
        except OSError as e:
            if staging.exists():
                await aiofiles.os.remove(staging)
            msg = f"Failed to save conversation {conversation.id}: {e}"
            raise StorageError(msg) from e

    async def update_title(self, conv_id: str, title: str) -> Conversation:
        """Persist a new title for an existing conversation.

        Raises:
            ConversationNotFoundError: If ``conv_id`` has no file.
        """
        conversation = await self.require(conv_id)
        conversation.title = title
        await self.save(conversation)
        logger.debug("Conversation title updated", conversation_id=conv_id)
        return conversation
