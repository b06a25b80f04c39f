from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from devops_ai.backends.registry import Backend
from devops_ai.catalog import DEFAULT_CATALOG, TopicCatalog
from devops_ai.core.errors import EmptyMessage, ProviderError, TransportError
from devops_ai.core.types import ConversationHistory, TimestampedChatMessage, utcnow
from devops_ai.prompts import build_system_prompt
from devops_ai.store import KeyValueStore, conversation_key

logger = logging.getLogger(__name__)

MAX_HISTORY_MESSAGES = 50


def truncate_history(history: ConversationHistory, limit: int) -> int:
    """Drop the oldest messages beyond ``limit``. Returns how many were dropped."""
    overflow = len(history.messages) - limit
    if overflow <= 0:
        return 0
    history.messages = history.messages[overflow:]
    return overflow


class ConversationManager:
    """Per-topic chat history plus the call out to the chat provider.

    Each call works on its own copy of the history loaded from the store.
    Two concurrent ``post_message`` calls for one topic are not serialized:
    the later write wins and the other turn is lost.
    """

    def __init__(
        self,
        store: KeyValueStore,
        backend: Backend | None = None,
        catalog: TopicCatalog = DEFAULT_CATALOG,
        *,
        max_messages: int = MAX_HISTORY_MESSAGES,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if max_messages < 2:
            raise ValueError("max_messages must hold at least one user/assistant turn")
        self.store = store
        self.backend = backend
        self.catalog = catalog
        self.max_messages = max_messages
        self.clock = clock

    def _load(self, topic_id: str) -> ConversationHistory:
        payload = self.store.get(conversation_key(topic_id))
        if payload is None:
            return ConversationHistory(topic_id=topic_id)
        return ConversationHistory.from_dict(payload)

    def get_conversation(self, topic_id: str) -> ConversationHistory:
        self.catalog.get_topic(topic_id)
        return self._load(topic_id)

    def reset_conversation(self, topic_id: str) -> None:
        self.catalog.get_topic(topic_id)
        self.store.delete(conversation_key(topic_id))
        logger.info("deleted conversation for topic %s", topic_id)

    def post_message(self, topic_id: str, user_text: str) -> str:
        self.catalog.get_topic(topic_id)
        if not isinstance(user_text, str) or not user_text.strip():
            raise EmptyMessage()
        if self.backend is None:
            raise TransportError("no chat backend configured")

        history = self._load(topic_id)
        history.messages.append(
            TimestampedChatMessage(role="user", content=user_text, timestamp=self.clock())
        )
        system_prompt = build_system_prompt(topic_id)
        try:
            reply = self.backend.complete(
                [message.to_chat_message() for message in history.messages],
                system_prompt,
            )
        except ProviderError:
            # nothing from this turn is persisted
            logger.warning(
                "provider call failed for topic %s; discarding turn", topic_id, exc_info=True
            )
            raise

        history.messages.append(
            TimestampedChatMessage(role="assistant", content=reply, timestamp=self.clock())
        )
        dropped = truncate_history(history, self.max_messages)
        if dropped:
            logger.info("truncated %s old messages for topic %s", dropped, topic_id)
        self.store.put(conversation_key(topic_id), history.to_dict())
        return reply
