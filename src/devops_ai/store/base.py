from __future__ import annotations

from typing import Any, Protocol

CONVERSATION_PREFIX = "conversation_"


class KeyValueStore(Protocol):
    """Atomic single-key get/put/delete over JSON values. No compare-and-swap."""

    def get(self, key: str) -> Any | None:
        ...

    def put(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


def progress_key(topic_id: str) -> str:
    return topic_id


def conversation_key(topic_id: str) -> str:
    return f"{CONVERSATION_PREFIX}{topic_id}"
