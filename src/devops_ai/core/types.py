from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Tuple

ROLES = ("user", "assistant")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return dt.replace(tzinfo=dt.tzinfo or timezone.utc)


@dataclass(frozen=True, slots=True)
class Step:
    title: str
    prompt: str


@dataclass(frozen=True, slots=True)
class Topic:
    id: str
    title: str
    description: str
    initial_message: str
    steps: Tuple[Step, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["steps"] = [asdict(step) for step in self.steps]
        return payload


@dataclass(slots=True)
class Progress:
    topic_id: str
    completed_steps: List[int] = field(default_factory=list)
    current_step: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Any) -> "Progress":
        if not isinstance(payload, dict):
            raise ValueError("progress record must be an object")
        topic_id = payload.get("topic_id")
        if not isinstance(topic_id, str):
            raise ValueError("progress field 'topic_id' must be str")
        steps = payload.get("completed_steps")
        if steps is None:
            steps = []
        if not isinstance(steps, list) or not all(_is_index(item) for item in steps):
            raise ValueError("progress field 'completed_steps' must be list[int]")
        current = payload.get("current_step", 0)
        if not _is_index(current):
            raise ValueError("progress field 'current_step' must be int")
        return cls(topic_id=topic_id, completed_steps=list(steps), current_step=current)


@dataclass(slots=True)
class ChatMessage:
    role: str
    content: str


@dataclass(slots=True)
class TimestampedChatMessage:
    role: str
    content: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_chat_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": format_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "TimestampedChatMessage":
        if not isinstance(payload, dict):
            raise ValueError("conversation messages entries must be objects")
        role = payload.get("role")
        content = payload.get("content")
        if role not in ROLES or not isinstance(content, str):
            raise ValueError("conversation messages entries must include role/content strings")
        raw_ts = payload.get("timestamp")
        if not isinstance(raw_ts, str):
            raise ValueError("conversation message field 'timestamp' must be str")
        try:
            timestamp = parse_timestamp(raw_ts)
        except ValueError as exc:
            raise ValueError(f"conversation message timestamp is invalid: {raw_ts!r}") from exc
        return cls(role=role, content=content, timestamp=timestamp)


@dataclass(slots=True)
class ConversationHistory:
    topic_id: str
    messages: List[TimestampedChatMessage] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic_id": self.topic_id,
            "messages": [message.to_dict() for message in self.messages],
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "ConversationHistory":
        if not isinstance(payload, dict):
            raise ValueError("conversation record must be an object")
        topic_id = payload.get("topic_id")
        if not isinstance(topic_id, str):
            raise ValueError("conversation field 'topic_id' must be str")
        raw_messages = payload.get("messages")
        if raw_messages is None:
            raw_messages = []
        if not isinstance(raw_messages, list):
            raise ValueError("conversation messages must be a list")
        messages = [TimestampedChatMessage.from_dict(item) for item in raw_messages]
        return cls(topic_id=topic_id, messages=messages)


def _is_index(value: Any) -> bool:
    # bool is an int subclass; JSON true/false is never a step index
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0
