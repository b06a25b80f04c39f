"""Core data contracts and errors."""

from .errors import (
    BadInput,
    DecodeError,
    EmptyMessage,
    EmptyReply,
    InvalidTopic,
    ProviderError,
    ProviderTimeout,
    StoreError,
    TransportError,
    TutorError,
    UpstreamError,
)
from .types import ChatMessage, ConversationHistory, Progress, Step, TimestampedChatMessage, Topic

__all__ = [
    "BadInput",
    "ChatMessage",
    "ConversationHistory",
    "DecodeError",
    "EmptyMessage",
    "EmptyReply",
    "InvalidTopic",
    "Progress",
    "ProviderError",
    "ProviderTimeout",
    "Step",
    "StoreError",
    "TimestampedChatMessage",
    "Topic",
    "TransportError",
    "TutorError",
    "UpstreamError",
]
