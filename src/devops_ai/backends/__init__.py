"""Chat-completion provider adapters."""

from .anthropic import AnthropicBackend
from .fake import FakeBackend
from .registry import Backend, get_backend, list_backends, register_backend

__all__ = [
    "AnthropicBackend",
    "Backend",
    "FakeBackend",
    "get_backend",
    "list_backends",
    "register_backend",
]
