from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol

from devops_ai.core.types import ChatMessage


class Backend(Protocol):
    def complete(self, messages: Sequence[ChatMessage], system_prompt: str) -> str:
        ...


BackendFactory = Callable[..., Backend]

_PROVIDERS: dict[str, BackendFactory] = {}


def _provider_name(name: str) -> str:
    return name.strip().lower()


def register_backend(name: str, factory: BackendFactory) -> BackendFactory:
    """Make ``factory`` selectable as ``DEVOPS_AI_BACKEND=<name>``."""
    provider = _provider_name(name)
    if provider in _PROVIDERS:
        raise ValueError(f"chat provider '{provider}' is registered twice")
    _PROVIDERS[provider] = factory
    return factory


def get_backend(name: str, **settings: Any) -> Backend:
    """Build the named provider. Settings left as ``None`` fall back to the provider's defaults."""
    factory = _PROVIDERS.get(_provider_name(name))
    if factory is None:
        raise ValueError(
            f"Unknown backend '{name}' (DEVOPS_AI_BACKEND); choose one of: "
            + ", ".join(list_backends())
        )
    return factory(**{key: value for key, value in settings.items() if value is not None})


def list_backends() -> list[str]:
    return sorted(_PROVIDERS)
