from __future__ import annotations

import json
import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Iterable, List

from devops_ai.backends.registry import register_backend
from devops_ai.core.types import ChatMessage


@dataclass(slots=True)
class FakeBackend:
    responses: List[str] = field(default_factory=list)
    calls: List[dict[str, Any]] = field(default_factory=list)
    error: Exception | None = None
    default_response: str = "ok"

    def complete(self, messages: Sequence[ChatMessage], system_prompt: str) -> str:
        self.calls.append(
            {
                "messages": [ChatMessage(role=m.role, content=m.content) for m in messages],
                "system_prompt": system_prompt,
            }
        )
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return self.default_response

    def extend_responses(self, responses: Iterable[str]) -> None:
        self.responses.extend(responses)

    def set_responses(self, responses: Iterable[str]) -> None:
        self.responses = list(responses)


def _load_env_json_list(env_value: str) -> list[str]:
    data = json.loads(env_value)
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise ValueError("fake responses must be a JSON list of strings")
    return data


def _factory(**_kwargs: Any) -> "FakeBackend":
    backend = FakeBackend()
    responses_json = os.getenv("DEVOPS_AI_FAKE_RESPONSES")
    if responses_json:
        backend.responses = _load_env_json_list(responses_json)
    return backend


register_backend("fake", _factory)
