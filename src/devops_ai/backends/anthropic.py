from __future__ import annotations

import http.client
import json
import logging
import os
import time
import urllib.error
import urllib.request
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from devops_ai.backends.registry import register_backend
from devops_ai.core.errors import (
    DecodeError,
    EmptyReply,
    ProviderTimeout,
    TransportError,
    UpstreamError,
)
from devops_ai.core.types import ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com"
DEFAULT_MODEL = "claude-3-5-sonnet-20240620"
API_VERSION = "2023-06-01"
MAX_OUTPUT_TOKENS = 1024
_ERROR_DETAIL_LIMIT = 500


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class AnthropicBackend:
    api_key: str | None = field(default_factory=lambda: os.getenv("ANTHROPIC_API_KEY"), repr=False)
    base_url: str = field(default_factory=lambda: os.getenv("ANTHROPIC_BASE_URL", DEFAULT_BASE_URL))
    model: str = field(default_factory=lambda: os.getenv("ANTHROPIC_MODEL", DEFAULT_MODEL))
    timeout_s: float = field(
        default_factory=lambda: _env_float("DEVOPS_AI_PROVIDER_TIMEOUT_S", 60.0)
    )
    max_tokens: int = MAX_OUTPUT_TOKENS

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key or "",
            "anthropic-version": API_VERSION,
            "content-type": "application/json",
        }

    def _build_payload(
        self, messages: Sequence[ChatMessage], system_prompt: str
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if system_prompt:
            payload["system"] = system_prompt
        return payload

    @staticmethod
    def _extract_content(body: str) -> str:
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise DecodeError(f"provider response is not JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise DecodeError("provider response must be an object")
        content = data.get("content")
        if not isinstance(content, list):
            raise DecodeError("provider response is missing a content list")
        if not content:
            raise EmptyReply("provider response has no content blocks")
        # later blocks are ignored
        first = content[0]
        if not isinstance(first, dict) or not isinstance(first.get("text"), str):
            raise DecodeError("first content block has no text")
        return first["text"]

    def complete(self, messages: Sequence[ChatMessage], system_prompt: str) -> str:
        if not self.api_key:
            raise TransportError("ANTHROPIC_API_KEY is not configured")
        payload = self._build_payload(messages, system_prompt)
        if _env_bool("DEVOPS_AI_LOG_PAYLOAD"):
            logger.info("anthropic request payload:\n%s", json.dumps(payload, indent=2))
        url = f"{self.base_url.rstrip('/')}/v1/messages"
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(url, data=data, headers=self._headers(), method="POST")
        start = time.monotonic()
        try:
            with urllib.request.urlopen(request, timeout=self.timeout_s) as response:
                status_code = response.status
                body = response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            detail = _read_error_detail(exc)
            raise UpstreamError(exc.code, detail) from exc
        except TimeoutError as exc:
            raise ProviderTimeout(f"provider call timed out after {self.timeout_s}s") from exc
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise ProviderTimeout(
                    f"provider call timed out after {self.timeout_s}s"
                ) from exc
            raise TransportError(f"failed to reach provider: {exc.reason}") from exc
        except OSError as exc:
            raise TransportError(f"failed to reach provider: {exc}") from exc
        except http.client.HTTPException as exc:
            raise TransportError(f"provider connection broke: {exc!r}") from exc
        except UnicodeDecodeError as exc:
            raise DecodeError("provider response is not valid UTF-8") from exc
        latency_ms = int((time.monotonic() - start) * 1000)
        logger.debug(
            "anthropic call finished status=%s latency_ms=%s model=%s",
            status_code,
            latency_ms,
            self.model,
        )
        if not 200 <= status_code < 300:
            raise UpstreamError(status_code)
        return self._extract_content(body)


def _read_error_detail(exc: urllib.error.HTTPError) -> str | None:
    try:
        raw = exc.read()
    except OSError:
        return None
    if not raw:
        return None
    return raw.decode("utf-8", errors="replace")[:_ERROR_DETAIL_LIMIT]


register_backend("anthropic", AnthropicBackend)
