from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_ALLOWED_ORIGIN = "https://devops-ai-react.pages.dev"


@dataclass(frozen=True, slots=True)
class TutorConfig:
    data_root: Path = Path("data")
    store: str = "file"
    backend: str = "anthropic"
    allowed_origin: str = DEFAULT_ALLOWED_ORIGIN
    api_key: str | None = field(default=None, repr=False)
    model: str | None = None
    base_url: str | None = None
    provider_timeout_s: float = 60.0
    history_limit: int = 50
    log_level: str = "INFO"

    @property
    def store_root(self) -> Path:
        return self.data_root / "store"

    def backend_kwargs(self) -> dict[str, object]:
        if self.backend != "anthropic":
            return {}
        kwargs: dict[str, object] = {"timeout_s": self.provider_timeout_s}
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.model:
            kwargs["model"] = self.model
        if self.base_url:
            kwargs["base_url"] = self.base_url
        return kwargs


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_config() -> TutorConfig:
    history_limit = _env_int("DEVOPS_AI_HISTORY_LIMIT", 50)
    timeout_s = _env_float("DEVOPS_AI_PROVIDER_TIMEOUT_S", 60.0)
    return TutorConfig(
        data_root=Path(os.getenv("DEVOPS_AI_DATA_ROOT", "data")),
        store=os.getenv("DEVOPS_AI_STORE", "file").strip().lower(),
        backend=os.getenv("DEVOPS_AI_BACKEND", "anthropic").strip().lower(),
        allowed_origin=os.getenv("DEVOPS_AI_ALLOWED_ORIGIN", DEFAULT_ALLOWED_ORIGIN),
        api_key=os.getenv("ANTHROPIC_API_KEY") or None,
        model=os.getenv("ANTHROPIC_MODEL") or None,
        base_url=os.getenv("ANTHROPIC_BASE_URL") or None,
        provider_timeout_s=timeout_s if timeout_s > 0 else 60.0,
        history_limit=history_limit if history_limit >= 2 else 50,
        log_level=os.getenv("DEVOPS_AI_LOG_LEVEL", "INFO").strip().upper(),
    )
