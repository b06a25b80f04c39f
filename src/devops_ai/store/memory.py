from __future__ import annotations

import json
from threading import Lock
from typing import Any

from devops_ai.core.errors import StoreError


class MemoryStore:
    """Process-local store. Values are kept as JSON text so callers never share objects."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def put(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StoreError(f"value for key '{key}' is not JSON serializable") from exc
        with self._lock:
            self._data[key] = raw

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data
