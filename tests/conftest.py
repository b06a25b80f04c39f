from __future__ import annotations

from typing import Any

import pytest

from devops_ai.store import MemoryStore


class RecordingStore(MemoryStore):
    """MemoryStore that remembers every mutating call."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[tuple[str, str]] = []

    def put(self, key: str, value: Any) -> None:
        self.writes.append(("put", key))
        super().put(key, value)

    def delete(self, key: str) -> None:
        self.writes.append(("delete", key))
        super().delete(key)


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()
