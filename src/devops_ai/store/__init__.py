"""Key-value persistence for progress and conversation records."""

from __future__ import annotations

from pathlib import Path

from .base import KeyValueStore, conversation_key, progress_key
from .file import FileStore
from .memory import MemoryStore

STORE_KINDS = ("file", "memory")


def open_store(kind: str, root: Path | None = None) -> KeyValueStore:
    key = kind.lower()
    if key == "memory":
        return MemoryStore()
    if key == "file":
        return FileStore(root)
    available = ", ".join(STORE_KINDS)
    raise ValueError(f"Unknown store '{kind}'. Available stores: {available}")


__all__ = [
    "FileStore",
    "KeyValueStore",
    "MemoryStore",
    "STORE_KINDS",
    "conversation_key",
    "open_store",
    "progress_key",
]
