from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote

from devops_ai.core.errors import StoreError

DEFAULT_DIR = Path("data") / "store"


class FileStore:
    """One JSON file per key. Writes go through a temp file and an atomic replace."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else DEFAULT_DIR

    def _path(self, key: str) -> Path:
        if not key:
            raise StoreError("store key must be non-empty")
        return self.base_dir / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StoreError(f"stored value for key '{key}' is not valid JSON") from exc
        except OSError as exc:
            raise StoreError(f"failed to read key '{key}': {exc}") from exc

    def put(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StoreError(f"value for key '{key}' is not JSON serializable") from exc
        temp_path: Path | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # unique per writer so overlapping puts for one key never share a temp file
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f"{path.stem}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, path)
        except OSError as exc:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise StoreError(f"failed to write key '{key}': {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StoreError(f"failed to delete key '{key}': {exc}") from exc

    def keys(self) -> list[str]:
        if not self.base_dir.exists():
            return []
        return sorted(unquote(path.stem) for path in self.base_dir.glob("*.json"))
