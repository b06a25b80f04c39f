from __future__ import annotations

from importlib import resources

_PROMPT_CACHE: dict[str, str] = {}

SYSTEM_PROMPT_PATH = "system/tutor.txt"


def load_prompt(rel_path: str) -> str:
    if rel_path in _PROMPT_CACHE:
        return _PROMPT_CACHE[rel_path]
    content = resources.files(__package__).joinpath(rel_path).read_text(encoding="utf-8")
    _PROMPT_CACHE[rel_path] = content
    return content


def get_initial_message(topic_id: str) -> str:
    return load_prompt(f"topics/{topic_id}.txt").strip()


def build_system_prompt(topic_id: str) -> str:
    return load_prompt(SYSTEM_PROMPT_PATH).strip().replace("{topic_id}", topic_id)
