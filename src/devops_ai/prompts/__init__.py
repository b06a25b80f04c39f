"""Static prompt text shipped with the package."""

from .loader import build_system_prompt, get_initial_message, load_prompt

__all__ = ["build_system_prompt", "get_initial_message", "load_prompt"]
