"""Progress and conversation state managers."""

from .conversation import MAX_HISTORY_MESSAGES, ConversationManager, truncate_history
from .progress import ProgressManager, normalize_steps

__all__ = [
    "ConversationManager",
    "MAX_HISTORY_MESSAGES",
    "ProgressManager",
    "normalize_steps",
    "truncate_history",
]
