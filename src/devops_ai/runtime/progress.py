from __future__ import annotations

import logging
from typing import Iterable

from devops_ai.catalog import DEFAULT_CATALOG, TopicCatalog
from devops_ai.core.errors import BadInput
from devops_ai.core.types import Progress
from devops_ai.store import KeyValueStore, progress_key

logger = logging.getLogger(__name__)


def normalize_steps(topic_id: str, completed: Iterable[int]) -> Progress:
    """Build a Progress whose steps are sorted and unique, and whose
    current_step is one past the highest completed step (0 when none)."""
    steps = sorted(set(completed))
    current = steps[-1] + 1 if steps else 0
    return Progress(topic_id=topic_id, completed_steps=steps, current_step=current)


class ProgressManager:
    """Completed-step state per topic, read and written through the store."""

    def __init__(self, store: KeyValueStore, catalog: TopicCatalog = DEFAULT_CATALOG) -> None:
        self.store = store
        self.catalog = catalog

    def _load(self, topic_id: str) -> Progress:
        payload = self.store.get(progress_key(topic_id))
        if payload is None:
            return normalize_steps(topic_id, [])
        stored = Progress.from_dict(payload)
        return normalize_steps(topic_id, stored.completed_steps)

    def get_progress(self, topic_id: str) -> Progress:
        self.catalog.get_topic(topic_id)
        return self._load(topic_id)

    def apply_completed_step(self, topic_id: str, step_index: int) -> tuple[Progress, bool]:
        """Record one completed step. Returns the progress and whether a write happened."""
        self.catalog.get_topic(topic_id)
        if isinstance(step_index, bool) or not isinstance(step_index, int) or step_index < 0:
            raise BadInput(f"completed_step must be a non-negative integer, got {step_index!r}")
        progress = self._load(topic_id)
        if step_index in progress.completed_steps:
            logger.info("step %s already completed for topic %s", step_index, topic_id)
            return progress, False
        updated = normalize_steps(topic_id, [*progress.completed_steps, step_index])
        self.store.put(progress_key(topic_id), updated.to_dict())
        logger.info(
            "recorded step %s for topic %s: completed=%s current=%s",
            step_index,
            topic_id,
            updated.completed_steps,
            updated.current_step,
        )
        return updated, True

    def record_completed_step(self, topic_id: str, step_index: int) -> Progress:
        progress, _changed = self.apply_completed_step(topic_id, step_index)
        return progress

    def reset_progress(self, topic_id: str) -> Progress:
        self.catalog.get_topic(topic_id)
        empty = normalize_steps(topic_id, [])
        self.store.put(progress_key(topic_id), empty.to_dict())
        logger.info("reset progress for topic %s", topic_id)
        return empty
