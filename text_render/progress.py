"""Thread-safe completion counter for batch runs."""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

ProgressListener = Callable[[int, int], None]


class ProgressTracker:
    """
    Counts completed jobs and notifies listeners with
    ``(completed, total)`` after every increment.

    A listener that raises is logged and skipped; it never fails the job
    that reported progress.
    """

    def __init__(self, total: int):
        self.total = total
        self._completed = 0
        self._lock = threading.Lock()
        self._listeners: list[ProgressListener] = []

    def add_listener(self, listener: ProgressListener):
        self._listeners.append(listener)

    def increment(self):
        with self._lock:
            self._completed += 1
            current = self._completed
        for listener in self._listeners:
            try:
                listener(current, self.total)
            except Exception as e:
                logger.warning(f"Progress listener failed: {e}", exc_info=True)

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def percentage(self) -> int:
        """Progress as a whole percentage (0-100)."""
        if self.total == 0:
            return 100
        return self.completed * 100 // self.total
