"""Presentation Cache.

A single owned LatestView behind one lock. Writers replace the whole view;
readers get the current view object, which is immutable, so a reader sees
either the complete previous view or the complete next one.
"""

from __future__ import annotations

import threading

from ghostwatch.store import LatestView


class PresentationCache:
    """Holds the most recent aggregate view for read-only serving.

    Args:
        initial: View served before the first publish (defaults to empty).
    """

    def __init__(self, initial: LatestView | None = None) -> None:
        self._lock = threading.Lock()
        self._view = initial or LatestView()
        self._version = 0

    def install(self, view: LatestView) -> None:
        """Atomically replace the cached view."""
        with self._lock:
            self._view = view
            self._version += 1

    def read(self) -> LatestView:
        """Current view. Never blocks on an in-flight cycle."""
        with self._lock:
            return self._view

    @property
    def version(self) -> int:
        """Number of installs so far."""
        with self._lock:
            return self._version
