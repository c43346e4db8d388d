"""Per-project coordination for Folio.

Builds, file writes and article saves on the same project are serialized
through one re-entrant lock per project root. Different projects never
block each other.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


class ProjectLocks:
    """Registry handing out one lock per resolved project root."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Path, threading.RLock] = {}

    def lock_for(self, project_root: Path) -> threading.RLock:
        key = Path(project_root).resolve()
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, project_root: Path) -> Iterator[None]:
        """Hold the project's lock for the duration of the block."""
        lock = self.lock_for(project_root)
        with lock:
            yield


# Process-wide registry shared by every Engine.
project_locks = ProjectLocks()
