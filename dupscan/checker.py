"""Thread-safe registry of keys already seen by a pipeline stage."""

from __future__ import annotations

import threading
from dataclasses import replace

from dupscan.task import Info, Key, Task


class CheckList:
    """Remembers the first task seen for every key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[Key, Info] = {}

    def verify(self, task: Task) -> tuple[Task | None, bool]:
        """Register the key; return (first task, only on the first repeat; whether seen before)."""
        with self._lock:
            info = self._entries.get(task.key)
            if info is None:
                self._entries[task.key] = replace(task.info)
                return None, False
            if info.checked:
                return None, True
            info.checked = True
            return Task(task.key, replace(info, checked=False)), True

    def review(self, task: Task) -> Task | None:
        """Return the task registered under the key, or register this one and return None."""
        with self._lock:
            info = self._entries.get(task.key)
            if info is not None:
                return Task(task.key, replace(info))
            self._entries[task.key] = replace(task.info)
            return None

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __getitem__(self, key: Key) -> Info:
        with self._lock:
            return replace(self._entries[key])