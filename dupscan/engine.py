"""The duplicate file search engine: a pipeline of worker pools joined by queues."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable

from dupscan.checker import CheckList
from dupscan.metrics import Metrics
from dupscan.queue import (
    Channel,
    WaitGroup,
    fetch_queue,
    hash_queue,
    match_queue,
    result_queue,
    size_queue,
)
from dupscan.task import Key, Result, Task, build_result
from dupscan.workers import Hasher, Matcher, Sizer, file_generator, run_pool

log = logging.getLogger(__name__)

FETCHERS = 4
SIZERS = 1
HASHERS = 6
MATCHERS = 8


class SearchEngine:
    """Finds groups of identical files below a root folder."""

    def __init__(self) -> None:
        self.root_path = ""
        self._callback: Callable[[], None] | None = None
        self._pool_count = WaitGroup()
        self._result: Result | None = None
        self._metrics: Metrics | None = None

    def run(self, cancel: threading.Event, root_path: str, callback: Callable[[], None]) -> None:
        """Start the search in the background; ``callback`` is called when it is over."""
        self.root_path = root_path
        self._callback = callback
        self._metrics = Metrics()
        threading.Thread(target=self._run_pipeline, args=(cancel,), daemon=True).start()

    def _run_pipeline(self, cancel: threading.Event) -> None:
        groups: dict[Key, list[str]] = {}
        for task in self._pipeline(cancel):
            groups.setdefault(task.key, []).append(task.path)
        self._result = build_result(groups)

        self._pool_count.wait()

        if self._callback is not None:
            self._callback()

    def _pipeline(self, cancel: threading.Event) -> Channel[Task]:
        metrics = self._metrics
        assert metrics is not None
        rec: Channel[Task] = Channel()

        out = file_generator(self.root_path, FETCHERS, rec, fetch_queue(cancel, rec, metrics), self._pool_count)
        out = run_pool(Sizer(), SIZERS, size_queue(cancel, out, metrics), CheckList(), self._pool_count)
        out = run_pool(Hasher(), HASHERS, hash_queue(cancel, out, metrics), CheckList(), self._pool_count)
        out = run_pool(Matcher(), MATCHERS, match_queue(cancel, out, metrics), CheckList(), self._pool_count)
        return result_queue(cancel, out, metrics)

    def progress(self) -> bytes:
        """Current metrics as JSON, with the duration brought up to date."""
        if self._metrics is None:
            raise RuntimeError("search has not been started")
        self._metrics.duration = datetime.now().astimezone() - self._metrics.start_time
        return self._metrics.to_json()

    def result(self) -> Result | None:
        """The sorted groups of duplicates, or None while the search is running."""
        return self._result


def get_engine() -> SearchEngine:
    """Create a new search engine."""
    return SearchEngine()