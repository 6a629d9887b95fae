"""Counters describing the flow of tasks through the pipeline."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any


@dataclass
class Statistic:
    """Number of tasks and their total size."""

    count: int = 0
    size: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add(self, size: int) -> None:
        with self._lock:
            self.count += 1
            self.size += size

    def to_dict(self) -> dict[str, int]:
        with self._lock:
            return {"count": self.count, "size": self.size}


@dataclass
class QueueStat:
    inp: Statistic = field(default_factory=Statistic)
    out: Statistic = field(default_factory=Statistic)

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {"inpQueue": self.inp.to_dict(), "outQueue": self.out.to_dict()}


@dataclass
class Metrics:
    """Start time, duration and per-stage counters of a search."""

    start_time: datetime = field(default_factory=lambda: datetime.now().astimezone())
    duration: timedelta = field(default_factory=timedelta)
    fetch: QueueStat = field(default_factory=QueueStat)
    size: QueueStat = field(default_factory=QueueStat)
    hash: QueueStat = field(default_factory=QueueStat)
    match: QueueStat = field(default_factory=QueueStat)
    pack: QueueStat = field(default_factory=QueueStat)

    def to_dict(self) -> dict[str, Any]:
        """Plain form; the duration is in nanoseconds."""
        stages = ("fetch", "size", "hash", "match", "pack")
        data: dict[str, Any] = {
            "start": self.start_time.isoformat(),
            "duration": self.duration // timedelta(microseconds=1) * 1000,
        }
        data.update({name: getattr(self, name).to_dict() for name in stages})
        return data

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict()).encode("utf-8")