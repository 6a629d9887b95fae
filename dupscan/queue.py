"""Channels, wait groups and the unbounded queues joining pipeline stages."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Callable, Generic, Iterator, TypeVar

from dupscan.metrics import Metrics, QueueStat
from dupscan.task import Task

log = logging.getLogger(__name__)

T = TypeVar("T")

_POLL_INTERVAL = 0.05


class ChannelClosed(Exception):
    """Sending to a closed channel, or receiving from a closed and drained one."""


class Channel(Generic[T]):
    """A FIFO channel; with capacity 0 a send waits until its item is received."""

    def __init__(self, capacity: int = 0) -> None:
        if capacity < 0:
            raise ValueError("channel capacity must not be negative")
        self._capacity = capacity
        self._items: deque[T] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._sent = 0
        self._received = 0

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def send(self, item: T) -> None:
        with self._cond:
            if self._capacity:
                self._cond.wait_for(lambda: len(self._items) < self._capacity or self._closed)
            if self._closed:
                raise ChannelClosed("send on closed channel")
            ticket = self._sent
            self._sent += 1
            self._items.append(item)
            self._cond.notify_all()
            if not self._capacity:
                self._cond.wait_for(lambda: self._received > ticket)

    def close(self) -> None:
        with self._cond:
            if self._closed:
                raise ChannelClosed("close of closed channel")
            self._closed = True
            self._cond.notify_all()

    def receive(self, timeout: float | None = None) -> T:
        """Take the next item, waiting up to ``timeout`` seconds."""
        with self._cond:
            if not self._cond.wait_for(lambda: self._items or self._closed, timeout):
                raise TimeoutError("no item received in time")
            if not self._items:
                raise ChannelClosed("receive from closed channel")
            self._received += 1
            self._cond.notify_all()
            return self._items.popleft()

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.receive()
            except ChannelClosed:
                return


class WaitGroup:
    """Waits for a number of activities to finish."""

    def __init__(self) -> None:
        self._count = 0
        self._cond = threading.Condition()

    def add(self, delta: int = 1) -> None:
        with self._cond:
            if self._count + delta < 0:
                raise ValueError("negative WaitGroup counter")
            self._count += delta
            self._cond.notify_all()

    def done(self) -> None:
        self.add(-1)

    def wait(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._count == 0)


class TaskQueue:
    """Unbounded FIFO of tasks, fed by one thread and drained by another."""

    def __init__(self, pool_name: str) -> None:
        self.pool_name = pool_name
        self._tasks: deque[Task] = deque()
        self._cond = threading.Condition()
        self._signalled = False
        self._finished = False

    def push(self, task: Task) -> None:
        with self._cond:
            self._tasks.append(task)
            self._signalled = True
            self._cond.notify_all()

    def pop(self) -> Task | None:
        with self._cond:
            return self._tasks.popleft() if self._tasks else None

    def _finish(self) -> None:
        with self._cond:
            self._finished = True
            self._cond.notify_all()

    def _wait(self, timeout: float) -> tuple[bool, bool]:
        """Wait for a signal; return (signalled, finished), consuming the signal."""
        with self._cond:
            self._cond.wait_for(lambda: self._signalled or self._finished, timeout)
            signalled, self._signalled = self._signalled, False
            return signalled, self._finished


def _spawn(target: Callable[[], None]) -> None:
    threading.Thread(target=target, daemon=True).start()


def counter(source: Channel[Task], adder: Callable[[int], None]) -> Channel[Task]:
    """Pass tasks through, calling ``adder`` with each task's size."""
    out: Channel[Task] = Channel()

    def forward() -> None:
        try:
            for task in source:
                out.send(task)
                adder(task.key.size)
        finally:
            out.close()

    _spawn(forward)
    return out


def input_queue(pool_name: str, source: Channel[Task]) -> TaskQueue:
    """A queue collecting everything that arrives on ``source``."""
    queue = TaskQueue(pool_name)

    def feed() -> None:
        log.debug("InpProcess of Queue - started. poolName=%s", pool_name)
        try:
            for task in source:
                queue.push(task)
        finally:
            queue._finish()
        log.debug("InpProcess of Queue - stopped. poolName=%s", pool_name)

    _spawn(feed)
    return queue


def output_queue(cancel: threading.Event, queue: TaskQueue) -> Channel[Task]:
    """A channel emitting the queue's tasks until it is done or cancelled."""
    out: Channel[Task] = Channel()
    name = queue.pool_name

    def drain() -> None:
        log.debug("OutProcess of Queue - started. poolName=%s", name)
        try:
            while not cancel.is_set():
                signalled, finished = queue._wait(_POLL_INTERVAL)
                if not (signalled or finished):
                    continue
                while (task := queue.pop()) is not None:
                    if cancel.is_set():
                        log.debug("OutProcess of Queue - cancelled during task send. poolName=%s", name)
                        return
                    out.send(task)
                if finished:
                    log.debug("OutProcess of Queue - stopped because queue is done and empty. poolName=%s", name)
                    return
            log.debug("OutProcess of Queue - cancelled. poolName=%s", name)
        finally:
            out.close()

    _spawn(drain)
    return out


def _stage(cancel: threading.Event, source: Channel[Task], stat: QueueStat, pool_name: str) -> Channel[Task]:
    channel = counter(source, stat.inp.add)
    channel = output_queue(cancel, input_queue(pool_name, channel))
    return counter(channel, stat.out.add)


def fetch_queue(cancel: threading.Event, source: Channel[Task], metrics: Metrics) -> Channel[Task]:
    return _stage(cancel, source, metrics.fetch, "fetchers")


def size_queue(cancel: threading.Event, source: Channel[Task], metrics: Metrics) -> Channel[Task]:
    return _stage(cancel, source, metrics.size, "sizers")


def hash_queue(cancel: threading.Event, source: Channel[Task], metrics: Metrics) -> Channel[Task]:
    return _stage(cancel, source, metrics.hash, "hashers")


def match_queue(cancel: threading.Event, source: Channel[Task], metrics: Metrics) -> Channel[Task]:
    return _stage(cancel, source, metrics.match, "matchers")


def result_queue(cancel: threading.Event, source: Channel[Task], metrics: Metrics) -> Channel[Task]:
    return _stage(cancel, source, metrics.pack, "packer")