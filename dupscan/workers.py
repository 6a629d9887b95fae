"""Worker pools of the search pipeline: fetching, sizing, hashing and matching."""

from __future__ import annotations

import logging
import os
import threading
import zlib
from dataclasses import replace
from typing import BinaryIO, Callable, Protocol

from dupscan.checker import CheckList
from dupscan.queue import Channel, ChannelClosed, WaitGroup
from dupscan.task import Info, Key, Task

log = logging.getLogger(__name__)

DEFAULT_COMPARE_BUFFER = 2 * 1024


class _Worker(Protocol):
    def run(self, source: Channel[Task], out: Channel[Task], checker: CheckList) -> None: ...


def _spawn(target: Callable[..., None], *args: object) -> None:
    threading.Thread(target=target, args=args, daemon=True).start()


def _type_name(item: object) -> str:
    return type(item).__name__


def check_error(error: BaseException | None, msg: str, method: str, item: object, task: Task) -> bool:
    """Log ``error`` for one task; return True when there was a real error."""
    if error is None or isinstance(error, EOFError):
        return False
    log.info(
        '%s item=%s method=%s error="%s" path=%s',
        msg,
        _type_name(item),
        method,
        error,
        task.path,
    )
    return True


def check_tasks_error(
    error: BaseException | None, msg: str, method: str, item: object, task1: Task, task2: Task
) -> bool:
    """Log ``error`` concerning two tasks; return True when there was a real error."""
    if error is None or isinstance(error, EOFError):
        return False
    log.info(
        '%s item=%s method=%s error="%s" path-1=%s path-2=%s',
        msg,
        _type_name(item),
        method,
        error,
        task1.path,
        task2.path,
    )
    return True


def files_equal(file1: BinaryIO, file2: BinaryIO, buffer_size: int = DEFAULT_COMPARE_BUFFER) -> bool:
    """Compare two open binary streams byte by byte, chunk by chunk."""
    while True:
        chunk1 = file1.read(buffer_size)
        chunk2 = file2.read(buffer_size)
        if chunk1 != chunk2:
            return False
        if not chunk1:
            return True


class Dispatcher:
    """Keeps count of unprocessed folders and closes ``rec`` when fetching is over."""

    def __init__(self, rec: Channel[Task]) -> None:
        self.rec = rec
        self.inc: Channel[int] = Channel()
        self.folders_count = 0
        self._cond = threading.Condition()
        self._done = False
        self._stopped = False

    @property
    def done(self) -> bool:
        with self._cond:
            return self._done

    def start(self, root_path: str) -> None:
        """Send the first folder into the pipeline."""
        try:
            self.inc.send(1)
            self.rec.send(Task(Key(), Info(path=root_path)))
        except ChannelClosed:
            log.debug("Dispatcher - fetchers stopped before the start. path=%s", root_path)

    def wait_queue_done(self) -> None:
        """Track folder counts until every folder has been processed."""
        for delta in self.inc:
            self.folders_count += delta
            if self.folders_count == 0:
                with self._cond:
                    self._done = True
                    self._cond.notify_all()
                return

    def _stop(self) -> None:
        with self._cond:
            self._stopped = True
            self._cond.notify_all()

    def wait_fetchers_stopped(self) -> None:
        """Close ``rec`` once all folders are done or all fetchers have stopped."""
        with self._cond:
            self._cond.wait_for(lambda: self._done or self._stopped)
        self.rec.close()


class Fetcher:
    """Lists folders: subfolders go back to ``rec``, files go to ``out`` with their size."""

    def run(self, source: Channel[Task], out: Channel[Task], rec: Channel[Task], inc: Channel[int]) -> None:
        for task in source:
            try:
                self._fetch(task, out, rec, inc)
            finally:
                inc.send(-1)

    def _fetch(self, task: Task, out: Channel[Task], rec: Channel[Task], inc: Channel[int]) -> None:
        try:
            with os.scandir(task.path) as listing:
                entries = list(listing)
        except OSError as exc:
            check_error(exc, "Objects read error.", "readDir()", self, task)
            return

        for entry in entries:
            entry_path = os.path.join(task.path, entry.name)
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError:
                is_dir = False
            if is_dir:
                inc.send(1)
                rec.send(Task(Key(), Info(path=entry_path)))
                continue
            try:
                size = entry.stat(follow_symlinks=False).st_size
            except OSError as exc:
                check_error(exc, "Object-info read error.", "object.Info()", self, task)
                continue
            out.send(Task(Key(size=size), Info(path=entry_path)))


def _forward_duplicates(task: Task, out: Channel[Task], checker: CheckList) -> bool:
    first, detected = checker.verify(task)
    if detected:
        out.send(task)
        if first is not None:
            out.send(first)
    return detected


class Sizer:
    """Passes on only files whose size has been seen more than once."""

    def run(self, source: Channel[Task], out: Channel[Task], checker: CheckList) -> None:
        for task in source:
            _forward_duplicates(task, out, checker)


class Hasher:
    """Hashes the head of each file and passes on files whose hash repeats."""

    head_size = 512

    def run(self, source: Channel[Task], out: Channel[Task], checker: CheckList) -> None:
        for task in source:
            self._hash(task, out, checker)

    def _hash(self, task: Task, out: Channel[Task], checker: CheckList) -> None:
        try:
            handle = open(task.path, "rb")
        except OSError as exc:
            check_error(exc, "File open error.", "os.Open()", self, task)
            return
        with handle:
            try:
                head = handle.read(self.head_size)
            except OSError as exc:
                check_error(exc, "File read error.", "file.Read()", self, task)
                return
        task.key = replace(task.key, hash=zlib.crc32(head))
        _forward_duplicates(task, out, checker)


class Matcher:
    """Compares candidates byte by byte and assigns each distinct content its own group."""

    buffer_size = DEFAULT_COMPARE_BUFFER

    def run(self, source: Channel[Task], out: Channel[Task], checker: CheckList) -> None:
        for task in source:
            self._match(task, out, checker)

    def _match(self, task: Task, out: Channel[Task], checker: CheckList) -> None:
        while True:
            reviewed = checker.review(task)
            if reviewed is None:
                return

            try:
                file1 = open(task.path, "rb")
            except OSError as exc:
                check_error(exc, "File1 open error.", "os.Open()", self, task)
                return

            with file1:
                try:
                    file2 = open(reviewed.path, "rb")
                except OSError as exc:
                    check_error(exc, "File2 open error.", "os.Open()", self, reviewed)
                    task.key = replace(task.key, equal=task.key.equal + 1)
                    continue
                with file2:
                    try:
                        equal = files_equal(file1, file2, self.buffer_size)
                    except OSError as exc:
                        check_tasks_error(
                            exc,
                            "Check equal error (file1.Read() or file2.Read()).",
                            "checkEqual()",
                            self,
                            task,
                            reviewed,
                        )
                        equal = False

            if equal and _forward_duplicates(task, out, checker):
                return
            task.key = replace(task.key, equal=task.key.equal + 1)


def file_generator(
    root_path: str,
    amount: int,
    rec: Channel[Task],
    source: Channel[Task],
    pool_count: WaitGroup,
) -> Channel[Task]:
    """Start ``amount`` fetchers walking ``root_path``; return the channel of found files."""
    out: Channel[Task] = Channel()
    dispatcher = Dispatcher(rec)
    _spawn(dispatcher.start, root_path)
    _spawn(dispatcher.wait_queue_done)
    _spawn(dispatcher.wait_fetchers_stopped)

    workers = WaitGroup()
    pool_count.add(1)

    def work() -> None:
        try:
            Fetcher().run(source, out, dispatcher.rec, dispatcher.inc)
        finally:
            workers.done()

    for _ in range(amount):
        workers.add(1)
        _spawn(work)
    log.debug("Worker-pool - started. workerType=%s", Fetcher.__name__)

    def finish() -> None:
        workers.wait()
        out.close()
        dispatcher.inc.close()
        dispatcher._stop()
        pool_count.done()
        log.debug("Worker-pool - stopped. workerType=%s", Fetcher.__name__)

    _spawn(finish)
    return out


def run_pool(
    worker: _Worker,
    amount: int,
    source: Channel[Task],
    checker: CheckList,
    pool_count: WaitGroup,
) -> Channel[Task]:
    """Run ``amount`` threads of ``worker`` over ``source``; return their output channel."""
    out: Channel[Task] = Channel()
    workers = WaitGroup()
    pool_count.add(1)
    name = _type_name(worker)

    def work() -> None:
        try:
            worker.run(source, out, checker)
        finally:
            workers.done()

    for _ in range(amount):
        workers.add(1)
        _spawn(work)
    log.debug("Worker-pool - started. workerType=%s", name)

    def finish() -> None:
        workers.wait()
        out.close()
        pool_count.done()
        log.debug("Worker-pool - stopped. workerType=%s", name)

    _spawn(finish)
    return out