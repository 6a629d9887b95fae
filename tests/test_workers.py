import io
import logging
import os
import threading
import zlib

import pytest

from dupscan.checker import CheckList
from dupscan.metrics import Metrics
from dupscan.queue import Channel, ChannelClosed, WaitGroup, fetch_queue
from dupscan.task import Info, Key, Task
from dupscan.workers import (
    Dispatcher,
    Hasher,
    Matcher,
    Sizer,
    check_error,
    check_tasks_error,
    file_generator,
    files_equal,
    run_pool,
)


def _write(directory, name, content):
    path = os.path.join(str(directory), name)
    with open(path, "wb") as handle:
        handle.write(content)
    return path


def _filled_channel(tasks):
    channel = Channel(capacity=max(len(tasks), 1))
    for task in tasks:
        channel.send(task)
    channel.close()
    return channel


def _collect(worker, amount, tasks, checker=None):
    pool = WaitGroup()
    out = run_pool(worker, amount, _filled_channel(tasks), checker or CheckList(), pool)
    received = list(out)
    pool.wait()
    return received


def test_files_equal_identical_streams():
    assert files_equal(io.BytesIO(b"abc" * 1000), io.BytesIO(b"abc" * 1000)) is True


def test_files_equal_both_empty():
    assert files_equal(io.BytesIO(b""), io.BytesIO(b"")) is True


def test_files_equal_different_length():
    assert files_equal(io.BytesIO(b"abcd"), io.BytesIO(b"abc"), 2) is False


def test_files_equal_difference_after_first_chunk():
    data = b"x" * 10
    assert files_equal(io.BytesIO(data + b"a"), io.BytesIO(data + b"b"), 4) is False


def test_files_equal_small_buffer_same_content():
    assert files_equal(io.BytesIO(b"0123456789"), io.BytesIO(b"0123456789"), 3) is True


def test_check_error_logs_at_info(caplog):
    caplog.set_level(logging.DEBUG, logger="dupscan.workers")
    task = Task(Key(size=1), Info(path="/test/path"))
    has_error = check_error(ValueError("test error message"), "Failed to process", "testMethod", Hasher(), task)
    assert has_error is True
    records = [r for r in caplog.records if r.levelno == logging.INFO]
    assert len(records) == 1
    message = records[0].getMessage()
    assert message.startswith("Failed to process")
    assert "method=testMethod" in message
    assert 'error="test error message"' in message
    assert "item=Hasher" in message
    assert "path=/test/path" in message


def test_check_error_ignores_none_and_eof(caplog):
    caplog.set_level(logging.DEBUG, logger="dupscan.workers")
    task = Task(Key(), Info(path="/p"))
    assert check_error(None, "m", "x", Sizer(), task) is False
    assert check_error(EOFError(), "m", "x", Sizer(), task) is False
    assert caplog.records == []


def test_check_tasks_error_logs_both_paths(caplog):
    caplog.set_level(logging.DEBUG, logger="dupscan.workers")
    task1 = Task(Key(size=10), Info(path="/path/file1.txt"))
    task2 = Task(Key(size=10), Info(path="/path/file2.txt"))
    has_error = check_tasks_error(
        OSError("comparison failed"), "Check equal error", "checkEqual()", Matcher(), task1, task2
    )
    assert has_error is True
    records = [r for r in caplog.records if r.levelno == logging.INFO]
    assert len(records) == 1
    message = records[0].getMessage()
    assert message.startswith("Check equal error")
    assert "method=checkEqual()" in message
    assert 'error="comparison failed"' in message
    assert "item=Matcher" in message
    assert "path-1=/path/file1.txt" in message
    assert "path-2=/path/file2.txt" in message


def test_check_tasks_error_none_is_not_an_error():
    task = Task(Key(), Info(path="/p"))
    assert check_tasks_error(None, "m", "x", Matcher(), task, task) is False


def test_dispatcher_closes_rec_when_all_folders_done():
    rec = Channel()
    dispatcher = Dispatcher(rec)
    for target, args in (
        (dispatcher.start, ("root",)),
        (dispatcher.wait_queue_done, ()),
        (dispatcher.wait_fetchers_stopped, ()),
    ):
        threading.Thread(target=target, args=args, daemon=True).start()

    first = rec.receive(timeout=5)
    assert first.path == "root"
    assert first.key == Key()
    dispatcher.inc.send(-1)
    with pytest.raises(ChannelClosed):
        rec.receive(timeout=5)
    assert dispatcher.done is True
    assert dispatcher.folders_count == 0


def test_file_generator_lists_files_recursively(tmp_path):
    sub = tmp_path / "sub"
    sub.mkdir()
    (tmp_path / "empty_dir").mkdir()
    file1 = _write(tmp_path, "gen_file1.txt", b"x" * 10)
    file2 = _write(sub, "gen_file2.txt", b"y" * 20)

    cancel = threading.Event()
    rec = Channel()
    source = fetch_queue(cancel, rec, Metrics())
    pool = WaitGroup()
    out = file_generator(str(tmp_path), 1, rec, source, pool)
    received = list(out)
    pool.wait()

    assert sorted(task.path for task in received) == sorted([file1, file2])
    sizes = {task.path: task.key.size for task in received}
    assert sizes[file1] == 10
    assert sizes[file2] == 20


def test_file_generator_missing_root_yields_nothing(tmp_path, caplog):
    caplog.set_level(logging.INFO, logger="dupscan.workers")
    missing = str(tmp_path / "missing")
    cancel = threading.Event()
    rec = Channel()
    source = fetch_queue(cancel, rec, Metrics())
    pool = WaitGroup()
    received = list(file_generator(missing, 4, rec, source, pool))
    pool.wait()
    assert received == []
    assert any("Objects read error." in r.getMessage() for r in caplog.records)


def test_sizer_unique_sizes_pass_nothing(tmp_path):
    tasks = [
        Task(Key(size=10), Info(path=_write(tmp_path, "small.txt", b"a" * 10))),
        Task(Key(size=2 * 1024 * 1024), Info(path=str(tmp_path / "large.txt"))),
        Task(Key(size=0), Info(path=_write(tmp_path, "zero.txt", b""))),
    ]
    assert _collect(Sizer(), 1, tasks) == []


def test_sizer_repeated_size_passes_every_file():
    tasks = [Task(Key(size=7), Info(path=f"/p/{name}")) for name in ("a", "b", "c")]
    received = _collect(Sizer(), 1, tasks)
    assert sorted(task.path for task in received) == ["/p/a", "/p/b", "/p/c"]


def test_hasher_passes_files_with_equal_heads(tmp_path):
    content_a = b"a" * 100
    file_a = _write(tmp_path, "fileA.txt", content_a)
    file_b = _write(tmp_path, "fileB.txt", b"a" * 100)
    file_c = _write(tmp_path, "fileC.txt", b"b" * 100)
    missing = str(tmp_path / "no_such_file.txt")

    tasks = [Task(Key(size=100), Info(path=p)) for p in (file_a, file_b, file_c, missing)]
    received = _collect(Hasher(), 1, tasks)

    assert sorted(task.path for task in received) == sorted([file_a, file_b])
    assert all(task.key.hash == zlib.crc32(content_a) for task in received)


def test_hasher_hashes_only_the_head(tmp_path):
    head = b"h" * 512
    file_a = _write(tmp_path, "a.bin", head + b"1")
    file_b = _write(tmp_path, "b.bin", head + b"2")
    tasks = [Task(Key(size=513), Info(path=p)) for p in (file_a, file_b)]
    received = _collect(Hasher(), 2, tasks)
    assert sorted(task.path for task in received) == sorted([file_a, file_b])
    assert {task.key.hash for task in received} == {zlib.crc32(head)}


def test_matcher_finds_identical_files(tmp_path):
    content_a = os.urandom(1024)
    content_c = os.urandom(1024)
    file1 = _write(tmp_path, "file1.bin", content_a)
    file2 = _write(tmp_path, "file2.bin", content_a)
    file3 = _write(tmp_path, "file3.bin", content_c)
    hash_a = zlib.crc32(content_a)

    checker = CheckList()
    task1 = Task(Key(size=1024, hash=hash_a), Info(path=file1))
    checker.verify(task1)
    tasks = [
        Task(Key(size=1024, hash=hash_a), Info(path=file2)),
        Task(Key(size=1024, hash=zlib.crc32(content_c)), Info(path=file3)),
        Task(Key(size=1024, hash=0), Info(path=str(tmp_path / "non_existent_matcher.bin"))),
    ]
    received = _collect(Matcher(), 1, tasks, checker)

    assert sorted(task.path for task in received) == sorted([file1, file2])
    assert all(task.key.hash == hash_a for task in received)
    assert all(task.key.equal == 0 for task in received)


def test_matcher_separates_different_content_with_equal_hash(tmp_path):
    first = _write(tmp_path, "first.bin", b"one")
    second = _write(tmp_path, "second.bin", b"two")
    checker = CheckList()
    key = Key(size=3, hash=42)
    received = _collect(Matcher(), 1, [Task(key, Info(path=p)) for p in (first, second)], checker)
    assert received == []
    assert Key(size=3, hash=42, equal=0) in checker
    assert checker[Key(size=3, hash=42, equal=1)].path == second


def test_run_pool_concurrent_matchers(tmp_path):
    duplicate = b"z" * 100
    tasks = []
    for i in range(50):
        unique = os.urandom(100)
        tasks.append(Task(Key(size=100, hash=zlib.crc32(unique)), Info(path=_write(tmp_path, f"uniq_{i}.txt", unique))))
    for i in range(50):
        path = _write(tmp_path, f"dup_{i}.txt", duplicate)
        tasks.append(Task(Key(size=100, hash=zlib.crc32(duplicate)), Info(path=path)))

    received = _collect(Matcher(), 5, tasks)

    assert len(received) == 50
    assert all("dup_" in os.path.basename(task.path) for task in received)
    assert len({task.path for task in received}) == 50