import io
import json
import logging

import pytest

from dupscan.logger import new_logger, open_log_file, parse_level
from dupscan.task import Info, Key, Task
from dupscan.workers import check_error


@pytest.mark.parametrize(
    "name, expected",
    [
        ("debug", logging.DEBUG),
        ("DEBUG", logging.DEBUG),
        ("info", logging.INFO),
        ("warn", logging.WARNING),
        ("ERROR", logging.ERROR),
        ("bogus", logging.INFO),
        ("", logging.INFO),
    ],
)
def test_parse_level(name, expected):
    assert parse_level(name) == expected


def test_parse_level_offset_is_between_levels():
    level = parse_level("info+2")
    assert logging.INFO < level < logging.WARNING


def test_text_output_and_level_filter():
    buf = io.StringIO()
    logger = new_logger(level="info", log_file=buf)
    logger.debug("hidden")
    logger.info("hello world")
    lines = buf.getvalue().splitlines()
    assert len(lines) == 1
    assert "level=INFO" in lines[0]
    assert 'msg="hello world"' in lines[0]
    assert "hidden" not in buf.getvalue()


def test_json_output():
    buf = io.StringIO()
    logger = new_logger(level=logging.DEBUG, is_json=True, log_file=buf)
    logger.debug("hi")
    record = json.loads(buf.getvalue())
    assert record["msg"] == "hi"
    assert record["level"] == "DEBUG"
    assert "source" not in record


def test_add_source_in_text():
    buf = io.StringIO()
    logger = new_logger(add_source=True, log_file=buf)
    logger.info("where")
    assert "source=" in buf.getvalue()
    assert "test_logger.py" in buf.getvalue()


def test_add_source_in_json():
    buf = io.StringIO()
    logger = new_logger(add_source=True, is_json=True, log_file=buf)
    logger.info("where")
    record = json.loads(buf.getvalue())
    assert record["source"]["file"].endswith("test_logger.py")


def test_set_default_routes_package_logs():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    buf = io.StringIO()
    try:
        new_logger(level="debug", set_default=True, log_file=buf)
        task = Task(Key(size=1), Info(path="/test/path"))
        assert check_error(OSError("test error message"), "Failed to process", "testMethod", object(), task)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
    output = buf.getvalue()
    assert "level=INFO" in output
    assert "method=testMethod" in output
    assert "path=/test/path" in output


def test_non_default_logger_does_not_propagate():
    buf = io.StringIO()
    logger = new_logger(log_file=buf)
    assert logger.propagate is False
    assert logger is not logging.getLogger()


def test_open_log_file_truncates(tmp_path):
    path = tmp_path / "run.log"
    path.write_text("old content\n")
    with open_log_file(str(path)) as handle:
        handle.write("new\n")
    assert path.read_text() == "new\n"