"""Logging setup: text or JSON records written to a file or standard output."""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime
from typing import IO, TextIO

_LEVEL_PATTERN = re.compile(r"([A-Za-z]+)([+-]\d+)?")
_WEIGHTS = {"DEBUG": -4, "INFO": 0, "WARN": 4, "ERROR": 8}
_NAMES = {logging.DEBUG: "DEBUG", logging.INFO: "INFO", logging.WARNING: "WARN", logging.ERROR: "ERROR"}


def parse_level(level: str) -> int:
    """Turn a name such as ``debug`` or ``warn+2`` into a logging level; INFO if unknown."""
    match = _LEVEL_PATTERN.fullmatch(level)
    base = _WEIGHTS.get(match.group(1).upper()) if match else None
    if base is None:
        return logging.INFO
    return logging.INFO + (base + int(match.group(2) or 0)) * 10 // 4


def _quote(value: str) -> str:
    if not value or any(ch.isspace() or ch in '="' or not ch.isprintable() for ch in value):
        return json.dumps(value, ensure_ascii=False)
    return value


class _Formatter(logging.Formatter):
    def __init__(self, add_source: bool, is_json: bool) -> None:
        super().__init__()
        self.add_source = add_source
        self.is_json = is_json

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, object] = {
            "time": datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="milliseconds"),
            "level": _NAMES.get(record.levelno, logging.getLevelName(record.levelno)),
        }
        if self.add_source:
            data["source"] = (
                {"function": record.funcName, "file": record.pathname, "line": record.lineno}
                if self.is_json
                else f"{record.pathname}:{record.lineno}"
            )
        data["msg"] = record.getMessage()
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        if self.is_json:
            return json.dumps(data, ensure_ascii=False)
        return " ".join(f"{name}={value if name == 'time' else _quote(str(value))}" for name, value in data.items())


def new_logger(
    level: int | str = logging.INFO,
    add_source: bool = False,
    is_json: bool = False,
    set_default: bool = False,
    log_file: TextIO | None = None,
) -> logging.Logger:
    """Build a logger writing to ``log_file`` (standard output when None).

    With ``set_default`` the root logger is reconfigured to use it.
    """
    if isinstance(level, str):
        level = parse_level(level)
    handler = logging.StreamHandler(log_file if log_file is not None else sys.stdout)
    handler.setFormatter(_Formatter(add_source, is_json))
    if set_default:
        logger = logging.getLogger()
        for existing in list(logger.handlers):
            logger.removeHandler(existing)
    else:
        logger = logging.Logger("dupscan")
        logger.propagate = False
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def open_log_file(path: str) -> IO[str]:
    """Open (and truncate) the file that logs are written to."""
    return open(path, "w", encoding="utf-8")