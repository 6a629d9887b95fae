"""Application configuration stored in a YAML file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_FILE_NAME = "fdd-config.yml"

_FIELDS = (
    ("Root Path", "root_path", str),
    ("File name for results", "result_file_name", str),
    ("File name for logs", "logger_file_name", str),
    ("Logging level (info/debug)", "logger_level", str),
    ("Adds source info in logs", "logger_add_source", bool),
)


@dataclass
class Config:
    """Settings of a search run."""

    root_path: str = "."
    result_file_name: str = "fdd-result.txt"
    logger_file_name: str = "fdd-output.log"
    logger_level: str = "debug"
    logger_add_source: bool = False
    config_file_name: str = field(default=DEFAULT_CONFIG_FILE_NAME, compare=False)

    def to_yaml(self) -> str:
        data = {key: getattr(self, attr) for key, attr, _ in _FIELDS}
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)

    def describe(self) -> str:
        return "\n".join(
            [
                "---- CURRENT CONFIGURATION ----",
                f"Root Path:                  {self.root_path}",
                f"File name for results:      {self.result_file_name}",
                f"File name for logs:         {self.logger_file_name}",
                f"Logging level (info/debug): {self.logger_level}",
                f"Adds source info in logs:   {str(self.logger_add_source).lower()}",
                "-------------------------------",
            ]
        )

    def _update(self, data: Any) -> None:
        if data is None:
            return
        if not isinstance(data, dict):
            raise ValueError("configuration must be a mapping of settings")
        for key, attr, kind in _FIELDS:
            value = data.get(key)
            if value is None:
                continue
            if not isinstance(value, kind):
                raise ValueError(f"setting {key!r} must be of type {kind.__name__}, got {value!r}")
            setattr(self, attr, value)


def load_config(file_name: str = DEFAULT_CONFIG_FILE_NAME) -> Config:
    """Read the configuration file, creating it with defaults when it cannot be read."""
    config = Config(config_file_name=file_name)
    path = Path(file_name)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        print(exc)
        path.write_text(config.to_yaml(), encoding="utf-8")
        print("Application created config file and continues to work with default parameters")
    else:
        config._update(yaml.safe_load(text))
    print(config.describe())
    return config