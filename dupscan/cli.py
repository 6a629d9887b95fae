"""Command line entry point: search the configured folder for duplicate files."""

from __future__ import annotations

import argparse
import logging
import signal
import threading
from typing import Any

from dupscan.config import load_config
from dupscan.engine import SearchEngine, get_engine
from dupscan.logger import new_logger, open_log_file
from dupscan.monitor import print_statistic, progress_monitor


def save_result(engine: SearchEngine, file_name: str) -> None:
    """Write every group of duplicates: a header line, then one path per line."""
    result = engine.result()
    with open(file_name, "w", encoding="utf-8") as handle:
        for element in result or ():
            handle.write(f"     {len(element.paths)}  {{{element.size}  {element.hash}  {element.group}}}\n")
            for path in element.paths:
                handle.write(f"{path}\n")


def _install_interrupt(cancel: threading.Event) -> tuple[bool, Any]:
    if threading.current_thread() is not threading.main_thread():
        return False, None
    previous = signal.getsignal(signal.SIGINT)

    def on_interrupt(signum: int, frame: object) -> None:
        if cancel.is_set():
            return
        print("Cancelling... ")
        print("The application needs to close all resources and save the current result.")
        print("Please wait...")
        cancel.set()

    signal.signal(signal.SIGINT, on_interrupt)
    return True, previous


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="dupscan",
        description="Find duplicate files below the folder named in the configuration file.",
    )
    parser.parse_args(argv)

    config = load_config()

    log_file = open_log_file(config.logger_file_name)
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    new_logger(
        level=config.logger_level,
        add_source=config.logger_add_source,
        set_default=True,
        log_file=log_file,
    )

    cancel = threading.Event()
    installed, previous = _install_interrupt(cancel)
    try:
        engine = get_engine()
        finished = threading.Event()
        engine.run(cancel, config.root_path, finished.set)
        threading.Thread(target=progress_monitor, args=(cancel, engine), daemon=True).start()
        while not finished.wait(0.2):
            pass
    finally:
        if installed and previous is not None:
            signal.signal(signal.SIGINT, previous)

    try:
        save_result(engine, config.result_file_name)
    except OSError as exc:
        print(exc)

    cancel.set()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    log_file.close()

    print_statistic(engine, config)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())