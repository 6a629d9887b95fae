"""Progress reports and the final statistics of a search."""

from __future__ import annotations

import json
import threading
from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from dupscan.config import Config
    from dupscan.engine import SearchEngine


def _decimal(value: int, unit: int) -> str:
    whole, fraction = divmod(value, unit)
    if not fraction:
        return str(whole)
    return f"{whole}." + str(fraction).zfill(len(str(unit)) - 1).rstrip("0")


def _format_duration(nanoseconds: int) -> str:
    """Render nanoseconds like ``1h2m3.5s`` or ``250ms``."""
    if nanoseconds == 0:
        return "0s"
    sign = "-" if nanoseconds < 0 else ""
    ns = abs(nanoseconds)
    for unit, suffix in ((1, "ns"), (1_000, "µs"), (1_000_000, "ms")):
        if ns < unit * 1_000:
            return f"{sign}{_decimal(ns, unit)}{suffix}"
    hours, rest = divmod(ns, 3_600_000_000_000)
    minutes, rest = divmod(rest, 60_000_000_000)
    text = f"{_decimal(rest, 1_000_000_000)}s"
    if hours or minutes:
        text = f"{minutes}m{text}"
    if hours:
        text = f"{hours}h{text}"
    return sign + text


def _percent(part: int, whole: int) -> str:
    if whole == 0:
        return "NaN" if part == 0 else "+Inf"
    return f"{part * 100 / whole:.2f}"


def metrics_summary(direction: Mapping[str, Any]) -> str:
    """``in_waiting_out`` counts for one stage queue."""
    inp = direction["inpQueue"]["count"]
    out = direction["outQueue"]["count"]
    return f"{inp}_{inp - out}_{out}"


def progress_line(stat: Mapping[str, Any]) -> str:
    """One line of progress from decoded engine metrics."""
    parts = [str(threading.active_count())]
    for stage, label in (("fetch", "folder"), ("size", "fetch"), ("hash", "size"), ("match", "hash"), ("pack", "match")):
        parts += [label, metrics_summary(stat[stage])]
    parts += ["result", _format_duration(stat["duration"])]
    return " ".join(parts)


def progress_monitor(cancel: threading.Event, engine: SearchEngine, interval: float = 10.0) -> None:
    """Print progress every ``interval`` seconds until ``cancel`` is set."""
    print(f"Progress (every {interval:g} seconds):")
    while True:
        try:
            stat = json.loads(engine.progress())
        except ValueError as exc:
            print("Unmarshal error", exc)
            return
        if cancel.is_set():
            return
        print(progress_line(stat))
        cancel.wait(interval)


def format_statistic(engine: SearchEngine, config: Config) -> str:
    """The final report of a finished search."""
    stat = json.loads(engine.progress())
    count = {stage: stat[stage]["inpQueue"]["count"] for stage in ("fetch", "size", "hash", "match", "pack")}
    size_mb = {stage: stat[stage]["inpQueue"]["size"] / 1_000_000 for stage in ("size", "pack")}

    def ratio(label: str, inp: int, out: int) -> str:
        return f"{label:16}{inp:12d} {inp - out:12d} {out:12d} ({_percent(out, inp)} %)"

    result = engine.result()
    groups = len(result) if result is not None else 0
    start = datetime.fromisoformat(stat["start"]).strftime("%H:%M:%S")

    return "\n".join(
        [
            "------- TOTAL STATISTIC -------",
            f"Time of start:  {start:>12}",
            f"Time of ended:  {datetime.now().strftime('%H:%M:%S'):>12}",
            f"Duration:       {_format_duration(stat['duration']):>12}",
            "Total processed <count (size Mb)>:",
            f"- folders:      {count['fetch']:12d}",
            f"- files:        {count['size']:12d} ({size_mb['size']:.3f} Mb)",
            "Performance of filtration <inp-filtered-out (out %)>:",
            ratio("- sizer:", count["size"], count["hash"]),
            ratio("- hasher:", count["hash"], count["match"]),
            ratio("- matcher:", count["match"], count["pack"]),
            "Found duplicates <count (size Mb)>:",
            f"- groups of files:{groups:10d}",
            f"- files:          {count['pack']:10d} ({size_mb['pack']:.3f} Mb)",
            f"File with result: {config.result_file_name}",
            f"File with logs: {config.logger_file_name}",
            "-------------------------------",
        ]
    )


def print_statistic(engine: SearchEngine, config: Config) -> None:
    """Print the final report, or the decoding error if the metrics are unreadable."""
    try:
        print(format_statistic(engine, config))
    except ValueError as exc:
        print("Unmarshal error", exc)