import json
import threading
from datetime import datetime, timedelta

from dupscan.metrics import Metrics, QueueStat, Statistic


def test_statistic_add_accumulates():
    stat = Statistic()
    stat.add(10)
    stat.add(20)
    assert stat.to_dict() == {"count": 2, "size": 30}


def test_statistic_add_is_thread_safe():
    stat = Statistic()
    threads_count = 8
    per_thread = 500

    def work():
        for _ in range(per_thread):
            stat.add(3)

    threads = [threading.Thread(target=work) for _ in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert stat.count == threads_count * per_thread
    assert stat.size == 3 * threads_count * per_thread


def test_queue_stat_keys():
    queue_stat = QueueStat()
    queue_stat.inp.add(5)
    data = queue_stat.to_dict()
    assert set(data) == {"inpQueue", "outQueue"}
    assert data["inpQueue"] == {"count": 1, "size": 5}
    assert data["outQueue"] == {"count": 0, "size": 0}


def test_metrics_to_dict_has_all_sections():
    metrics = Metrics()
    assert set(metrics.to_dict()) == {"start", "duration", "fetch", "size", "hash", "match", "pack"}


def test_metrics_json_round_trip():
    metrics = Metrics()
    metrics.size.inp.add(100)
    metrics.pack.out.add(7)
    data = json.loads(metrics.to_json())
    assert data["size"]["inpQueue"] == {"count": 1, "size": 100}
    assert data["pack"]["outQueue"] == {"count": 1, "size": 7}
    assert datetime.fromisoformat(data["start"]) == metrics.start_time


def test_metrics_duration_in_nanoseconds():
    metrics = Metrics(duration=timedelta(seconds=1, microseconds=500000))
    assert metrics.to_dict()["duration"] == 1_500_000_000


def test_metric_sections_are_independent():
    metrics = Metrics()
    metrics.hash.inp.add(1)
    assert metrics.match.inp.count == 0
    assert metrics.hash.inp.count == 1