import json
import re
import threading

from core.models import PortResult, Result
from core.state import StateManager


def _result(target="example.com", ports=(22,)):
    open_ports = [PortResult(port=p, banner="b") for p in ports]
    return Result(target=target, open_ports=open_ports, total_ports=100, open_count=len(open_ports), duration=1.5)


def test_write_json_layout(tmp_path):
    state = StateManager()
    state.record_result(_result("a"))
    state.record_result(_result("b", ports=()))
    path = state.write_json(str(tmp_path / "out"))
    assert path.parent == tmp_path / "out"
    assert re.fullmatch(r"\d{6}-\d{6}-cli-pscan\.json", path.name)
    data = json.loads(path.read_text())
    assert data["targets"] == ["a", "b"]
    assert data["total_ports"] == 100
    assert data["results"][0]["open_ports"] == [{"port": 22, "banner": "b"}]
    assert data["results"][1]["open_count"] == 0


def test_write_json_for_explicit_results(tmp_path):
    state = StateManager()
    state.record_result(_result("old"))
    path = state.write_json(str(tmp_path), results=[_result("new")])
    assert json.loads(path.read_text())["targets"] == ["new"]


def test_cache_round_trip(tmp_path):
    cache = tmp_path / "cache.json"
    first = StateManager(cache_path=str(cache))
    first.record_result(_result("cached"))
    second = StateManager(cache_path=str(cache))
    assert [r.target for r in second.list_results()] == ["cached"]
    assert second.list_results("other") == []


def test_corrupt_cache_is_ignored(tmp_path):
    cache = tmp_path / "cache.json"
    cache.write_text("{not json")
    assert StateManager(cache_path=str(cache)).list_results() == []


def test_concurrent_record_result_keeps_cache_consistent(tmp_path):
    cache = tmp_path / "cache.json"
    state = StateManager(cache_path=str(cache))

    def record(i):
        for j in range(10):
            state.record_result(_result(f"host-{i}-{j}"))

    threads = [threading.Thread(target=record, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(state.list_results()) == 80
    reloaded = StateManager(cache_path=str(cache))
    assert sorted(r.target for r in reloaded.results) == sorted(r.target for r in state.results)
