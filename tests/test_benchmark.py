import json

import pytest
from benchmark import VERSION, TraceRunner, generate_trace
from cache import READ, WRITE
from tracefile import Access, Switch, parse_trace


class Capture:
    """Printer that keeps every line instead of writing to the console."""
    def __init__(self):
        self.lines = []

    def __call__(self, *values, sep=" ", end="\n"):
        self.lines.append(sep.join(str(v) for v in values))


SMALL = {"cache": {"num_sets": 1, "associativity": 2, "line_size_bytes": 32}}


def test_runner_uses_default_geometry():
    runner = TraceRunner({}, printer=Capture())
    cfg = runner.engine.config()
    assert (cfg["num_sets"], cfg["associativity"], cfg["line_size"]) == (1024, 4, 32)
    assert runner.engine.miss_penalty == 50 and runner.engine.writeback_penalty == 50


def test_run_returns_summary_and_prints_report():
    out = Capture()
    runner = TraceRunner(SMALL, printer=out)
    summary = runner.run([Access(WRITE, 0x00), Access(WRITE, 0x20), Access(WRITE, 0x40)])
    assert summary["accesses"] == 3 and summary["misses"] == 3
    assert summary["cycles"] == 153
    assert summary["miss_ratio"] == 1.0
    assert summary["version_requested"] is False
    assert runner.cycle_costs == [51, 51, 51]
    assert runner.hit_flags == [False, False, False]
    assert out.lines[0] == "Total number of clockcycles = 153"
    assert out.lines[-1] == "Miss ratio = 1.0000, Average cycles per instruction = 51.0000"


def test_write_miss_dirty_from_config():
    cfg = {"cache": dict(SMALL["cache"], write_miss_dirty=True)}
    summary = TraceRunner(cfg, printer=Capture()).run(
        [Access(WRITE, 0x00), Access(WRITE, 0x20), Access(WRITE, 0x40)])
    assert summary["cycles"] == 203
    assert summary["write_backs"] == 1


def test_version_switch_stops_replay():
    out = Capture()
    runner = TraceRunner(SMALL, printer=out)
    summary = runner.run([Access(READ, 0), Switch("v"), Access(READ, 0x20)])
    assert out.lines[0] == f"Version {VERSION}"
    assert summary["accesses"] == 1
    assert summary["version_requested"] is True


def test_echo_switch_only_affects_later_accesses():
    out = Capture()
    TraceRunner(SMALL, printer=out).run([Access(READ, 0x4), Switch("t"), Access(WRITE, 0x20)])
    assert "r 0x00000004" not in out.lines
    assert "w 0x00000020" in out.lines


def test_debug_dump():
    out = Capture()
    runner = TraceRunner(SMALL, printer=out)
    runner.run([
        Switch("d"),
        Access(WRITE, 0x00),
        Access(WRITE, 0x00),
        Access(READ, 0x20),
        Access(READ, 0x40),
    ])
    assert "cache write miss to line 0" in out.lines
    assert "cache write hit to line 0" in out.lines
    assert "cache read miss to line 1" in out.lines
    assert "Dirty bit is set. So writing back line 0 of set: 0 to main memory" in out.lines
    assert out.lines.count("\t\t\tSet: 0") == 4
    assert "Line: 0\tTag: 0x00002\tLRU: 0\tValid: 1\tDirty: 0" in out.lines
    assert "Line: 1\tTag: 0x00001\tLRU: 1\tValid: 1\tDirty: 0" in out.lines


def test_save_results(tmp_path):
    runner = TraceRunner(SMALL, printer=Capture())
    summary = runner.run([Access(READ, 0)])
    path = runner.save_results(summary, {"results_dir": str(tmp_path / "res")})
    with open(path) as f:
        saved = json.load(f)
    assert saved["accesses"] == 1
    assert saved["cache"]["tag_bits"] == 27


def test_generate_sequential_trace():
    trace = generate_trace(num_requests=10, working_set_kb=1, line_size=128,
                           read_ratio=1.0, access_pattern="sequential")
    assert [a.address for a in trace] == [(i % 8) * 128 for i in range(10)]
    assert all(a.op == READ for a in trace)


def test_generate_trace_is_reproducible():
    a = generate_trace(num_requests=200, random_seed=5)
    b = generate_trace(num_requests=200, random_seed=5)
    assert a == b
    assert {x.op for x in a} <= {READ, WRITE}
    assert all(x.address % 32 == 0 and x.address < 256 * 1024 for x in a)


def test_generate_random_trace_only_writes():
    trace = generate_trace(num_requests=50, read_ratio=0.0, access_pattern="random", random_seed=1)
    assert len(trace) == 50
    assert all(a.op == WRITE for a in trace)


def test_generate_trace_rejects_unknown_pattern():
    with pytest.raises(ValueError):
        generate_trace(access_pattern="zigzag")


def test_generated_trace_replays():
    trace = generate_trace(num_requests=500, working_set_kb=64, random_seed=9)
    summary = TraceRunner({}, printer=Capture()).run(trace)
    assert summary["accesses"] == 500
    assert summary["hits"] + summary["misses"] == 500


def test_echo_repeats_trace_text_verbatim():
    out = Capture()
    events = list(parse_trace(["-t\n", "W 0x20\n", "r 017\n"]))
    TraceRunner(SMALL, printer=out).run(events)
    assert out.lines[:2] == ["W 0x20", "r 017"]
