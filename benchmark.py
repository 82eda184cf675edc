# benchmark.py
import os
import json
import numpy as np
from cache import CacheEngine, READ, WRITE
from printer import Printer
from tracefile import Access, Switch, VERSION_FLAG, ECHO_FLAG, DEBUG_FLAG, format_access

VERSION = "1.3"


def generate_trace(num_requests=10000, working_set_kb=256, line_size=32,
                   read_ratio=0.8, access_pattern="mixed", random_seed=None):
    """
    Build a synthetic list of Access records.
    Addresses are line-aligned; `access_pattern` is "sequential", "random"
    or "mixed" (mostly sequential with 20% random jumps).
    """
    if access_pattern not in ("sequential", "random", "mixed"):
        raise ValueError(f"unknown access pattern {access_pattern!r}")
    rng = np.random.default_rng(random_seed)
    num_blocks = max(1, (working_set_kb * 1024) // line_size)

    if access_pattern == "sequential":
        blocks = np.arange(num_requests) % num_blocks
    elif access_pattern == "random":
        blocks = rng.integers(0, num_blocks, size=num_requests)
    else:
        # mixed: advance a sequential pointer, replacing some steps with a random block
        jumps = rng.random(num_requests) >= 0.8
        randoms = rng.integers(0, num_blocks, size=num_requests)
        blocks = np.empty(num_requests, dtype=np.int64)
        ptr = 0
        for i in range(num_requests):
            if jumps[i]:
                blocks[i] = randoms[i]
            else:
                blocks[i] = ptr
                ptr = (ptr + 1) % num_blocks

    ops = np.where(rng.random(num_requests) < read_ratio, READ, WRITE)
    addrs = (blocks.astype(np.int64) * line_size) & 0xFFFFFFFF
    return [Access(str(op), int(addr), 0) for op, addr in zip(ops, addrs)]


class TraceRunner:
    """
    Replays trace events through a CacheEngine built from the config,
    honouring the -v/-t/-d switches found in the trace.
    """

    def __init__(self, cfg, printer: Printer = print):
        cache_cfg = cfg.get("cache", {})
        timing = cfg.get("timing", {})
        self.engine = CacheEngine(
            num_sets=cache_cfg.get("num_sets", 1024),
            associativity=cache_cfg.get("associativity", 4),
            line_size=cache_cfg.get("line_size_bytes", 32),
            hit_cycles=timing.get("hit_cycles", 1),
            miss_penalty=timing.get("miss_penalty_cycles", 50),
            writeback_penalty=timing.get("writeback_cycles", 50),
            write_miss_dirty=cache_cfg.get("write_miss_dirty", False),
        )
        self.printer = printer
        self.echo = False
        self.debug = False
        self.version_requested = False
        self.cycle_costs = []
        self.hit_flags = []

    def run(self, events):
        for event in events:
            if isinstance(event, Switch):
                if event.flag == VERSION_FLAG:
                    self.version_requested = True
                    self.printer(f"Version {VERSION}")
                    break
                elif event.flag == ECHO_FLAG:
                    self.echo = True
                elif event.flag == DEBUG_FLAG:
                    self.debug = True
                continue

            if self.echo:
                self.printer(event.text or format_access(event))
            outcome = self.engine.access(event.op, event.address)
            self.cycle_costs.append(outcome.cost)
            self.hit_flags.append(outcome.is_hit)
            if self.debug:
                self._dump_access(event.op, outcome)

        stats = self.engine.stats
        for line in stats.report_lines():
            self.printer(line)

        summary = stats.as_dict()
        summary["version_requested"] = self.version_requested
        summary["cache"] = self.engine.config()
        return summary

    def _dump_access(self, op, outcome):
        kind = "read" if op == READ else "write"
        result = "hit" if outcome.is_hit else "miss"
        self.printer(f"cache {kind} {result} to line {outcome.line}")
        if outcome.evicted_was_dirty:
            self.printer(f"Dirty bit is set. So writing back line {outcome.line} "
                         f"of set: {outcome.index} to main memory")
        self.printer(f"\t\t\tSet: {outcome.index}")
        for n, line in enumerate(self.engine.dump_set(outcome.index)):
            self.printer(f"Line: {n}\tTag: 0x{line['tag']:05X}\tLRU: {line['lru']}\t"
                         f"Valid: {int(line['valid'])}\tDirty: {int(line['dirty'])}")

    def save_results(self, summary, out_cfg):
        results_dir = out_cfg.get("results_dir", "results")
        os.makedirs(results_dir, exist_ok=True)
        path = os.path.join(results_dir, "summary.json")
        with open(path, "w") as f:
            json.dump(summary, f, indent=2)
        return path
