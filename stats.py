# stats.py

COUNTERS = (
    "accesses", "hits", "misses", "reads", "writes",
    "read_hits", "write_hits", "read_misses", "write_misses",
    "write_backs", "cycles",
)


class RunningStatistics:
    """
    Counters accumulated by a CacheEngine over one run.
    They only ever grow; a new run starts with a new engine.
    """

    def __init__(self):
        for name in COUNTERS:
            setattr(self, name, 0)

    @property
    def miss_ratio(self):
        return self.misses / self.accesses if self.accesses else 0.0

    @property
    def hit_rate(self):
        return self.hits / self.accesses if self.accesses else 0.0

    @property
    def avg_cycles_per_access(self):
        return self.cycles / self.accesses if self.accesses else 0.0

    def as_dict(self):
        d = {name: getattr(self, name) for name in COUNTERS}
        d["miss_ratio"] = self.miss_ratio
        d["hit_rate"] = self.hit_rate
        d["avg_cycles_per_access"] = self.avg_cycles_per_access
        return d

    def report_lines(self):
        return [
            f"Total number of clockcycles = {self.cycles}",
            f"accesses = {self.accesses}; hits = {self.hits}; misses = {self.misses}; "
            f"reads = {self.reads}; writes = {self.writes};",
            f"read hits = {self.read_hits}; write hits = {self.write_hits}; "
            f"read misses = {self.read_misses}; write misses = {self.write_misses}; "
            f"write backs = {self.write_backs}",
            f"Miss ratio = {self.miss_ratio:.4f}, "
            f"Average cycles per instruction = {self.avg_cycles_per_access:.4f}",
        ]
