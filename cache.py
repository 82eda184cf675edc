# cache.py
import threading

from stats import RunningStatistics

READ = "r"
WRITE = "w"

ADDRESS_BITS = 32


def _log2_exact(value, what):
    if value < 1 or value & (value - 1):
        raise ValueError(f"{what} must be a power of two, got {value}")
    return value.bit_length() - 1


class AddressDecoder:
    """
    Splits a 32-bit byte address into (tag, index, offset).
    offset_bits = log2(line_size), index_bits = log2(num_sets),
    tag_bits = 32 - offset_bits - index_bits.
    """

    def __init__(self, num_sets=1024, line_size=32, address_bits=ADDRESS_BITS):
        self.offset_bits = _log2_exact(line_size, "line size")
        self.index_bits = _log2_exact(num_sets, "set count")
        self.tag_bits = address_bits - self.offset_bits - self.index_bits
        if self.tag_bits < 1:
            raise ValueError("no address bits left for the tag")
        self.address_mask = (1 << address_bits) - 1
        self.offset_mask = (1 << self.offset_bits) - 1
        self.index_mask = (1 << self.index_bits) - 1
        self.tag_mask = (1 << self.tag_bits) - 1

    def decode(self, addr):
        addr &= self.address_mask
        offset = addr & self.offset_mask
        index = (addr >> self.offset_bits) & self.index_mask
        tag = addr >> (self.offset_bits + self.index_bits)
        return tag, index, offset


class CacheLine:
    """One slot of a set. Only metadata is kept, never payload bytes."""

    __slots__ = ("tag", "lru", "valid", "dirty")

    def __init__(self):
        self.tag = 0
        self.lru = 0
        self.valid = False
        self.dirty = False

    def as_dict(self):
        return {"tag": self.tag, "lru": self.lru, "valid": self.valid, "dirty": self.dirty}


class AccessKind:
    HIT = "hit"
    MISS_EMPTY = "miss_empty"
    MISS_EVICT = "miss_evict"


class AccessOutcome:
    """Result of a single access, filled in as it moves through the engine."""

    def __init__(self, kind, line):
        self.kind = kind
        self.line = line
        self.evicted_was_dirty = False
        self.cost = 0
        self.cycles = 0
        self.tag = 0
        self.index = 0
        self.offset = 0

    @property
    def is_hit(self):
        return self.kind == AccessKind.HIT

    @property
    def was_empty_slot(self):
        return self.kind == AccessKind.MISS_EMPTY

    def __repr__(self):
        return (f"AccessOutcome(kind={self.kind!r}, line={self.line}, "
                f"evicted_was_dirty={self.evicted_was_dirty}, cycles={self.cycles})")


class CacheEngine:
    """
    Set-associative, write-back / write-allocate cache with rank-based LRU.

    Every set keeps W lines; among the valid lines of a set the lru ranks
    are distinct, 0 being the most recently used and W-1 the least.
    Only access() should be called from outside: it runs
    decode -> lookup -> touch -> update_recency -> account under a lock.
    """

    def __init__(self, num_sets=1024, associativity=4, line_size=32,
                 hit_cycles=1, miss_penalty=50, writeback_penalty=50,
                 write_miss_dirty=False):
        if associativity < 1:
            raise ValueError(f"associativity must be at least 1, got {associativity}")
        self.num_sets = num_sets
        self.associativity = associativity
        self.line_size = line_size
        self.hit_cycles = hit_cycles
        self.miss_penalty = miss_penalty
        self.writeback_penalty = writeback_penalty
        self.write_miss_dirty = write_miss_dirty
        self.decoder = AddressDecoder(num_sets, line_size)
        self.sets = [[CacheLine() for _ in range(associativity)] for _ in range(num_sets)]
        self.stats = RunningStatistics()
        self._lock = threading.Lock()

    def access(self, op, addr) -> AccessOutcome:
        """
        Simulate one read or write of byte address `addr`.
        Returns the outcome, with the cumulative cycle count after this access.
        """
        if op not in (READ, WRITE):
            raise ValueError(f"unknown operation {op!r}")
        with self._lock:
            tag, index, offset = self.decoder.decode(addr)
            outcome = self.lookup(tag, index)
            outcome.tag, outcome.index, outcome.offset = tag, index, offset
            self.touch(index, tag, op, outcome)
            self.update_recency(index, outcome)
            self.account(op, outcome)
            return outcome

    def lookup(self, tag, index):
        if tag & ~self.decoder.tag_mask:
            raise ValueError(f"tag {tag:#x} wider than {self.decoder.tag_bits} bits")
        lines = self.sets[index]
        victim = None
        for i, line in enumerate(lines):
            if not line.valid:
                # lowest empty slot; tag is written by touch()
                line.valid = True
                return AccessOutcome(AccessKind.MISS_EMPTY, i)
            if line.tag == tag:
                return AccessOutcome(AccessKind.HIT, i)
            if line.lru == self.associativity - 1:
                victim = i
        if victim is None:
            raise RuntimeError(f"set {index} has no line of rank {self.associativity - 1}")
        return AccessOutcome(AccessKind.MISS_EVICT, victim)

    def touch(self, index, tag, op, outcome):
        line = self.sets[index][outcome.line]
        if outcome.kind == AccessKind.HIT:
            if op == WRITE:
                line.dirty = True
            return
        if outcome.kind == AccessKind.MISS_EVICT:
            outcome.evicted_was_dirty = line.dirty
        line.tag = tag
        line.dirty = self.write_miss_dirty and op == WRITE

    def update_recency(self, index, outcome):
        ways = self.associativity
        lines = self.sets[index]
        selected = lines[outcome.line]
        if outcome.kind == AccessKind.HIT:
            rank = selected.lru
            for line in lines:
                if line is not selected and line.valid and line.lru < rank:
                    line.lru = (line.lru + 1) % ways
        elif outcome.kind == AccessKind.MISS_EMPTY:
            for line in lines[:outcome.line]:
                if line.valid:
                    line.lru = (line.lru + 1) % ways
        else:
            for line in lines:
                line.lru = (line.lru + 1) % ways
        selected.lru = 0

    def account(self, op, outcome):
        stats = self.stats
        cost = self.hit_cycles
        stats.accesses += 1
        if op == READ:
            stats.reads += 1
        else:
            stats.writes += 1

        if outcome.is_hit:
            stats.hits += 1
            if op == READ:
                stats.read_hits += 1
            else:
                stats.write_hits += 1
        else:
            stats.misses += 1
            if op == READ:
                stats.read_misses += 1
            else:
                stats.write_misses += 1
            if outcome.evicted_was_dirty:
                stats.write_backs += 1
                cost += self.writeback_penalty
            cost += self.miss_penalty

        stats.cycles += cost
        outcome.cost = cost
        outcome.cycles = stats.cycles
        return cost

    def dump_set(self, index):
        """Snapshot of the lines of set `index`, in slot order."""
        return [line.as_dict() for line in self.sets[index]]

    def config(self):
        return {
            "num_sets": self.num_sets,
            "associativity": self.associativity,
            "line_size": self.line_size,
            "offset_bits": self.decoder.offset_bits,
            "index_bits": self.decoder.index_bits,
            "tag_bits": self.decoder.tag_bits,
            "write_miss_dirty": self.write_miss_dirty,
        }
