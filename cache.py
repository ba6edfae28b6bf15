# cache.py

from dataclasses import dataclass
from typing import List, Optional


@dataclass
class CacheLine:
    tag: int = -1
    valid: bool = False


@dataclass
class HierarchyAccess:
    """Outcome of one physical access through L1 and L2."""
    address: int
    l1_hit: bool
    l2_hit: Optional[bool] = None  # None when L1 answered

    @property
    def served_by(self) -> str:
        if self.l1_hit:
            return "L1"
        if self.l2_hit:
            return "L2"
        return "MEM"


class Cache:
    """
    A single direct-mapped cache level.

    Every block maps to exactly one line; the tag tells which block currently
    sits there. Only tag bookkeeping is modelled, lines carry no data.
    """

    def __init__(self, name: str, num_lines: int, block_size: int):
        self.name = name
        self.num_lines = num_lines
        self.block_size = block_size
        self.lines: List[CacheLine] = [CacheLine() for _ in range(num_lines)]

        # stats
        self.hits = 0
        self.misses = 0

    def parse_address(self, address: int):
        """
        Parse a physical address into its tag and line index
        :param address: int
        :return: integer tag and index
        """
        block_no = address // self.block_size
        index = block_no % self.num_lines
        tag = block_no // self.num_lines
        return tag, index

    def access(self, address: int) -> bool:
        """
        Look the address up, installing its block on a miss
        :param address: physical address
        :return: True on a hit
        """
        tag, index = self.parse_address(address)
        line = self.lines[index]

        if line.valid and line.tag == tag:
            self.hits += 1
            return True

        self.misses += 1
        self.fill(address)
        return False

    def fill(self, address: int):
        """Install the block holding the address without counting an access."""
        tag, index = self.parse_address(address)
        # direct-mapped: whatever sat in the line is replaced, no write-back
        self.lines[index] = CacheLine(tag, True)

    def contains(self, address: int) -> bool:
        """Look up without touching the counters."""
        tag, index = self.parse_address(address)
        line = self.lines[index]
        return line.valid and line.tag == tag

    def snapshot(self) -> List[CacheLine]:
        return [CacheLine(line.tag, line.valid) for line in self.lines]

    def get_stats(self):
        total = self.hits + self.misses
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_ratio": round(self.hits / total, 4) if total > 0 else 0.0,
        }


class CacheHierarchy:
    """L1 backed by L2, backed by a notional main memory."""

    def __init__(self, l1: Cache, l2: Cache, event_log: Optional[List[str]] = None):
        self.l1 = l1
        self.l2 = l2
        self.event_log = event_log if event_log is not None else []

    @classmethod
    def from_config(cls, config, event_log=None):
        l1 = Cache("L1", config.l1_lines, config.cache_block_size)
        l2 = Cache("L2", config.l2_lines, config.cache_block_size)
        return cls(l1, l2, event_log)

    def access(self, address: int) -> HierarchyAccess:
        if self.l1.access(address):
            self.event_log.append(f"Cache: L1 hit at {address}")
            return HierarchyAccess(address, l1_hit=True)

        if self.l2.access(address):
            # promote into L1, counted as an L1 access
            self.l1.access(address)
            self.event_log.append(f"Cache: L2 hit at {address}, promoted to L1")
            return HierarchyAccess(address, l1_hit=False, l2_hit=True)

        # miss in both: fetch from memory, fill L2 then L1 through counted accesses
        self.l2.access(address)
        self.l1.access(address)
        self.event_log.append(f"Cache: miss at {address}, filled L2 and L1")
        return HierarchyAccess(address, l1_hit=False, l2_hit=False)
