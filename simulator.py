# simulator.py

from typing import Dict, List, Optional

from cache import CacheHierarchy
from config import DEFAULT_CONFIG, SimulatorConfig
from engine import Block, MemoryEngine
from paging import LoadResult, MemoryManager


class Simulator:
    """
    Owns every piece of simulated state and exposes the operator operations.

    One simulator is one "process start": counters begin at zero when it is
    built and are never reset afterwards. The heap, paging and cache engines
    share a single event log.
    """

    def __init__(self, config: Optional[SimulatorConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.event_log: List[str] = []

        self.heap = MemoryEngine(event_log=self.event_log)
        self.caches = CacheHierarchy.from_config(self.config, self.event_log)
        self.vm = MemoryManager(self.config, self.caches, self.event_log)

    # -----------------------------
    # Heap
    # -----------------------------
    def init_heap(self, size: int):
        self.heap.initialize(size)

    def allocate(self, size: int) -> int:
        return self.heap.allocate(size)

    def free_by_id(self, block_id: int):
        self.heap.free(block_id)

    def free_by_address(self, address: int):
        self.heap.free_by_address(address)

    def set_allocation_strategy(self, strategy: str):
        self.heap.set_algorithm(strategy)

    def dump_heap(self) -> List[Block]:
        return self.heap.get_state()

    # -----------------------------
    # Virtual memory
    # -----------------------------
    def set_eviction_policy(self, policy: str):
        self.vm.set_policy(policy)

    def load_page(self, page_no: int) -> LoadResult:
        return self.vm.load(page_no)

    def translate(self, virtual_address: int) -> int:
        return self.vm.translate(virtual_address)

    # -----------------------------
    # Statistics
    # -----------------------------
    def stats(self) -> Dict[str, dict]:
        heap = self.heap
        return {
            "heap": {
                "total": heap.total_size(),
                "used": heap.used_size(),
                "free": heap.free_size(),
                "largest_free": heap.largest_free_block(),
                "utilization": heap.utilization(),
                "external_fragmentation": heap.external_fragmentation(),
                "internal_fragmentation": heap.internal_fragmentation(),
                "requests": heap.total_requests,
                "successes": heap.successful_allocs,
                "failures": heap.failed_allocs,
            },
            "translation": self.vm.get_stats(),
            "cache": {
                "L1": self.caches.l1.get_stats(),
                "L2": self.caches.l2.get_stats(),
            },
        }
