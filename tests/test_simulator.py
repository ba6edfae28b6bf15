"""End-to-end tests over the simulator's operator operations."""

import pytest

from errors import OutOfMemory, PageFault, SimulatorError, UnknownAddress
from simulator import Simulator


@pytest.fixture
def sim():
    return Simulator()


class TestHeapScenario:

    def test_allocate_free_reallocate(self, sim) -> None:
        sim.init_heap(1024)
        assert sim.allocate(100) == 1
        assert sim.allocate(200) == 2
        sim.free_by_id(1)
        sim.set_allocation_strategy("first")
        new_id = sim.allocate(50)
        first = sim.dump_heap()[0]
        assert (first.start, first.size, first.block_id) == (0, 50, new_id)

    def test_free_by_address_after_free_by_id(self, sim) -> None:
        sim.init_heap(1024)
        sim.allocate(100)
        sim.free_by_id(1)
        with pytest.raises(UnknownAddress):
            sim.free_by_address(0)

    def test_dump_is_a_snapshot(self, sim) -> None:
        sim.init_heap(64)
        blocks = sim.dump_heap()
        blocks[0].size = 1
        assert sim.dump_heap()[0].size == 64

    def test_heap_stats(self, sim) -> None:
        sim.init_heap(1024)
        sim.allocate(256)
        with pytest.raises(OutOfMemory):
            sim.allocate(2000)
        heap = sim.stats()["heap"]
        assert heap["total"] == 1024
        assert heap["used"] == 256
        assert heap["utilization"] == pytest.approx(25.0)
        assert (heap["requests"], heap["successes"], heap["failures"]) == (2, 1, 1)
        assert heap["internal_fragmentation"] == 0.0


class TestPagingScenario:

    def test_fault_until_loaded(self, sim) -> None:
        sim.load_page(0)
        assert sim.translate(0) == 0
        with pytest.raises(PageFault):
            sim.translate(70)
        sim.load_page(1)
        assert sim.translate(70) == 70

    def test_translation_and_cache_stats(self, sim) -> None:
        sim.load_page(0)
        sim.translate(0)
        sim.translate(0)
        stats = sim.stats()
        assert stats["translation"]["tlb_hits"] == 1
        assert stats["translation"]["tlb_misses"] == 1
        assert stats["cache"]["L1"]["hits"] == 2
        assert stats["cache"]["L1"]["misses"] == 1
        assert stats["cache"]["L2"]["hits"] == 1
        assert stats["cache"]["L2"]["misses"] == 1

    def test_policy_switch_applies_to_next_eviction(self, sim) -> None:
        sim.set_eviction_policy("lru")
        for page_no in range(16):
            sim.load_page(page_no)
        sim.translate(0)
        assert sim.load_page(20).evicted_page == 1


class TestErrorsAreRecoverable:

    def test_simulator_usable_after_every_failure(self, sim) -> None:
        failing = [
            lambda: sim.allocate(10),
            lambda: sim.init_heap(0),
            lambda: sim.free_by_id(3),
            lambda: sim.free_by_address(3),
            lambda: sim.set_allocation_strategy("next"),
            lambda: sim.set_eviction_policy("clock"),
            lambda: sim.load_page(99),
            lambda: sim.translate(99999),
            lambda: sim.translate(0),
        ]
        for op in failing:
            with pytest.raises(SimulatorError):
                op()
        sim.init_heap(128)
        assert sim.allocate(64) == 1
        sim.load_page(0)
        assert sim.translate(1) == 1

    def test_components_share_one_event_log(self, sim) -> None:
        sim.init_heap(128)
        sim.load_page(0)
        sim.translate(0)
        assert sim.heap.event_log is sim.event_log
        assert sim.vm.event_log is sim.event_log
        assert sim.event_log[0] == "Heap initialized: 128 bytes"
        assert "Loaded: Page 0 -> Frame 0" in sim.event_log
