"""Tests for the direct-mapped L1/L2 cache hierarchy."""

import pytest

from cache import Cache, CacheHierarchy
from config import SimulatorConfig

BLOCK_SIZE = 64
L1_LINES = 8
L2_LINES = 16


@pytest.fixture
def hierarchy():
    return CacheHierarchy.from_config(SimulatorConfig())


class TestCacheLevel:
    """Verify a single direct-mapped level."""

    @pytest.mark.parametrize("address, tag, index", [
        (0, 0, 0),
        (63, 0, 0),
        (64, 0, 1),
        (9 * BLOCK_SIZE, 1, 1),
        (8 * BLOCK_SIZE + 5, 1, 0),
    ])
    def test_address_decomposition(self, address, tag, index) -> None:
        cache = Cache("L1", L1_LINES, BLOCK_SIZE)
        assert cache.parse_address(address) == (tag, index)

    def test_miss_installs_then_hits(self) -> None:
        cache = Cache("L1", L1_LINES, BLOCK_SIZE)
        assert cache.access(100) is False
        assert cache.access(127) is True
        assert (cache.hits, cache.misses) == (1, 1)

    def test_conflicting_block_overwrites_line(self) -> None:
        cache = Cache("L1", L1_LINES, BLOCK_SIZE)
        cache.access(0)
        cache.access(L1_LINES * BLOCK_SIZE)
        assert not cache.contains(0)
        assert cache.snapshot()[0].tag == 1

    def test_fill_does_not_count(self) -> None:
        cache = Cache("L2", L2_LINES, BLOCK_SIZE)
        cache.fill(200)
        assert cache.contains(200)
        assert (cache.hits, cache.misses) == (0, 0)


class TestHierarchy:
    """Verify lookup order, promotion and fill."""

    def test_cold_access_counts_fill_steps(self, hierarchy) -> None:
        # L1 miss, L2 miss, then the L2 and L1 fills are counted lookups that hit
        hierarchy.access(0)
        counts = (hierarchy.l1.hits, hierarchy.l1.misses, hierarchy.l2.hits, hierarchy.l2.misses)
        assert counts == (1, 1, 1, 1)

    def test_repeat_access_hits_l1_only(self, hierarchy) -> None:
        first = hierarchy.access(320)
        assert first.served_by == "MEM"
        l2_before = (hierarchy.l2.hits, hierarchy.l2.misses)
        second = hierarchy.access(320)
        assert second.served_by == "L1"
        assert (hierarchy.l1.hits, hierarchy.l1.misses) == (2, 1)
        assert (hierarchy.l2.hits, hierarchy.l2.misses) == l2_before == (1, 1)

    def test_double_miss_fills_both_levels(self, hierarchy) -> None:
        hierarchy.access(0)
        assert hierarchy.l1.contains(0)
        assert hierarchy.l2.contains(0)

    def test_l2_hit_promotes_into_l1(self, hierarchy) -> None:
        conflict = L1_LINES * BLOCK_SIZE  # same L1 line as 0, different L2 line
        hierarchy.access(0)
        hierarchy.access(conflict)
        result = hierarchy.access(0)
        assert result.served_by == "L2"
        assert hierarchy.l1.contains(0)
        # the promotion is itself a counted L1 access
        assert (hierarchy.l1.hits, hierarchy.l1.misses) == (3, 3)
        assert (hierarchy.l2.hits, hierarchy.l2.misses) == (3, 2)
        assert hierarchy.access(0).served_by == "L1"

    def test_events_logged_once_per_access(self, hierarchy) -> None:
        hierarchy.access(0)
        hierarchy.access(0)
        assert hierarchy.event_log == [
            "Cache: miss at 0, filled L2 and L1",
            "Cache: L1 hit at 0",
        ]
