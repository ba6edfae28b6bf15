# paging.py

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from cache import CacheHierarchy, HierarchyAccess
from config import DEFAULT_CONFIG, SimulatorConfig
from errors import AddressOutOfRange, InvalidPage, PageFault, UnknownPolicy


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class PageTableEntry:
    """
    Represents a single entry in the Page Table.

    Attributes:
        page_no (int): The virtual page number this entry represents
        frame_no (Optional[int]): Physical frame number, None if not in memory
        valid (bool): True if page is currently loaded in a frame
    """
    page_no: int
    frame_no: Optional[int] = None
    valid: bool = False


@dataclass
class Frame:
    """
    Represents a physical memory frame.

    Attributes:
        frame_no (int): The frame's index in physical memory
        occupied (bool): True if a page is currently loaded here
        page_no (Optional[int]): The virtual page stored here, None if free
    """
    frame_no: int
    occupied: bool = False
    page_no: Optional[int] = None


@dataclass
class TLBEntry:
    page_no: int = -1
    frame_no: int = -1
    valid: bool = False


@dataclass
class LoadResult:
    """Outcome of loading a page: where it went and what was pushed out."""
    page_no: int
    frame_no: int
    evicted_page: Optional[int] = None
    already_resident: bool = False


class ReplacementPolicy:
    """
    Enumeration of available page replacement algorithms.

    FIFO: First-In-First-Out - replaces the oldest page in memory
    LRU:  Least Recently Used - replaces the page not used for longest time
    """
    FIFO = "fifo"
    LRU = "lru"

    ALL = (FIFO, LRU)


# =============================================================================
# BOUNDED RINGS
# =============================================================================

class TranslationCache:
    """
    Fixed-capacity translation cache replaced in ring order.

    A new entry always overwrites the slot under the cursor, whatever it
    holds, and the cursor then wraps forward. Entries are never invalidated
    when their page is evicted, so a lookup can return a frame the page no
    longer owns.
    """

    def __init__(self, capacity: int):
        self.entries: List[TLBEntry] = [TLBEntry() for _ in range(capacity)]
        self.cursor = 0

    def lookup(self, page_no: int) -> Optional[int]:
        for entry in self.entries:
            if entry.valid and entry.page_no == page_no:
                return entry.frame_no
        return None

    def install(self, page_no: int, frame_no: int) -> int:
        """Overwrite the slot under the cursor; returns the slot index used."""
        slot = self.cursor
        self.entries[slot] = TLBEntry(page_no, frame_no, True)
        self.cursor = (self.cursor + 1) % len(self.entries)
        return slot

    def snapshot(self) -> List[TLBEntry]:
        return [TLBEntry(e.page_no, e.frame_no, e.valid) for e in self.entries]


class EvictionQueue:
    """
    FIFO of page numbers in load order, kept in a fixed-size array.

    ``head`` indexes the oldest slot and ``count`` the number of queued
    entries. Entries for pages that were evicted some other way stay queued
    and are skipped by the consumer when popped.
    """

    def __init__(self, capacity: int):
        self.slots: List[Optional[int]] = [None] * capacity
        self.head = 0
        self.count = 0

    def __len__(self):
        return self.count

    def __iter__(self):
        for i in range(self.count):
            yield self.slots[(self.head + i) % len(self.slots)]

    def push(self, page_no: int, is_resident: Callable[[int], bool]):
        if self.count == len(self.slots):
            self._compact(is_resident)
        if self.count == len(self.slots):
            raise RuntimeError("Eviction queue overflow")
        tail = (self.head + self.count) % len(self.slots)
        self.slots[tail] = page_no
        self.count += 1

    def pop(self) -> Optional[int]:
        if self.count == 0:
            return None
        page_no = self.slots[self.head]
        self.slots[self.head] = None
        self.head = (self.head + 1) % len(self.slots)
        self.count -= 1
        return page_no

    def _compact(self, is_resident: Callable[[int], bool]):
        # Drop entries the consumer would skip anyway, keeping the oldest
        # entry of each resident page in its original order.
        kept: List[int] = []
        for page_no in self:
            if is_resident(page_no) and page_no not in kept:
                kept.append(page_no)
        self.slots = kept + [None] * (len(self.slots) - len(kept))
        self.head = 0
        self.count = len(kept)


# =============================================================================
# MEMORY MANAGER - Virtual Memory Engine
# =============================================================================

class MemoryManager:
    """
    Virtual memory engine: page table, TLB, frame table and replacement.

    Pages are only brought in by an explicit ``load``; ``translate`` never
    handles a fault on its own. Every successful translation is handed to the
    cache hierarchy, when one is attached.

    Attributes:
        config (SimulatorConfig): Machine geometry
        frames (List[Frame]): The frame table tracking physical memory
        page_table (List[PageTableEntry]): One entry per virtual page
        tlb (TranslationCache): Ring of recent translations
        fifo_queue (EvictionQueue): Pages in load order for FIFO
        last_used (Dict[int, int]): Recency ledger for LRU, resident pages only
        time_counter (int): Logical clock for recency stamps
        tlb_hits (int): Translations answered by the TLB
        tlb_misses (int): Translations that went to the page table
        event_log (List[str]): Log of all paging events
        policy (str): Current replacement policy (fifo or lru)
    """

    def __init__(self, config: SimulatorConfig = DEFAULT_CONFIG,
                 caches: Optional[CacheHierarchy] = None,
                 event_log: Optional[List[str]] = None):
        """
        Initialize the Memory Manager with an empty page table.

        Args:
            config (SimulatorConfig): Page size, page/frame counts, TLB size
            caches (Optional[CacheHierarchy]): Hierarchy consulted after
                each successful translation
            event_log (Optional[List[str]]): Shared log to append events to
        """
        self.config = config
        self.caches = caches

        self.frames: List[Frame] = [Frame(i) for i in range(config.num_frames)]
        self.page_table: List[PageTableEntry] = [PageTableEntry(i) for i in range(config.num_pages)]
        self.tlb = TranslationCache(config.tlb_size)
        self.fifo_queue = EvictionQueue(config.num_pages)
        self.last_used: Dict[int, int] = {}

        # Logical clock for LRU timestamp tracking
        self.time_counter = 0

        # Statistics counters
        self.tlb_hits = 0
        self.tlb_misses = 0

        self.event_log = event_log if event_log is not None else []
        self.last_access: Optional[HierarchyAccess] = None

        # Default replacement policy
        self.policy = ReplacementPolicy.FIFO

    # =========================================================================
    # CONFIGURATION METHODS
    # =========================================================================

    def set_policy(self, policy: str):
        """
        Set the page replacement policy.

        Args:
            policy (str): Either 'fifo' or 'lru'

        Raises:
            UnknownPolicy: If policy is not fifo or lru
        """
        if policy not in ReplacementPolicy.ALL:
            raise UnknownPolicy("Unknown policy. Use fifo | lru")
        self.policy = policy
        self.event_log.append(f"Replacement policy: {policy.upper()}")

    # =========================================================================
    # ADDRESS TRANSLATION
    # =========================================================================

    def translate(self, virtual_address: int) -> int:
        """
        Translate a virtual address to a physical address.

        The TLB is consulted first; a hit returns at once without touching
        the page table or recency. On a miss the page table is read and, if
        the page is resident, the translation is installed in the TLB.

        Args:
            virtual_address (int): Address in the virtual space

        Returns:
            int: frame * page_size + offset

        Raises:
            AddressOutOfRange: If the page number is outside the page table
            PageFault: If the page is not resident
        """
        page_size = self.config.page_size
        page_no = virtual_address // page_size
        offset = virtual_address % page_size

        if page_no < 0 or page_no >= self.config.num_pages:
            raise AddressOutOfRange("Invalid virtual address.")

        # ----- TLB HIT -----
        frame_no = self.tlb.lookup(page_no)
        if frame_no is not None:
            self.tlb_hits += 1
            self.event_log.append(f"TLB hit: Page {page_no} -> Frame {frame_no}")
            return self._finish(frame_no * page_size + offset)

        # ----- TLB MISS -----
        self.tlb_misses += 1
        pte = self.page_table[page_no]
        if not pte.valid:
            self.event_log.append(f"Fault: Page {page_no} not in memory")
            raise PageFault(page_no)

        # Recency is stamped here but the FIFO order is left alone
        slot = self.tlb.install(page_no, pte.frame_no)
        self.last_used[page_no] = self._tick()
        self.event_log.append(f"TLB miss: Page {page_no} -> Frame {pte.frame_no} (slot {slot})")
        return self._finish(pte.frame_no * page_size + offset)

    def _finish(self, physical_address: int) -> int:
        if self.caches is not None:
            self.last_access = self.caches.access(physical_address)
        return physical_address

    def _tick(self) -> int:
        stamp = self.time_counter
        self.time_counter += 1
        return stamp

    # =========================================================================
    # PAGE LOADING / REPLACEMENT
    # =========================================================================

    def load(self, page_no: int) -> LoadResult:
        """
        Bring a virtual page into physical memory.

        The lowest-numbered free frame is used; with no frame free, a victim
        is evicted under the current policy and its frame reused.

        Args:
            page_no (int): Virtual page to load

        Returns:
            LoadResult: Frame used and the evicted page, if any

        Raises:
            InvalidPage: If page_no is outside the page table
        """
        if page_no < 0 or page_no >= self.config.num_pages:
            raise InvalidPage(
                f"Invalid page number. Valid range: 0 - {self.config.num_pages - 1}"
            )

        pte = self.page_table[page_no]
        if pte.valid:
            self.event_log.append(f"Page {page_no} already in Frame {pte.frame_no}")
            return LoadResult(page_no, pte.frame_no, already_resident=True)

        evicted_page = None
        free_frame = next((f for f in self.frames if not f.occupied), None)
        if free_frame is not None:
            frame_no = free_frame.frame_no
        else:
            evicted_page, frame_no = self._evict()

        self._load_page_into_frame(page_no, frame_no)
        return LoadResult(page_no, frame_no, evicted_page)

    def _load_page_into_frame(self, page_no: int, frame_no: int):
        frame = self.frames[frame_no]
        frame.occupied = True
        frame.page_no = page_no

        pte = self.page_table[page_no]
        pte.frame_no = frame_no
        pte.valid = True

        self.fifo_queue.push(page_no, self.is_resident)
        self.last_used[page_no] = self._tick()
        self.event_log.append(f"Loaded: Page {page_no} -> Frame {frame_no}")

    def _select_victim(self) -> Optional[int]:
        victim = None

        if self.policy == ReplacementPolicy.FIFO:
            # Skip queue entries whose page has already left memory
            while len(self.fifo_queue) > 0:
                candidate = self.fifo_queue.pop()
                if self.is_resident(candidate):
                    victim = candidate
                    break
        else:
            oldest = None
            for page_no, stamp in self.last_used.items():
                if self.is_resident(page_no) and (oldest is None or stamp < oldest):
                    oldest = stamp
                    victim = page_no

        if victim is None:
            # Fallback: first resident page in table order
            victim = next((p.page_no for p in self.page_table if p.valid), None)
        return victim

    def _evict(self):
        """
        Evict one resident page under the current policy.

        Returns:
            Tuple[int, int]: (evicted page, freed frame)
        """
        victim = self._select_victim()
        if victim is None:
            raise RuntimeError("No resident page to evict")

        pte = self.page_table[victim]
        frame_no = pte.frame_no
        self.event_log.append(f"Evicting: Page {victim} from Frame {frame_no}")

        pte.valid = False
        pte.frame_no = None
        self.frames[frame_no].occupied = False
        self.frames[frame_no].page_no = None
        self.last_used.pop(victim, None)
        return victim, frame_no

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    def is_resident(self, page_no: int) -> bool:
        return self.page_table[page_no].valid

    def frame_used(self) -> List[bool]:
        return [f.occupied for f in self.frames]

    def get_frame_table(self) -> List[Frame]:
        return self.frames

    def get_page_table_snapshot(self) -> Dict[int, PageTableEntry]:
        """
        Get a snapshot of the resident part of the page table.

        Returns:
            Dict[int, PageTableEntry]: Copies of the valid entries by page
        """
        return {
            p.page_no: PageTableEntry(p.page_no, p.frame_no, p.valid)
            for p in self.page_table if p.valid
        }

    def get_stats(self) -> Dict[str, float]:
        """
        Calculate and return translation statistics.

        Returns:
            Dict[str, float]: Statistics including:
                - tlb_hits: Translations answered by the TLB
                - tlb_misses: Translations that reached the page table
                - hit_ratio: Hits / Total translations
                - resident_pages: Pages currently in a frame
        """
        total = self.tlb_hits + self.tlb_misses
        hit_ratio = (self.tlb_hits / total) if total > 0 else 0.0

        return {
            "tlb_hits": self.tlb_hits,
            "tlb_misses": self.tlb_misses,
            "hit_ratio": round(hit_ratio, 4),
            "resident_pages": sum(1 for p in self.page_table if p.valid),
        }
