# engine.py

from errors import InvalidSize, NotInitialized, OutOfMemory, UnknownAddress, UnknownId, UnknownStrategy


class Block:
    def __init__(self, start, size, allocated=False, block_id=None):
        self.start = start
        self.size = size
        self.allocated = allocated
        self.block_id = block_id

    @property
    def free(self):
        return not self.allocated

    @property
    def end(self):
        """Last byte covered by the block (inclusive)."""
        return self.start + self.size - 1

    def copy(self):
        return Block(self.start, self.size, self.allocated, self.block_id)

    def __eq__(self, other):
        if not isinstance(other, Block):
            return NotImplemented
        return (self.start, self.size, self.allocated, self.block_id) == \
            (other.start, other.size, other.allocated, other.block_id)

    def __repr__(self):
        state = "A" if self.allocated else "F"
        return f"[{state}|{self.start}|{self.size}]"


class AllocationStrategy:
    FIRST_FIT = "first"
    BEST_FIT = "best"
    WORST_FIT = "worst"

    ALL = (FIRST_FIT, BEST_FIT, WORST_FIT)
    LABELS = {
        FIRST_FIT: "First Fit",
        BEST_FIT: "Best Fit",
        WORST_FIT: "Worst Fit",
    }


class MemoryEngine:
    def __init__(self, event_log=None):
        self.algorithm = AllocationStrategy.FIRST_FIT  # default
        self.event_log = event_log if event_log is not None else []
        self.blocks = []
        self.next_id = 1

        # allocation counters survive re-initialization
        self.total_requests = 0
        self.successful_allocs = 0
        self.failed_allocs = 0

    @property
    def initialized(self):
        return len(self.blocks) > 0

    def initialize(self, size):
        if size <= 0:
            raise InvalidSize(f"Invalid heap size {size}: must be positive.")
        self.blocks = [Block(0, size, allocated=False, block_id=None)]
        self.next_id = 1
        self.event_log.append(f"Heap initialized: {size} bytes")

    def set_algorithm(self, algo):
        if algo not in AllocationStrategy.ALL:
            raise UnknownStrategy("Unknown strategy. Use: first | best | worst")
        self.algorithm = algo
        self.event_log.append(f"Strategy: {AllocationStrategy.LABELS[algo]}")

    # -----------------------------
    # Allocate Dispatcher
    # -----------------------------
    def allocate(self, req_size):
        if req_size <= 0:
            raise InvalidSize(f"Invalid allocation size {req_size}: must be positive.")
        if not self.initialized:
            raise NotInitialized("Error: Memory not initialized. Use 'init memory <size>'.")

        self.total_requests += 1
        if self.algorithm == AllocationStrategy.FIRST_FIT:
            index = self._first_fit(req_size)
        elif self.algorithm == AllocationStrategy.BEST_FIT:
            index = self._best_fit(req_size)
        else:
            index = self._worst_fit(req_size)

        if index is None:
            self.failed_allocs += 1
            self.event_log.append(f"Allocation of {req_size} bytes failed")
            raise OutOfMemory("Allocation failed: Not enough memory.")

        self.successful_allocs += 1
        return self._split_block(index, req_size)

    # -----------------------------
    # Algorithms
    # -----------------------------
    def _first_fit(self, req):
        for i, block in enumerate(self.blocks):
            if not block.allocated and block.size >= req:
                return i
        return None

    def _best_fit(self, req):
        best_index = None
        best_size = float('inf')

        # strict comparison keeps the lowest address on ties
        for i, block in enumerate(self.blocks):
            if not block.allocated and block.size >= req and block.size < best_size:
                best_size = block.size
                best_index = i

        return best_index

    def _worst_fit(self, req):
        worst_index = None
        worst_size = -1

        for i, block in enumerate(self.blocks):
            if not block.allocated and block.size >= req and block.size > worst_size:
                worst_size = block.size
                worst_index = i

        return worst_index

    # -----------------------------
    # Helpers
    # -----------------------------
    def _split_block(self, index, req_size):
        block = self.blocks[index]
        block_id = self.next_id
        self.next_id += 1
        self.event_log.append(f"Allocated: {req_size} bytes at {block.start} (id={block_id})")

        # Perfect fit
        if block.size == req_size:
            block.allocated = True
            block.block_id = block_id
            return block_id

        # Carve allocated block from the front, remainder stays free
        allocated_block = Block(block.start, req_size, True, block_id)
        free_block = Block(block.start + req_size, block.size - req_size, False, None)

        self.blocks[index] = allocated_block
        self.blocks.insert(index + 1, free_block)
        return block_id

    def free(self, block_id):
        for i, block in enumerate(self.blocks):
            if block.allocated and block.block_id == block_id:
                block.allocated = False
                block.block_id = None
                self.event_log.append(f"Freed: block {block_id} at {block.start}")
                self._coalesce(i)
                return
        raise UnknownId("Invalid block id.")

    def free_by_address(self, address):
        for block in self.blocks:
            if block.allocated and block.start == address:
                self.free(block.block_id)
                return
        raise UnknownAddress("Invalid address.")

    def _coalesce(self, i):
        # merge into the previous block
        if i > 0 and not self.blocks[i - 1].allocated:
            self.blocks[i - 1].size += self.blocks[i].size
            del self.blocks[i]
            i -= 1

        # absorb the next block
        if i + 1 < len(self.blocks) and not self.blocks[i + 1].allocated:
            self.blocks[i].size += self.blocks[i + 1].size
            del self.blocks[i + 1]

    def get_state(self):
        return [block.copy() for block in self.blocks]

    # --------------------------------------
    # Size queries
    # --------------------------------------
    def total_size(self):
        return sum(b.size for b in self.blocks)

    def used_size(self):
        return sum(b.size for b in self.blocks if b.allocated)

    def free_size(self):
        return sum(b.size for b in self.blocks if not b.allocated)

    def largest_free_block(self):
        return max((b.size for b in self.blocks if not b.allocated), default=0)

    # --------------------------------------
    # Fragmentation Metrics
    # --------------------------------------
    def utilization(self):
        total = self.total_size()
        if total == 0:
            return 0.0
        return self.used_size() / total * 100.0

    def external_fragmentation(self):
        # external = 1 - (largest_free_block / total_free)
        total_free = self.free_size()
        if total_free == 0:
            return 0.0
        return (1.0 - self.largest_free_block() / total_free) * 100.0

    def internal_fragmentation(self):
        # Blocks are carved to the exact request, nothing is wasted inside them
        return 0.0

    def get_fragmentation_metrics(self):
        return {
            "external": round(self.external_fragmentation(), 4),
            "internal": round(self.internal_fragmentation(), 4),
            "utilization": round(self.utilization(), 4),
        }
