# config.py

from dataclasses import dataclass


def is_power_of_two(n):
    """Check if a number is a power of two. uses bit operations."""
    return n > 0 and (n & (n - 1)) == 0


@dataclass(frozen=True)
class SimulatorConfig:
    """
    Geometry of the simulated machine.

    The values are fixed for the lifetime of a simulator. The defaults are the
    machine the console and the web visualizer run.
    """
    page_size: int = 64          # bytes
    num_pages: int = 32          # virtual pages
    num_frames: int = 16         # physical frames
    tlb_size: int = 4            # translation cache entries
    cache_block_size: int = 64   # bytes (same as page size)
    l1_lines: int = 8
    l2_lines: int = 16

    def __post_init__(self):
        self.validate()

    def _validate_vm(self):
        if self.num_pages < 1:
            raise ValueError("Number of virtual pages must be at least 1.")
        if self.num_frames < 1:
            raise ValueError("Number of physical frames must be at least 1.")
        # the eviction queue is sized by the page count
        if self.num_frames > self.num_pages:
            raise ValueError("Number of physical frames cannot exceed the number of virtual pages.")
        if not is_power_of_two(self.page_size):
            raise ValueError("Page size must be a power of two.")
        if self.tlb_size < 1:
            raise ValueError("TLB must hold at least one entry.")

    def _validate_caches(self):
        if not is_power_of_two(self.cache_block_size):
            raise ValueError("Cache block size must be a power of two.")
        if not is_power_of_two(self.l1_lines):
            raise ValueError("L1 line count must be a power of two.")
        if not is_power_of_two(self.l2_lines):
            raise ValueError("L2 line count must be a power of two.")
        if self.l2_lines < self.l1_lines:
            raise ValueError("L2 must have at least as many lines as L1.")

    def validate(self):
        self._validate_vm()
        self._validate_caches()

    @property
    def virtual_space(self):
        return self.num_pages * self.page_size

    @property
    def physical_space(self):
        return self.num_frames * self.page_size

    def __str__(self):
        print_str = ""
        print_str += f"Number of virtual pages is {self.num_pages}.\n"
        print_str += f"Number of physical frames is {self.num_frames}.\n"
        print_str += f"Each page contains {self.page_size} bytes.\n"
        print_str += f"Virtual addresses range over 0 - {self.virtual_space - 1}.\n"
        print_str += f"The TLB holds {self.tlb_size} entries.\n\n"
        print_str += f"L1 cache contains {self.l1_lines} lines.\n"
        print_str += f"L2 cache contains {self.l2_lines} lines.\n"
        print_str += f"Each line is {self.cache_block_size} bytes.\n"
        print_str += "Both caches are direct-mapped.\n"
        return print_str


DEFAULT_CONFIG = SimulatorConfig()
