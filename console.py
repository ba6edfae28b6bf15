# console.py

import argparse
import sys

from engine import AllocationStrategy
from errors import SimulatorError
from simulator import Simulator
from utils import format_block

HELP_TEXT = """Supported commands:
  init memory <size>
  alloc <size>            (or: malloc <size>)
  free <id>
  free addr <address>
  show                    (or: dump memory)
  stats
  strategy first|best|worst
  policy fifo|lru
  load <page>
  translate <virtual_address>
  exit"""


def parse_int(text):
    """Parse an operator-supplied integer, None when it is not one."""
    try:
        return int(text.strip())
    except (ValueError, AttributeError):
        return None


class Console:
    """
    Line-oriented front end over a Simulator.

    ``execute`` takes one command line and returns the text to print plus a
    flag telling the loop whether to keep reading.
    """

    def __init__(self, simulator=None):
        self.simulator = simulator or Simulator()
        self.commands = {
            "help": self._help,
            "show": self._show,
            "dump": self._dump,
            "init": self._init,
            "alloc": self._alloc,
            "malloc": self._alloc,
            "free": self._free,
            "strategy": self._strategy,
            "policy": self._policy,
            "load": self._load,
            "translate": self._translate,
            "stats": self._stats,
        }

    def execute(self, line):
        command = line.strip()
        if not command:
            return "", True
        if command == "exit":
            return "Exiting simulator.", False

        verb, _, rest = command.partition(" ")
        handler = self.commands.get(verb)
        if handler is None:
            return f"Received command: {command}", True
        try:
            return handler(rest.strip()), True
        except SimulatorError as e:
            return str(e), True

    def run(self, infile=None, outfile=None, quiet=False):
        infile = infile or sys.stdin
        outfile = outfile or sys.stdout
        if not quiet:
            print("Memory Management Simulator", file=outfile)
            print("Type 'help' to see commands.", file=outfile)

        while True:
            if not quiet:
                print(">> ", end="", file=outfile, flush=True)
            line = infile.readline()
            if not line:
                break
            output, keep_running = self.execute(line)
            if output:
                print(output, file=outfile)
            if not keep_running:
                break
        return 0

    # -----------------------------
    # Handlers
    # -----------------------------
    def _help(self, arg):
        return HELP_TEXT

    def _show(self, arg):
        blocks = self.simulator.dump_heap()
        lines = ["", "Memory Dump:"]
        lines.extend(format_block(block) for block in blocks)
        lines.append("")
        return "\n".join(lines)

    def _dump(self, arg):
        if arg != "memory":
            return "Usage: dump memory"
        return self._show(arg)

    def _init(self, arg):
        target, _, size_text = arg.partition(" ")
        size = parse_int(size_text)
        if target != "memory" or size is None:
            return "Usage: init memory <size>"
        self.simulator.init_heap(size)
        return f"Initialized memory with size {size} bytes."

    def _alloc(self, arg):
        size = parse_int(arg)
        if size is None:
            return "Invalid alloc/malloc command format."
        block_id = self.simulator.allocate(size)
        return f"Allocated {size} bytes (id={block_id})."

    def _free(self, arg):
        if arg.startswith("addr"):
            address = parse_int(arg[4:])
            if address is None:
                return "Usage: free <id> OR free addr <address>"
            self.simulator.free_by_address(address)
            return f"Block at address {address} freed."

        block_id = parse_int(arg)
        if block_id is None:
            return "Usage: free <id> OR free addr <address>"
        self.simulator.free_by_id(block_id)
        return f"Block {block_id} freed."

    def _strategy(self, arg):
        self.simulator.set_allocation_strategy(arg)
        return f"Strategy set to {AllocationStrategy.LABELS[arg]}."

    def _policy(self, arg):
        self.simulator.set_eviction_policy(arg)
        return f"Replacement policy: {arg.upper()}"

    def _load(self, arg):
        page_no = parse_int(arg)
        if page_no is None:
            return "Invalid load command."
        result = self.simulator.load_page(page_no)
        if result.already_resident:
            return f"Page {page_no} already in memory (frame {result.frame_no})."
        lines = []
        if result.evicted_page is not None:
            lines.append(f"Evicted page {result.evicted_page}.")
        lines.append(f"Page {page_no} loaded into memory.")
        return "\n".join(lines)

    def _translate(self, arg):
        virtual_address = parse_int(arg)
        if virtual_address is None:
            return "Invalid translate command."
        physical_address = self.simulator.translate(virtual_address)
        return f"Virtual Address {virtual_address} -> Physical Address {physical_address}"

    def _stats(self, arg):
        stats = self.simulator.stats()
        heap = stats["heap"]
        translation = stats["translation"]
        l1 = stats["cache"]["L1"]
        l2 = stats["cache"]["L2"]

        lines = [
            "",
            "--- Memory Statistics ---",
            f"Total memory: {heap['total']} bytes",
            f"Used memory: {heap['used']} bytes",
            f"Free memory: {heap['free']} bytes",
            f"Largest free block: {heap['largest_free']} bytes",
            f"Memory utilization: {heap['utilization']:.2f}%",
            f"External fragmentation: {heap['external_fragmentation']:.2f}%",
            f"Internal fragmentation: {heap['internal_fragmentation']:.2f}%",
            f"Allocation requests: {heap['requests']}",
            f"Successful allocations: {heap['successes']}",
            f"Failed allocations: {heap['failures']}",
            "",
            "--- Translation Statistics ---",
            f"TLB Hits: {translation['tlb_hits']}",
            f"TLB Misses: {translation['tlb_misses']}",
            f"TLB Hit Ratio: {translation['hit_ratio']:.2f}",
            "",
            "--- Cache Statistics ---",
            f"L1 Hits: {l1['hits']}",
            f"L1 Misses: {l1['misses']}",
            f"L2 Hits: {l2['hits']}",
            f"L2 Misses: {l2['misses']}",
        ]
        return "\n".join(lines)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Memory Management Simulator shell"
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print the machine configuration before the shell starts",
    )
    group.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="No banner or prompt (for piping command scripts)",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    console = Console()
    if args.verbose:
        print(console.simulator.config)
    return console.run(quiet=args.quiet)


if __name__ == '__main__':
    sys.exit(main())
