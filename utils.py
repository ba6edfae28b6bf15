# utils.py

def get_color(allocated, block_id=None):
    """Return a color for allocated/free blocks."""
    if not allocated:
        return "#d3d3d3"  # light grey
    # pastel hue picked by id so a block keeps its color across reruns
    hue = ((block_id or 0) * 67) % 360
    return f"hsl({hue}, 70%, 75%)"


def format_range(start, end):
    return f"[0x{start:04x} - 0x{end:04x}]"


def format_block(block):
    """One heap dump line, e.g. ``[0x0000 - 0x0063] USED (id=1)``."""
    state = f"USED (id={block.block_id})" if block.allocated else "FREE"
    return f"{format_range(block.start, block.end)} {state}"
