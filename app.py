"""
Memory Subsystem Visualizer — Heap, Paging, TLB & Caches

This application provides an interactive simulation and visualization of the
memory subsystem of an operating system plus processor:
    - Heap allocation with First/Best/Worst Fit and coalescing
    - Page Tables, Frame Tables and a small TLB
    - Page Replacement Algorithms (FIFO, LRU)
    - A two-level direct-mapped cache (L1, L2)

Built with Streamlit for the web interface and Plotly for visualizations.
The simulation itself lives in simulator.py and is shared with the text
console (console.py).
"""

# =============================================================================
# IMPORTS
# =============================================================================

import streamlit as st                       # Web application framework
import plotly.graph_objects as go            # Interactive plotting library

from engine import AllocationStrategy
from errors import SimulatorError
from paging import ReplacementPolicy
from simulator import Simulator
from utils import format_range, get_color


def run_operation(target, action, *args):
    """Run one simulator operation, showing any failure in ``target``.

    Returns (ok, result).
    """
    try:
        return True, action(*args)
    except SimulatorError as e:
        target.error(str(e))
        return False, None


# Configure the Streamlit page
st.set_page_config(page_title="Memory Subsystem Visualizer", layout="wide")

# -----------------------------------------------------------------------------
# SIDEBAR NAVIGATION
# -----------------------------------------------------------------------------

page = st.sidebar.radio("Choose View", ["Simulator", "Concepts"])

st.title("Memory Subsystem Visualizer — Heap, Paging, TLB & Caches")

# =============================================================================
# CONCEPTS PAGE - Educational Content
# =============================================================================

if page == "Concepts":
    st.header("Operating System Concepts Used in This Project")
    st.markdown(
        """
        ## 📘 Key Concepts

        ### **1. Heap Allocation**
        - The heap is one contiguous range split into *free* and *used* blocks.
        - **First Fit** takes the first free block that is large enough.
        - **Best Fit** takes the smallest free block that is large enough.
        - **Worst Fit** takes the largest free block.
        - Freeing a block merges it with a free neighbour on either side (**coalescing**).

        ### **2. Fragmentation**
        - **External**: free memory exists but is split into pieces too small to use.
          Measured here as `1 - largest_free / total_free`.
        - **Internal**: waste inside allocated blocks. Always 0 here, blocks are
          carved to the exact requested size.

        ### **3. Paging**
        - Virtual memory is divided into 64-byte *pages*, physical memory into *frames*.
        - The **Page Table** maps each virtual page to a frame and has a **Valid Bit**.
        - Translating a non-resident page raises a **Page Fault**; load the page first.

        ### **4. TLB**
        - A 4-entry cache of recent translations, replaced in ring order.
        - Entries are not flushed when their page is evicted, so a stale hit can
          point at a frame the page no longer owns.

        ### **5. Page Replacement Algorithms**
        #### **FIFO (First In First Out)**
        - Replace the page that entered memory earliest.

        #### **LRU (Least Recently Used)**
        - Replace the page with the oldest load or page-table translation.

        ### **6. Cache Hierarchy**
        - Every physical address goes to **L1** (8 lines), then **L2** (16 lines).
        - Both are direct-mapped: `index = block mod lines`, `tag = block / lines`.
        - An L2 hit is promoted into L1; a miss in both fills L2 then L1.
        """
    )
    st.stop()  # Stop rendering - don't show simulator on Concepts page

# -----------------------------------------------------------------------------
# SESSION STATE - Simulator Persistence
# -----------------------------------------------------------------------------

# One simulator per session (persists across Streamlit reruns)
if 'simulator' not in st.session_state:
    st.session_state.simulator = Simulator()

sim: Simulator = st.session_state.simulator
config = sim.config

# -----------------------------------------------------------------------------
# SIDEBAR - Policies
# -----------------------------------------------------------------------------

st.sidebar.header("Policies")

strategy = st.sidebar.selectbox(
    "Allocation strategy",
    options=list(AllocationStrategy.ALL),
    format_func=lambda s: AllocationStrategy.LABELS[s],
)
if strategy != sim.heap.algorithm:
    sim.set_allocation_strategy(strategy)

policy = st.sidebar.selectbox(
    "Replacement Policy",
    options=list(ReplacementPolicy.ALL),
    format_func=str.upper,
)
if policy != sim.vm.policy:
    sim.set_eviction_policy(policy)

# Reset button: a fresh simulator is a fresh "process"
if st.sidebar.button("Reset Simulation"):
    st.session_state.simulator = Simulator()
    sim = st.session_state.simulator
    sim.set_allocation_strategy(strategy)
    sim.set_eviction_policy(policy)
    st.sidebar.success("Simulation reset")

st.sidebar.markdown("---")

# -----------------------------------------------------------------------------
# SIDEBAR - Heap Controls
# -----------------------------------------------------------------------------

st.sidebar.header("Heap")

heap_size = st.sidebar.number_input("Heap size (bytes)", min_value=1, value=1024, step=64)
if st.sidebar.button("Init Heap"):
    ok, _ = run_operation(st.sidebar, sim.init_heap, int(heap_size))
    if ok:
        st.sidebar.success(f"Initialized heap with {heap_size} bytes")

alloc_size = st.sidebar.number_input("Allocation size (bytes)", min_value=1, value=100)
if st.sidebar.button("Allocate"):
    ok, block_id = run_operation(st.sidebar, sim.allocate, int(alloc_size))
    if ok:
        st.sidebar.success(f"Allocated {alloc_size} bytes (id={block_id})")

free_id = st.sidebar.number_input("Block id", min_value=1, value=1)
if st.sidebar.button("Free by id"):
    ok, _ = run_operation(st.sidebar, sim.free_by_id, int(free_id))
    if ok:
        st.sidebar.success(f"Block {free_id} freed")

free_addr = st.sidebar.number_input("Block address", min_value=0, value=0)
if st.sidebar.button("Free by address"):
    ok, _ = run_operation(st.sidebar, sim.free_by_address, int(free_addr))
    if ok:
        st.sidebar.success(f"Block at address {free_addr} freed")

st.sidebar.markdown("---")

# =============================================================================
# MAIN CONTENT AREA - Two Column Layout
# =============================================================================

col1, col2 = st.columns([1, 2])

# -----------------------------------------------------------------------------
# LEFT COLUMN - Paging Controls and Event Log
# -----------------------------------------------------------------------------

with col1:
    st.subheader("Paging Controls")

    load_page_no = st.number_input(
        "Page to load", min_value=0, max_value=config.num_pages - 1, value=0
    )
    if st.button("Load Page"):
        ok, result = run_operation(st, sim.load_page, int(load_page_no))
        if ok:
            if result.evicted_page is not None:
                st.warning(f"Evicted page {result.evicted_page}")
            st.success(f"Page {result.page_no} -> Frame {result.frame_no}")

    vaddr = st.number_input(
        "Virtual address", min_value=0, max_value=config.virtual_space - 1, value=0
    )
    if st.button("Translate"):
        ok, paddr = run_operation(st, sim.translate, int(vaddr))
        if ok:
            served = sim.vm.last_access.served_by if sim.vm.last_access else "-"
            st.success(f"Virtual {vaddr} -> Physical {paddr} (served by {served})")

    # Display event log (most recent 20 events, newest first)
    st.subheader("Event Log")
    for ev in sim.event_log[-20:][::-1]:
        st.write(ev)

# -----------------------------------------------------------------------------
# RIGHT COLUMN - Visualizations
# -----------------------------------------------------------------------------

with col2:
    # ----- Heap Block Map -----
    st.subheader("Heap Blocks")
    blocks = sim.dump_heap()

    if len(blocks) == 0:
        st.write("Heap not initialized — use Init Heap in the sidebar")
    else:
        heap_fig = go.Figure()
        for b in blocks:
            label = f"id={b.block_id}" if b.allocated else "Free"
            heap_fig.add_trace(go.Bar(
                y=["heap"],
                x=[b.size],
                orientation="h",
                marker_color=get_color(b.allocated, b.block_id),
                text=label,
                hovertext=f"{format_range(b.start, b.end)} {label} ({b.size} bytes)",
                hoverinfo="text",
            ))
        heap_fig.update_layout(
            barmode="stack",
            height=150,
            showlegend=False,
            yaxis=dict(showticklabels=False),
        )
        st.plotly_chart(heap_fig, use_container_width=True)

    # ----- Physical Frames Visualization -----
    st.subheader("Physical Frames")
    frames = sim.vm.get_frame_table()

    fig = go.Figure()
    x = []      # Frame indices
    y = []      # Bar heights (all 1 for uniform display)
    text = []   # Labels for each frame
    colors = [] # Color coding: green=occupied, gray=free

    for f in frames:
        label = f"F{f.frame_no}: " + (f"P{f.page_no}" if f.page_no is not None else "Free")
        text.append(label)
        colors.append("lightgreen" if f.occupied else "lightgray")
        x.append(f.frame_no)
        y.append(1)

    fig.add_trace(go.Bar(
        x=x,
        y=y,
        text=text,
        marker_color=colors,
        hovertext=text,
        hoverinfo='text'
    ))
    fig.update_layout(
        height=150,
        showlegend=False,
        yaxis=dict(showticklabels=False)
    )
    st.plotly_chart(fig, use_container_width=True)

    # ----- Page Table and TLB -----
    pt_col, tlb_col = st.columns(2)
    with pt_col:
        st.subheader("Page Table (resident)")
        ptable = sim.vm.get_page_table_snapshot()
        if len(ptable) == 0:
            st.write("No pages loaded yet")
        else:
            st.table([
                {"page": pno, "frame": pte.frame_no, "last_used": sim.vm.last_used.get(pno)}
                for pno, pte in sorted(ptable.items())
            ])
    with tlb_col:
        st.subheader("TLB")
        st.table([
            {"slot": i, "page": e.page_no if e.valid else None,
             "frame": e.frame_no if e.valid else None,
             "next": "◀" if i == sim.vm.tlb.cursor else ""}
            for i, e in enumerate(sim.vm.tlb.snapshot())
        ])

    # ----- Cache Lines -----
    l1_col, l2_col = st.columns(2)
    for column, cache in ((l1_col, sim.caches.l1), (l2_col, sim.caches.l2)):
        with column:
            st.subheader(f"{cache.name} Cache")
            st.table([
                {"line": i, "tag": line.tag if line.valid else None, "valid": line.valid}
                for i, line in enumerate(cache.snapshot())
            ])

    # ----- Statistics Display -----
    st.subheader("Statistics")
    stats = sim.stats()
    heap_stats = stats["heap"]
    tr_stats = stats["translation"]

    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Heap Utilization", f"{heap_stats['utilization']:.2f}%")
    m2.metric("External Fragmentation", f"{heap_stats['external_fragmentation']:.2f}%")
    m3.metric("Allocations (ok/failed)", f"{heap_stats['successes']}/{heap_stats['failures']}")
    m4.metric("TLB Hit Ratio", tr_stats['hit_ratio'])

    # ----- Hits vs Misses Bar Chart -----
    fig2 = go.Figure()
    levels = ["TLB", "L1", "L2"]
    fig2.add_trace(go.Bar(
        name="Hits",
        x=levels,
        y=[tr_stats['tlb_hits'], stats['cache']['L1']['hits'], stats['cache']['L2']['hits']],
    ))
    fig2.add_trace(go.Bar(
        name="Misses",
        x=levels,
        y=[tr_stats['tlb_misses'], stats['cache']['L1']['misses'], stats['cache']['L2']['misses']],
    ))
    fig2.update_layout(height=300, title="Hits vs Misses", barmode="group")
    st.plotly_chart(fig2, use_container_width=True)

    # ----- FIFO Queue Display -----
    st.subheader("Replacement Queue (FIFO order)")
    st.write(list(sim.vm.fifo_queue))

# =============================================================================
# FOOTER - Usage Tips and Examples
# =============================================================================

st.markdown("---")
st.markdown(
    "**Usage tips**:\n"
    "- Initialize the heap, then allocate and free blocks to watch coalescing.\n"
    "- Load pages before translating addresses in them; translating an unloaded page faults.\n"
    "- Switch replacement policy between FIFO and LRU before filling all 16 frames."
)

st.markdown("---")
st.markdown(
    "**Instructor examples**:\n"
    "1) Heap: init 1024, allocate 100 and 200, free id 1, allocate 50 → reuses offset 0.\n"
    "2) Paging: load page 0, translate 0 → physical 0; translate 70 faults until page 1 is loaded."
)
