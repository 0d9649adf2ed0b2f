"""Synthetic AI training-ops dashboard.

Bounded random walks stand in for live training metrics (loss, accuracy,
throughput, memory, latency, gradient norm, GPU utilisation). A periodic
scheduler advances them in lockstep into fixed-size buffers, a cosine
schedule supplies the learning rate, and a sparse event log adds noise. The
Dash dashboard only reads snapshots of that state.
"""

__all__ = [
    "config",
    "core",
    "web",
    "utils",
]
