"""Core primitives: walkers, buffers, smoothing, schedule, events, scheduling.

A tick steps every walker once and appends one sample per metric, so all
series stay aligned on the same tick index.
"""
