"""
Tiered cache core: an in-process L1 cache in front of a shared Redis L2 cache,
with per-region TTL policies, read-through loading and evict-on-write
coherency for a catalogue backend.
"""

__version__ = "1.0.0"
