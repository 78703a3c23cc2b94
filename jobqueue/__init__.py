"""
Redis Job Queue

A best-effort, at-most-once FIFO job queue backed by Redis lists, drained by
a pool of asyncio workers that dispatch each job to a pluggable handler.
"""

__version__ = "1.0.0"
