"""
batcher: run a batch of identical external commands with bounded parallelism
and report per-job outcomes and aggregate run statistics.
"""

__version__ = "0.1.0"
