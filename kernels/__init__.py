"""
This package holds the numba kernels that stand in for the parallel device.

Modules:
    group: Synchronous lane-group primitives (reduce, arg-max, scan, broadcast, ballot).
    rng: Per-ant xoroshiro128+ random streams.
    atomics: Compare-and-swap and exchange on integer arrays.
    construct: Tour construction kernels over dense pheromone memory.
    selective: Tour construction kernels over selective (sparse) pheromone memory.
"""

from .group import WARP_SIZE, GROUP_COUNT, BLOCK_SIZE
from . import group
from . import rng
from . import atomics
