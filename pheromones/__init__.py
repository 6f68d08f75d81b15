"""
Pheromone memory strategies.

All three share one contract (``kind``, ``initial``, ``get``, ``update``, ``global_update``,
``as_matrix``) and are selected by name with ``make_pheromone``:

    dense: Full N x N matrix, unsynchronised read-modify-write.
    locked: Full N x N matrix, one spin lock per unordered edge.
    selective: Fixed-capacity short list per node plus a shared default value.
"""

from .dense import DensePheromone
from .locked import LockedPheromone
from .selective import SelectivePheromone, DEFAULT_CAPACITY, check_capacity

MEMORIES = {
    'dense': DensePheromone,
    'locked': LockedPheromone,
    'selective': SelectivePheromone,
}


def make_pheromone(kind, dimension, initial, **kwargs):
    """
    Builds the pheromone memory registered under ``kind``.

    Raises:
        ValueError: If ``kind`` is unknown or ``initial`` is not strictly positive.
    """
    if kind not in MEMORIES:
        raise ValueError(f"Unknown pheromone memory: {kind} available: {', '.join(MEMORIES)}")
    if not initial > 0:
        raise ValueError("Initial pheromone must be greater than 0.")
    return MEMORIES[kind](dimension, initial, **kwargs)
