'''
Dense pheromone memory with exact updates.

Every unordered edge {u, v} owns one ``int32`` spin lock, taken with an atomic
compare-and-swap around the read-modify-write of both (u, v) and (v, u). Competing
updaters get no ordering guarantee, only mutual exclusion.
'''

import numba
import numpy as np

from kernels.atomics import compare_and_swap, atomic_exchange

UNLOCKED = 0
LOCKED = 1


@numba.njit(cache=True)
def locked_update(pheromone, locks, u, v, decay, deposit):
    n = pheromone.shape[0]
    cell = min(u, v) * n + max(u, v)
    while compare_and_swap(locks, cell, UNLOCKED, LOCKED) != UNLOCKED:
        pass
    value = (1.0 - decay) * pheromone[u, v] + decay * deposit
    pheromone[u, v] = value
    pheromone[v, u] = value
    atomic_exchange(locks, cell, UNLOCKED)
    return value


@numba.njit(parallel=True, cache=True)
def locked_global_update(pheromone, locks, route, decay, deposit):
    n = route.shape[0]
    for i in numba.prange(n):
        succ = route[(np.int64(i) + 1) % n]
        locked_update(pheromone, locks, route[i], succ, decay, deposit)


class LockedPheromone:
    """
    Full ``float32`` pheromone matrix whose updates are serialised per edge.

    Attributes:
        values (np.ndarray): The (dimension, dimension) matrix.
        locks (np.ndarray): Flat ``int32`` lock array indexed by ``min(u, v) * dimension + max(u, v)``.
        initial (float): Value every edge starts from.
    """
    kind = 'locked'

    def __init__(self, dimension, initial):
        self.dimension = dimension
        self.initial = float(initial)
        self.values = np.full((dimension, dimension), self.initial, dtype=np.float32)
        self.locks = np.zeros(dimension * dimension, dtype=np.int32)

    def get(self, u, v):
        return float(self.values[u, v])

    def update(self, u, v, decay, deposit):
        return float(locked_update(self.values, self.locks, u, v, float(decay), float(deposit)))

    def global_update(self, route, decay, best_length):
        route = np.ascontiguousarray(route, dtype=np.int32)
        locked_global_update(self.values, self.locks, route, float(decay), 1.0 / best_length)

    def as_matrix(self):
        return self.values.copy()
