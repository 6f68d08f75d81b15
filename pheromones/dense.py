'''
Dense, unsynchronised pheromone memory.

Concurrent writers may overwrite each other's update of the same cell; the lost update is
an accepted approximation of the local pheromone rule.
'''

import numba
import numpy as np


@numba.njit(cache=True)
def dense_get(pheromone, u, v):
    return pheromone[u, v]


@numba.njit(cache=True)
def dense_update(pheromone, u, v, decay, deposit):
    """Applies ``(1 - decay) * old + decay * deposit`` to (u, v) and mirrors it on (v, u)."""
    value = (1.0 - decay) * pheromone[u, v] + decay * deposit
    pheromone[u, v] = value
    pheromone[v, u] = value
    return value


@numba.njit(parallel=True, cache=True)
def dense_global_update(pheromone, route, decay, deposit):
    # the edges of a tour are pairwise distinct, so no two iterations share a cell;
    # prange indices may be unsigned, hence the int64 cast
    n = route.shape[0]
    for i in numba.prange(n):
        succ = route[(np.int64(i) + 1) % n]
        dense_update(pheromone, route[i], succ, decay, deposit)


class DensePheromone:
    """
    Full ``float32`` pheromone matrix updated without synchronisation.

    Attributes:
        values (np.ndarray): The (dimension, dimension) matrix.
        initial (float): Value every edge starts from.
    """
    kind = 'dense'

    def __init__(self, dimension, initial):
        self.dimension = dimension
        self.initial = float(initial)
        self.values = np.full((dimension, dimension), self.initial, dtype=np.float32)

    def get(self, u, v):
        return float(dense_get(self.values, u, v))

    def update(self, u, v, decay, deposit):
        return float(dense_update(self.values, u, v, float(decay), float(deposit)))

    def global_update(self, route, decay, best_length):
        """
        Reinforces every edge of ``route`` with ``1 / best_length``.

        Args:
            route (np.ndarray): Best tour, a permutation of the nodes.
            decay (float): Global evaporation rate (rho).
            best_length (float): Length of ``route``.
        """
        route = np.ascontiguousarray(route, dtype=np.int32)
        dense_global_update(self.values, route, float(decay), 1.0 / best_length)

    def as_matrix(self):
        return self.values.copy()
