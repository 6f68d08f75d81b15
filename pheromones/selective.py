'''
Selective (sparse) pheromone memory.

Each node keeps a short list of ``capacity`` slots holding (neighbour id, value); ``-1``
marks an empty slot. Edges missing from a node's list read as the shared default value,
which is the initial pheromone: under the ACS rules an edge that no update has touched
still holds exactly that value.

Inserts are cooperative and racy: the slot lanes vote for a match, then for a free slot,
and otherwise the lowest-valued slot is evicted. Two ants inserting into the same node at
once may pick the same slot and one write is lost. An insert only ever writes the row of
the node it targets.
'''

import numba
import numpy as np

from kernels.group import WARP_SIZE, ballot, first_lane, reduce_arg_max

EMPTY = -1
DEFAULT_CAPACITY = 8


@numba.njit(cache=True)
def find_slot(ids, node, target):
    """Slot of ``target`` in ``node``'s list, or -1."""
    capacity = ids.shape[1]
    hits = np.zeros(capacity, dtype=np.bool_)
    for lane in range(capacity):
        hits[lane] = ids[node, lane] == target
    return first_lane(ballot(hits))


@numba.njit(cache=True)
def selective_get(ids, values, default, u, v):
    slot = find_slot(ids, u, v)
    if slot < 0:
        return default
    return values[u, slot]


@numba.njit(cache=True)
def _victim_slot(ids, values, node):
    capacity = ids.shape[1]
    empty = np.zeros(capacity, dtype=np.bool_)
    for lane in range(capacity):
        empty[lane] = ids[node, lane] == EMPTY
    slot = first_lane(ballot(empty))
    if slot >= 0:
        return slot
    lanes = np.arange(capacity)
    keys = np.empty(capacity)
    for lane in range(capacity):
        keys[lane] = -values[node, lane]
    slot, _ = reduce_arg_max(lanes, keys)
    return slot


@numba.njit(cache=True)
def selective_set(ids, values, default, u, v, decay, deposit):
    """One-directional update of edge (u, v) inside ``u``'s list."""
    slot = find_slot(ids, u, v)
    if slot >= 0:
        value = (1.0 - decay) * values[u, slot] + decay * deposit
        values[u, slot] = value
        return value
    # depositing the default onto an absent edge leaves it at the default
    if deposit == default:
        return default
    value = (1.0 - decay) * default + decay * deposit
    slot = _victim_slot(ids, values, u)
    ids[u, slot] = v
    values[u, slot] = value
    return value


@numba.njit(cache=True)
def selective_update(ids, values, default, u, v, decay, deposit):
    value = selective_set(ids, values, default, u, v, decay, deposit)
    selective_set(ids, values, default, v, u, decay, deposit)
    return value


@numba.njit(parallel=True, cache=True)
def selective_global_update(ids, values, default, route, decay, deposit):
    # one lane group per tour position; it alone writes the list of route[i]
    n = route.shape[0]
    for i in numba.prange(n):
        pos = np.int64(i)
        node = route[pos]
        succ = route[(pos + 1) % n]
        pred = route[(pos + n - 1) % n]
        selective_set(ids, values, default, node, succ, decay, deposit)
        selective_set(ids, values, default, node, pred, decay, deposit)


def check_capacity(capacity):
    if capacity <= 0 or capacity > WARP_SIZE or capacity & (capacity - 1):
        raise ValueError(f"Capacity must be a power of two between 1 and {WARP_SIZE}.")


class SelectivePheromone:
    """
    Capacity-limited pheromone memory for instances too large for a dense matrix.

    Attributes:
        ids (np.ndarray): ``int32`` (dimension, capacity) neighbour ids, -1 when empty.
        values (np.ndarray): ``float32`` (dimension, capacity) pheromone of each slot.
        default (float): Pheromone of every edge absent from a list.
    """
    kind = 'selective'

    def __init__(self, dimension, initial, capacity=DEFAULT_CAPACITY):
        check_capacity(capacity)
        self.dimension = dimension
        self.capacity = capacity
        self.initial = float(initial)
        self.default = self.initial
        self.ids = np.full((dimension, capacity), EMPTY, dtype=np.int32)
        self.values = np.full((dimension, capacity), self.initial, dtype=np.float32)

    def get(self, u, v):
        return float(selective_get(self.ids, self.values, self.default, u, v))

    def update(self, u, v, decay, deposit):
        return float(selective_update(self.ids, self.values, self.default, u, v, float(decay), float(deposit)))

    def global_update(self, route, decay, best_length):
        route = np.ascontiguousarray(route, dtype=np.int32)
        selective_global_update(self.ids, self.values, self.default, route, float(decay), 1.0 / best_length)

    def as_matrix(self):
        """Dense view of the memory, mostly useful for inspection and tests."""
        matrix = np.full((self.dimension, self.dimension), self.default, dtype=np.float32)
        rows, slots = np.nonzero(self.ids != EMPTY)
        matrix[rows, self.ids[rows, slots]] = self.values[rows, slots]
        return matrix
