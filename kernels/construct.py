'''
Ant tour construction kernels over dense pheromone memory.

One ant is driven by one lane group. At every step the lanes score the current node's
nearest neighbours, then either exploit (arg-max, probability q0) or explore (roulette
wheel over the inclusive scan of the scores). When no neighbour can be selected the whole
block scans every node and reduces in two levels. The committing lane appends the node,
marks it visited and, every ``update_every`` steps, applies the local pheromone rule.

Two execution strategies share these device functions:

- ``build_tours``: one launch builds every ant's whole tour; the visited set is a bitmask
  sized for ``MAX_DIMENSION`` nodes.
- ``place_ants`` / ``advance_ants`` / ``deposit_step`` / ``evaluate_tours``: one launch
  per step, visited flags kept per ant between launches.

Ants report failures through a per-ant ``status`` array.
'''

import numba
import numpy as np

from .group import WARP_SIZE, BLOCK_SIZE, reduce, reduce_arg_max, scan, ballot, first_lane, block_reduce_arg_max
from .rng import xoroshiro128p_uniform_float64
from pheromones.dense import dense_get, dense_update
from pheromones.locked import locked_update

MAX_DIMENSION = 8192
VISITED_WORDS = MAX_DIMENSION // 32

NONE = -1
INVALID = -2

OK = 0
NO_CANDIDATE = 1
MEMORY_INVARIANT = 2


@numba.njit(cache=True)
def is_visited(visited, node, packed):
    if packed:
        return (visited[node >> 5] >> (node & 31)) & 1 == 1
    return visited[node] != 0


@numba.njit(cache=True)
def mark_visited(visited, node, packed):
    if packed:
        visited[node >> 5] |= np.uint32(1 << (node & 31))
    else:
        visited[node] = 1


@numba.njit(cache=True)
def exploit(ids, scores, valid):
    """Arg-max over the valid lanes, ties to the lowest lane. Returns NONE if no lane is valid."""
    width = scores.shape[0]
    keys = np.empty(width)
    for lane in range(width):
        keys[lane] = scores[lane] if valid[lane] else -1.0
    choice, best = reduce_arg_max(ids.copy(), keys)
    if best < 0.0:
        return NONE
    return choice


@numba.njit(cache=True)
def explore(ids, scores, valid, states, ant):
    """
    Roulette-wheel selection over the lanes.

    The scores are turned into inclusive prefix sums, a uniform draw is scaled by the
    total and the first lane whose prefix reaches it wins. A winning lane that is not
    valid counts as no selection.
    """
    width = scores.shape[0]
    prefix = scores.copy()
    total = scan(prefix)
    if total <= 0.0:
        return NONE
    threshold = xoroshiro128p_uniform_float64(states, ant) * total
    hits = np.zeros(width, dtype=np.bool_)
    for lane in range(width):
        hits[lane] = prefix[lane] >= threshold
    lane = first_lane(ballot(hits))
    if lane < 0 or not valid[lane]:
        return NONE
    return ids[lane]


@numba.njit(cache=True)
def pick(ids, scores, valid, q0, states, ant):
    q = xoroshiro128p_uniform_float64(states, ant)
    if ballot(valid) == 0:
        return NONE
    if q < q0:
        return exploit(ids, scores, valid)
    return explore(ids, scores, valid, states, ant)


@numba.njit(cache=True)
def select_candidate(curr, heuristic, pheromone, neighbors, visited, packed, q0, states, ant):
    k = neighbors.shape[1]
    ids = np.full(WARP_SIZE, NONE, dtype=np.int64)
    scores = np.zeros(WARP_SIZE)
    valid = np.zeros(WARP_SIZE, dtype=np.bool_)
    for lane in range(k):
        node = neighbors[curr, lane]
        ids[lane] = node
        if not is_visited(visited, node, packed):
            valid[lane] = True
            scores[lane] = heuristic[curr, node] * dense_get(pheromone, curr, node)
    return pick(ids, scores, valid, q0, states, ant)


@numba.njit(cache=True)
def fallback_scan(curr, heuristic, pheromone, visited, packed):
    """Best unvisited node over the whole range, or NONE when every node is visited."""
    n = heuristic.shape[0]
    ids = np.full(BLOCK_SIZE, NONE, dtype=np.int64)
    keys = np.full(BLOCK_SIZE, -1.0)
    for lane in range(BLOCK_SIZE):
        for node in range(lane, n, BLOCK_SIZE):
            if not is_visited(visited, node, packed):
                score = heuristic[curr, node] * dense_get(pheromone, curr, node)
                if score > keys[lane]:
                    keys[lane] = score
                    ids[lane] = node
    choice, _ = block_reduce_arg_max(ids, keys)
    return choice


@numba.njit(cache=True)
def deposit(pheromone, locks, exact, u, v, decay, value):
    if exact:
        locked_update(pheromone, locks, u, v, decay, value)
    else:
        dense_update(pheromone, u, v, decay, value)


@numba.njit(cache=True)
def deposit_edge(step, route, pheromone, locks, exact, phi, tau0, update_every):
    """Local pheromone rule on the edge committed at ``step``; the last step also closes the tour."""
    if step % update_every != 0:
        return
    n = route.shape[0]
    deposit(pheromone, locks, exact, route[step - 1], route[step], phi, tau0)
    if step == n - 1:
        deposit(pheromone, locks, exact, route[step], route[0], phi, tau0)


@numba.njit(cache=True)
def tour_length(route, distances):
    n = route.shape[0]
    partial = np.zeros(WARP_SIZE)
    for lane in range(WARP_SIZE):
        for i in range(lane, n, WARP_SIZE):
            partial[lane] += distances[route[i], route[(i + 1) % n]]
    return reduce(partial)


@numba.njit(cache=True)
def construct_step(step, route, visited, packed, heuristic, neighbors, pheromone, q0, states, ant):
    """Selects and commits ``route[step]``. Returns the committed node or NONE."""
    curr = route[step - 1]
    node = select_candidate(curr, heuristic, pheromone, neighbors, visited, packed, q0, states, ant)
    if node == NONE:
        node = fallback_scan(curr, heuristic, pheromone, visited, packed)
        if node == NONE:
            return NONE
    route[step] = node
    mark_visited(visited, node, packed)
    return node


@numba.njit(parallel=True, cache=True)
def build_tours(starts, distances, heuristic, neighbors, pheromone, locks, exact,
                q0, phi, tau0, update_every, states, routes, lengths, status):
    """
    Monolithic construction: every ant builds its whole tour in this single launch.

    Args:
        starts (np.ndarray): Start node of each ant.
        distances, heuristic (np.ndarray): (n, n) problem matrices.
        neighbors (np.ndarray): (n, k) nearest-neighbour lists, k <= WARP_SIZE.
        pheromone (np.ndarray): (n, n) dense pheromone matrix, updated in place.
        locks (np.ndarray): Per-edge spin locks, only read when ``exact`` is True.
        exact (bool): Use locked updates instead of racy ones.
        q0, phi, tau0 (float): Exploitation probability, local decay, initial pheromone.
        update_every (int): Local update frequency in steps.
        states (np.ndarray): Per-ant random streams.
        routes, lengths, status (np.ndarray): Outputs, one row/slot per ant.
    """
    n = distances.shape[0]
    for ant in numba.prange(starts.shape[0]):
        visited = np.zeros(VISITED_WORDS, dtype=np.uint32)
        route = routes[ant]
        route[0] = starts[ant]
        mark_visited(visited, route[0], True)
        status[ant] = OK
        for step in range(1, n):
            node = construct_step(step, route, visited, True, heuristic, neighbors, pheromone, q0, states, ant)
            if node == NONE:
                status[ant] = NO_CANDIDATE
                break
            deposit_edge(step, route, pheromone, locks, exact, phi, tau0, update_every)
        lengths[ant] = tour_length(route, distances)


@numba.njit(parallel=True, cache=True)
def place_ants(starts, routes, visited, status):
    for ant in numba.prange(starts.shape[0]):
        visited[ant, :] = 0
        routes[ant, 0] = starts[ant]
        visited[ant, starts[ant]] = 1
        status[ant] = OK


@numba.njit(parallel=True, cache=True)
def advance_ants(step, heuristic, neighbors, pheromone, q0, states, routes, visited, status):
    """Advances every ant by exactly one construction step."""
    for ant in numba.prange(routes.shape[0]):
        if status[ant] == OK:
            node = construct_step(step, routes[ant], visited[ant], False, heuristic, neighbors,
                                  pheromone, q0, states, ant)
            if node == NONE:
                status[ant] = NO_CANDIDATE


@numba.njit(parallel=True, cache=True)
def deposit_step(step, routes, pheromone, locks, exact, phi, tau0, update_every, status):
    for ant in numba.prange(routes.shape[0]):
        if status[ant] == OK:
            deposit_edge(step, routes[ant], pheromone, locks, exact, phi, tau0, update_every)


@numba.njit(parallel=True, cache=True)
def evaluate_tours(routes, distances, lengths):
    for ant in numba.prange(routes.shape[0]):
        lengths[ant] = tour_length(routes[ant], distances)
