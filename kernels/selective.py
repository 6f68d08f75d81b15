'''
Tour construction kernels over selective pheromone memory.

Same control flow as the monolithic dense kernel, but candidate scoring reads the sparse
memory. The lanes are split in two groups: the first scores the unvisited entries of the
current node's short list with their stored pheromone, the second scores the unvisited
nearest neighbours that are not in the short list with the shared default pheromone.
Whenever a selection is attempted at least one of the two groups must produce a valid
candidate; otherwise the ant reports ``MEMORY_INVARIANT``.
'''

import numba
import numpy as np

from .group import WARP_SIZE, BLOCK_SIZE, ballot, block_reduce_arg_max, reduce_arg_max
from .rng import xoroshiro128p_uniform_float64
from .construct import (NONE, INVALID, OK, NO_CANDIDATE, MEMORY_INVARIANT, VISITED_WORDS,
                        is_visited, mark_visited, explore, tour_length)
from pheromones.selective import EMPTY, find_slot, selective_get, selective_update

LANES = 2 * WARP_SIZE


@numba.njit(cache=True)
def select_candidate_selective(curr, heuristic, neighbors, ids, values, default, visited, q0, states, ant):
    """
    Returns the selected node, NONE when nothing could be selected, or INVALID when
    neither lane group yields a candidate although one of them reported a valid lane.
    """
    capacity = ids.shape[1]
    k = neighbors.shape[1]
    lane_ids = np.full(LANES, NONE, dtype=np.int64)
    scores = np.zeros(LANES)
    valid = np.zeros(LANES, dtype=np.bool_)
    for lane in range(capacity):
        node = ids[curr, lane]
        if node != EMPTY and not is_visited(visited, node, True):
            lane_ids[lane] = node
            valid[lane] = True
            scores[lane] = heuristic[curr, node] * values[curr, lane]
    for j in range(k):
        lane = WARP_SIZE + j
        node = neighbors[curr, j]
        if not is_visited(visited, node, True) and find_slot(ids, curr, node) < 0:
            lane_ids[lane] = node
            valid[lane] = True
            scores[lane] = heuristic[curr, node] * default

    q = xoroshiro128p_uniform_float64(states, ant)
    if ballot(valid) == 0:
        return NONE
    if q >= q0:
        return explore(lane_ids, scores, valid, states, ant)

    keys = np.empty(LANES)
    for lane in range(LANES):
        keys[lane] = scores[lane] if valid[lane] else -1.0
    listed_id, listed_value = reduce_arg_max(lane_ids[:WARP_SIZE].copy(), keys[:WARP_SIZE])
    default_id, default_value = reduce_arg_max(lane_ids[WARP_SIZE:].copy(), keys[WARP_SIZE:])
    # valid lanes score >= 0 and some lane is valid, so one half always beats -1;
    # reaching this means the lane split itself is broken
    if listed_value < 0.0 and default_value < 0.0:
        return INVALID
    if listed_value >= default_value:
        return listed_id
    return default_id


@numba.njit(cache=True)
def fallback_scan_selective(curr, heuristic, ids, values, default, visited):
    n = heuristic.shape[0]
    lane_ids = np.full(BLOCK_SIZE, NONE, dtype=np.int64)
    keys = np.full(BLOCK_SIZE, -1.0)
    for lane in range(BLOCK_SIZE):
        for node in range(lane, n, BLOCK_SIZE):
            if not is_visited(visited, node, True):
                score = heuristic[curr, node] * selective_get(ids, values, default, curr, node)
                if score > keys[lane]:
                    keys[lane] = score
                    lane_ids[lane] = node
    choice, _ = block_reduce_arg_max(lane_ids, keys)
    return choice


@numba.njit(cache=True)
def deposit_edge_selective(step, route, ids, values, default, phi, tau0, update_every):
    if step % update_every != 0:
        return
    n = route.shape[0]
    selective_update(ids, values, default, route[step - 1], route[step], phi, tau0)
    if step == n - 1:
        selective_update(ids, values, default, route[step], route[0], phi, tau0)


@numba.njit(parallel=True, cache=True)
def build_tours_selective(starts, distances, heuristic, neighbors, ids, values, default,
                          q0, phi, tau0, update_every, states, routes, lengths, status):
    n = distances.shape[0]
    for ant in numba.prange(starts.shape[0]):
        visited = np.zeros(VISITED_WORDS, dtype=np.uint32)
        route = routes[ant]
        route[0] = starts[ant]
        mark_visited(visited, route[0], True)
        status[ant] = OK
        for step in range(1, n):
            curr = route[step - 1]
            node = select_candidate_selective(curr, heuristic, neighbors, ids, values, default,
                                              visited, q0, states, ant)
            if node == INVALID:
                status[ant] = MEMORY_INVARIANT
                break
            if node == NONE:
                node = fallback_scan_selective(curr, heuristic, ids, values, default, visited)
                if node == NONE:
                    status[ant] = NO_CANDIDATE
                    break
            route[step] = node
            mark_visited(visited, node, True)
            deposit_edge_selective(step, route, ids, values, default, phi, tau0, update_every)
        lengths[ant] = tour_length(route, distances)


@numba.njit(parallel=True, cache=True)
def deposit_step_selective(step, routes, ids, values, default, phi, tau0, update_every, status):
    for ant in numba.prange(routes.shape[0]):
        if status[ant] == OK:
            deposit_edge_selective(step, routes[ant], ids, values, default, phi, tau0, update_every)
