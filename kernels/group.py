'''
Synchronous lane-group primitives.

A lane group is a fixed-size array where element ``i`` is the register of lane ``i``.
Every primitive advances all lanes together: each step first copies the lanes into an
exchange buffer and only then lets every lane read its partner, so no lane ever observes
a partially updated neighbour. Results are written back into every lane (broadcast) and
the value of lane 0 is returned for convenience.

Widths must be powers of two.
'''

import numba
import numpy as np

WARP_SIZE = 32
GROUP_COUNT = 4
BLOCK_SIZE = WARP_SIZE * GROUP_COUNT


@numba.njit(cache=True)
def reduce(values):
    """
    Butterfly sum over the lanes of ``values``.

    Args:
        values (np.ndarray): One value per lane. Overwritten with the total in every lane.

    Returns:
        The sum of all lanes.
    """
    width = values.shape[0]
    exchange = np.empty_like(values)
    offset = width // 2
    while offset > 0:
        exchange[:] = values
        for lane in range(width):
            values[lane] = exchange[lane] + exchange[lane ^ offset]
        offset //= 2
    return values[0]


@numba.njit(cache=True)
def _beats(value, lane, other_value, other_lane):
    return value > other_value or (value == other_value and lane < other_lane)


@numba.njit(cache=True)
def reduce_arg_max(ids, values):
    """
    Finds the (id, value) pair of the lane holding the largest value.

    Ties go to the lowest lane. Both arrays are overwritten so that every lane holds the
    winning pair.

    Args:
        ids (np.ndarray): Identifier carried by each lane.
        values (np.ndarray): Key compared across lanes.

    Returns:
        tuple: (id, value) of the winning lane.
    """
    width = values.shape[0]
    lanes = np.arange(width)
    exchange_ids = np.empty_like(ids)
    exchange_values = np.empty_like(values)
    exchange_lanes = np.empty_like(lanes)
    offset = width // 2
    while offset > 0:
        exchange_ids[:] = ids
        exchange_values[:] = values
        exchange_lanes[:] = lanes
        for lane in range(width):
            other = lane ^ offset
            if _beats(exchange_values[other], exchange_lanes[other],
                      exchange_values[lane], exchange_lanes[lane]):
                ids[lane] = exchange_ids[other]
                values[lane] = exchange_values[other]
                lanes[lane] = exchange_lanes[other]
        offset //= 2
    return ids[0], values[0]


@numba.njit(cache=True)
def scan(values):
    """
    Inclusive prefix sum (Hillis-Steele). Lane ``i`` ends up with the sum of lanes 0..i.

    Returns:
        The total, i.e. the value of the last lane.
    """
    width = values.shape[0]
    exchange = np.empty_like(values)
    offset = 1
    while offset < width:
        exchange[:] = values
        for lane in range(offset, width):
            values[lane] = exchange[lane] + exchange[lane - offset]
        offset *= 2
    return values[width - 1]


@numba.njit(cache=True)
def broadcast(values, src_lane):
    value = values[src_lane]
    values[:] = value
    return value


@numba.njit(cache=True)
def ballot(flags):
    """Packs one vote per lane into a bit mask, lane ``i`` being bit ``i``."""
    mask = 0
    for lane in range(flags.shape[0]):
        if flags[lane]:
            mask |= 1 << lane
    return mask


@numba.njit(cache=True)
def first_lane(mask):
    """Lowest lane whose bit is set in ``mask``, or -1 for an empty mask."""
    if mask == 0:
        return -1
    lane = 0
    while (mask >> lane) & 1 == 0:
        lane += 1
    return lane


@numba.njit(cache=True)
def block_reduce_arg_max(ids, values):
    """
    Two-level arg-max over a block of ``GROUP_COUNT`` lane groups.

    Each group reduces its own lanes first; the group winners are then gathered into the
    first lanes of a single group (the rest padded with -inf) and reduced again, so ties
    still resolve to the lowest lane of the block.
    """
    groups = values.shape[0] // WARP_SIZE
    partial_ids = np.full(WARP_SIZE, -1, dtype=ids.dtype)
    partial_values = np.full(WARP_SIZE, -np.inf, dtype=values.dtype)
    for group in range(groups):
        lo = group * WARP_SIZE
        group_id, group_value = reduce_arg_max(ids[lo:lo + WARP_SIZE], values[lo:lo + WARP_SIZE])
        partial_ids[group] = group_id
        partial_values[group] = group_value
    return reduce_arg_max(partial_ids, partial_values)
