'''
Per-ant xoroshiro128+ random streams.

The generator is numba's own (``numba.cuda.random``), whose functions are CPU-jitted and
callable from nopython kernels. Every ant owns one element of a ``xoroshiro128p_dtype``
state array; the states come from one seed through splitmix64, each stream jumped 2**64
draws ahead of the previous one, so a whole run is reproducible from one integer seed.

Device draws used by the kernels:
    xoroshiro128p_uniform_float64(states, ant): float in [0, 1).
    xoroshiro128p_next(states, ant): raw ``uint64``.
'''

import numpy as np
from numba.cuda.random import (xoroshiro128p_dtype, init_xoroshiro128p_states_cpu,
                               xoroshiro128p_uniform_float64, xoroshiro128p_next)

__all__ = ['create_states', 'xoroshiro128p_dtype', 'xoroshiro128p_uniform_float64', 'xoroshiro128p_next']


def create_states(n_streams, seed=None):
    """
    Allocates and seeds one random stream per ant.

    Args:
        n_streams (int): Number of streams (ants).
        seed (int, optional): Non-negative seed. None draws fresh entropy.

    Returns:
        np.ndarray: (n_streams,) array of ``xoroshiro128p_dtype`` states.
    """
    if seed is None:
        seed = np.random.default_rng().integers(0, np.iinfo(np.int64).max)
    if seed < 0:
        raise ValueError("Seed must be a non-negative integer.")
    states = np.empty(n_streams, dtype=xoroshiro128p_dtype)
    init_xoroshiro128p_states_cpu(states, seed, 0)
    return states
