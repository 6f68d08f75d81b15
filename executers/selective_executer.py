'''
This module defines the construction strategy over selective pheromone memory.

Classes
-------
- SelectiveExecuter: Single-launch construction reading and updating a per-node short
  list of pheromone values, for instances where a dense matrix does not fit.
'''

from . import Executer
from pheromones import make_pheromone, check_capacity, DEFAULT_CAPACITY
from kernels.construct import MAX_DIMENSION
from kernels.selective import build_tours_selective, deposit_step_selective


class SelectiveExecuter(Executer):
    """
    Args:
        problem: Problem data provider.
        capacity (int, optional): Short-list slots per city, a power of two up to the lane
            group width. Defaults to 8.
        **kwargs: Colony parameters forwarded to `Executer`.
    """
    name = 'selective'
    memory = 'selective'

    def __init__(self, problem, capacity=DEFAULT_CAPACITY, **kwargs):
        if problem.dimension > MAX_DIMENSION:
            raise ValueError(f"Selective construction supports at most {MAX_DIMENSION} cities.")
        check_capacity(capacity)
        super().__init__(problem, **kwargs)
        self.capacity = capacity

    def init_pheromone(self, initial):
        self.pheromone = make_pheromone('selective', self.problem.dimension, initial, capacity=self.capacity)
        self.initial = float(initial)

    def build_solutions(self, starts):
        starts = self._check_ready(starts)
        problem = self.problem
        memory = self.pheromone
        build_tours_selective(starts, problem.distances, problem.heuristic, problem.neighbors,
                              memory.ids, memory.values, memory.default,
                              self.q0, self.phi, self.initial, self.local_update_every,
                              self.states, self.routes, self.lengths, self.status)
        self._check_status()
        return self.routes, self.lengths

    def local_update(self, step):
        if step < 1 or step >= self.problem.dimension:
            raise ValueError(f"Step must lie in [1, {self.problem.dimension - 1}].")
        memory = self.pheromone
        deposit_step_selective(step, self.routes, memory.ids, memory.values, memory.default,
                               self.phi, self.initial, self.local_update_every, self.status)
