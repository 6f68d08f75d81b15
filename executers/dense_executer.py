'''
This module defines the construction strategies that work on a dense pheromone matrix.

Classes
-------
- DenseExecuter: Abstract base for strategies over the 'dense' or 'locked' memory.
- MonolithicExecuter: Builds every tour in a single kernel launch per iteration.
- StepExecuter: Launches one kernel per construction step, with an optional host hook
  between steps.

The memory is chosen by name: 'dense' applies local updates without synchronisation
(concurrent ants may lose updates), 'locked' serialises them per edge and is the exact
reference behaviour.
'''

import numpy as np

from . import Executer
from pheromones import make_pheromone
from kernels.construct import MAX_DIMENSION, build_tours, place_ants, advance_ants, deposit_step, evaluate_tours


class DenseExecuter(Executer):
    """
    Base class for strategies that keep the pheromone in a full matrix.

    Args:
        problem: Problem data provider.
        memory (str, optional): 'dense' or 'locked'. Defaults to 'dense'.
        **kwargs: Colony parameters forwarded to `Executer`.
    """
    memories = ('dense', 'locked')

    def __init__(self, problem, memory='dense', **kwargs):
        super().__init__(problem, **kwargs)
        if memory not in self.memories:
            raise ValueError(f"Unknown memory for {self.name}: {memory} available: {', '.join(self.memories)}")
        self.memory = memory
        self._no_locks = np.zeros(0, dtype=np.int32)

    @property
    def exact(self):
        return self.memory == 'locked'

    def _locks(self):
        return self.pheromone.locks if self.exact else self._no_locks

    def init_pheromone(self, initial):
        self.pheromone = make_pheromone(self.memory, self.problem.dimension, initial)
        self.initial = float(initial)

    def local_update(self, step):
        if step < 1 or step >= self.problem.dimension:
            raise ValueError(f"Step must lie in [1, {self.problem.dimension - 1}].")
        deposit_step(step, self.routes, self.pheromone.values, self._locks(), self.exact,
                     self.phi, self.initial, self.local_update_every, self.status)


class MonolithicExecuter(DenseExecuter):
    """
    Single-launch construction. The visited set of each ant is a bitmask with room for
    ``MAX_DIMENSION`` cities, so larger instances are rejected.
    """
    name = 'monolithic'

    def __init__(self, problem, memory='dense', **kwargs):
        if problem.dimension > MAX_DIMENSION:
            raise ValueError(f"Monolithic construction supports at most {MAX_DIMENSION} cities.")
        super().__init__(problem, memory=memory, **kwargs)

    def build_solutions(self, starts):
        starts = self._check_ready(starts)
        problem = self.problem
        build_tours(starts, problem.distances, problem.heuristic, problem.neighbors,
                    self.pheromone.values, self._locks(), self.exact,
                    self.q0, self.phi, self.initial, self.local_update_every,
                    self.states, self.routes, self.lengths, self.status)
        self._check_status()
        return self.routes, self.lengths


class StepExecuter(DenseExecuter):
    """
    Per-step construction: every launch advances all ants by one city, followed by the
    local update launch for that step. Visited flags live in a per-ant array between
    launches and tour lengths are computed by a final evaluation launch.

    Args:
        on_step (callable, optional): Called as ``on_step(step, routes)`` after each step
            has been committed and its local update applied.
    """
    name = 'step'

    def __init__(self, problem, memory='dense', on_step=None, **kwargs):
        super().__init__(problem, memory=memory, **kwargs)
        self.on_step = on_step
        self.visited = None

    def init_run(self, seed=None):
        super().init_run(seed)
        self.visited = np.zeros((self.n_ants, self.problem.dimension), dtype=np.uint8)

    def release_run(self):
        super().release_run()
        self.visited = None

    def build_solutions(self, starts):
        starts = self._check_ready(starts)
        problem = self.problem
        place_ants(starts, self.routes, self.visited, self.status)
        for step in range(1, problem.dimension):
            advance_ants(step, problem.heuristic, problem.neighbors, self.pheromone.values,
                         self.q0, self.states, self.routes, self.visited, self.status)
            self.local_update(step)
            if self.on_step is not None:
                self.on_step(step, self.routes)
        evaluate_tours(self.routes, problem.distances, self.lengths)
        self._check_status()
        return self.routes, self.lengths
