'''
This module defines the abstract base class `Executer` for tour construction strategies.

An executer owns the per-run device buffers (the run context) and the pheromone memory,
and exposes the four operations the ACS controller drives:

    init_pheromone(initial), build_solutions(starts), local_update(step),
    global_update(route, length)

Classes
-------
Executer(ABC)
    Base class holding the run context and the status checks shared by every strategy.
ConstructionError(RuntimeError)
    Raised when an ant reports an unrecoverable construction failure.
'''

from abc import ABC, abstractmethod
import numpy as np

from kernels import rng
from kernels.construct import OK, NO_CANDIDATE, MEMORY_INVARIANT

STATUS_MESSAGES = {
    NO_CANDIDATE: "fallback scan found no unvisited node",
    MEMORY_INVARIANT: "selective memory yielded neither a short-list nor a default candidate",
}


class ConstructionError(RuntimeError):
    """Raised when ants report a failure through their status slot."""


class Executer(ABC):
    """
    Abstract base class for construction strategies.

    Attributes:
        problem: Problem data provider (dimension, distances, heuristic, neighbors).
        n_ants (int): Ants per iteration.
        q0 (float): Exploitation probability.
        phi (float): Local pheromone decay.
        rho (float): Global pheromone decay.
        local_update_every (int): Local pheromone update frequency, in construction steps.
        pheromone: Pheromone memory created by `init_pheromone`.
        routes (np.ndarray): ``int32`` (n_ants, dimension) tours of the current iteration.
        lengths (np.ndarray): ``float64`` (n_ants,) tour lengths of the current iteration.
        status (np.ndarray): ``int32`` (n_ants,) per-ant construction status.
        states (np.ndarray): (n_ants,) ``xoroshiro128p_dtype`` per-ant random streams.
    """
    name = None
    memory = None

    def __init__(self, problem, n_ants=32, q0=0.9, phi=0.01, rho=0.2, local_update_every=1):
        if n_ants <= 0:
            raise ValueError("Number of ants must be greater than 0.")
        if q0 < 0 or q0 > 1:
            raise ValueError("q0 must be between 0 and 1.")
        if phi < 0 or phi > 1:
            raise ValueError("Phi must be between 0 and 1.")
        if rho < 0 or rho > 1:
            raise ValueError("Rho must be between 0 and 1.")
        if local_update_every <= 0:
            raise ValueError("Local update frequency must be greater than 0.")

        self.problem = problem
        self.n_ants = n_ants
        self.q0 = float(q0)
        self.phi = float(phi)
        self.rho = float(rho)
        self.local_update_every = int(local_update_every)
        self.pheromone = None
        self.initial = None
        self.routes = None
        self.lengths = None
        self.status = None
        self.states = None

    def init_run(self, seed=None):
        """
        Allocates the run context.

        Args:
            seed (int, optional): Seed of the per-ant random streams, see `kernels.rng.create_states`.
        """

        n = self.problem.dimension
        self.routes = np.zeros((self.n_ants, n), dtype=np.int32)
        self.lengths = np.zeros(self.n_ants, dtype=np.float64)
        self.status = np.zeros(self.n_ants, dtype=np.int32)
        self.states = rng.create_states(self.n_ants, seed)

    def release_run(self):
        self.routes = None
        self.lengths = None
        self.status = None
        self.states = None

    @abstractmethod
    def init_pheromone(self, initial):
        """Creates the pheromone memory with every edge at ``initial``."""
        pass

    @abstractmethod
    def build_solutions(self, starts):
        """
        Builds one tour per ant, starting from ``starts``.

        Returns:
            tuple: (routes, lengths) views on the run context.
        """
        pass

    @abstractmethod
    def local_update(self, step):
        """Applies the local pheromone rule to the edge every ant committed at ``step``."""
        pass

    def global_update(self, route, length):
        """Reinforces the edges of the best tour with ``1 / length`` using the global decay."""
        self.pheromone.global_update(route, self.rho, length)

    def _check_ready(self, starts):
        if self.pheromone is None:
            raise RuntimeError("Pheromone memory not initialized, call init_pheromone first.")
        if self.routes is None:
            raise RuntimeError("Run context not allocated, call init_run first.")
        starts = np.ascontiguousarray(starts, dtype=np.int64)
        if starts.shape != (self.n_ants,):
            raise ValueError(f"Expected {self.n_ants} start nodes, got {starts.shape[0]}.")
        if np.any(starts < 0) or np.any(starts >= self.problem.dimension):
            raise ValueError("Start nodes must lie in [0, dimension).")
        return starts

    def _check_status(self):
        failed = np.flatnonzero(self.status != OK)
        if failed.size:
            code = int(self.status[failed[0]])
            raise ConstructionError(
                f"{failed.size} ant(s) failed, first ant {failed[0]}: {STATUS_MESSAGES.get(code, code)}")
