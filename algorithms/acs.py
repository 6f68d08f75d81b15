from . import Algorithm
from .stopping import Budget
from executers import EXECUTERS
from problems import Problem
import numpy as np
from time import time


class ACS(Algorithm):
    """
    Ant Colony System controller.

    Every iteration places the ants on random start cities, lets the construction strategy
    build one tour per ant (applying the local pheromone rule as it goes), optionally improves
    the tours with the problem's local search, keeps the best tour found so far and reinforces
    its edges with the global pheromone rule.

    Args:
        problem: TSP data provider (see `problems.TSPProblem`).
        n_ants (int, optional): Ants per iteration. Defaults to 32.
        q0 (float, optional): Probability of the greedy choice at each step. Defaults to 0.9.
        phi (float, optional): Local pheromone decay. Defaults to 0.01.
        rho (float, optional): Global pheromone decay. Defaults to 0.2.
        initial_pheromone (float, optional): Initial pheromone of every edge. Defaults to
            ``problem.initial_pheromone()``.
        local_search (bool, optional): Run ``problem.local_search`` on every iteration's tours.
        local_update_every (int, optional): Apply the local rule every this many steps.
        executer (str or Executer, optional): 'monolithic', 'step', 'selective' or an instance.
        memory (str, optional): 'dense' or 'locked' for the dense strategies, 'selective' for
            the selective one. Defaults to the strategy's own memory.
        capacity (int, optional): Short-list size of the selective memory. Defaults to 8.
        seed (int, optional): Seed for start cities and per-ant random streams.
        validate (bool, optional): Check every tour and its length after each iteration.
    """

    def __init__(self, problem, n_ants=32, q0=0.9, phi=0.01, rho=0.2, initial_pheromone=None,
                 local_search=False, local_update_every=1, executer='monolithic', memory=None,
                 capacity=8, seed=None, validate=False):
        required_methods = ['init_run', 'release_run', 'init_pheromone', 'build_solutions',
                            'local_update', 'global_update']

        executer_params = {}
        if isinstance(executer, str):
            executer_params = dict(n_ants=n_ants, q0=q0, phi=phi, rho=rho,
                                   local_update_every=local_update_every)
            if executer == 'selective':
                if memory not in (None, 'selective'):
                    raise ValueError(f"Selective construction only supports the selective memory, got {memory}.")
                executer_params['capacity'] = capacity
            elif executer in EXECUTERS:
                if memory is not None:
                    executer_params['memory'] = memory

        super().__init__(problem, required_methods, executer, **executer_params)

        if initial_pheromone is not None and initial_pheromone <= 0:
            raise ValueError("Initial pheromone must be greater than 0.")
        search = getattr(problem, 'local_search', None)
        # the base class method only raises NotImplementedError
        if local_search and (not callable(search) or getattr(search, '__func__', None) is Problem.local_search):
            raise ValueError("Problem must implement the local_search method.")

        self.n_ants = self.executer.n_ants
        self.initial_pheromone = initial_pheromone
        self.local_search = local_search
        self.seed = seed
        self.validate = validate

    def fit(self, iterations=None, timelimit=None, stopping=None, verbose=True):
        """
        Runs the colony until the stopping condition is reached.

        Args:
            iterations (int, optional): Maximum number of iterations.
            timelimit (float, optional): Maximum run time in seconds.
            stopping (optional): Stopping condition exposing ``init``, ``is_reached``,
                ``next_iteration`` and ``get_iteration``. Built from ``iterations`` and
                ``timelimit`` when omitted.
            verbose (bool, optional): Show a progress bar.

        Returns:
            dict: Run report with the best tour, its length, the iteration it was found at
            and the time spent in each phase.
        """
        if stopping is None:
            stopping = Budget(iterations, timelimit)
        elif iterations is not None or timelimit is not None:
            raise ValueError("Pass either a stopping condition or iterations/timelimit, not both.")

        time_start = time()

        self.init_seed(self.seed)
        problem = self.problem
        executer = self.executer
        n = problem.dimension

        initial = self.initial_pheromone
        if initial is None:
            initial = problem.initial_pheromone()

        executer.init_pheromone(initial)
        executer.init_run(int(self.rng.integers(0, np.iinfo(np.int64).max)))

        max_iter = getattr(stopping, 'iterations', np.inf)
        max_time = getattr(stopping, 'timelimit', np.inf)
        if verbose and (max_iter != np.inf or max_time != np.inf):
            self.print_init(time_start, max_iter, max_time)

        best_route = None
        best_length = np.inf
        best_found_at = -1
        history = []

        construction_time = 0.0
        local_search_time = 0.0
        global_update_time = 0.0

        stopping.init()
        try:
            while not stopping.is_reached():
                iteration = stopping.get_iteration()

                t0 = time()
                starts = self.rng.integers(0, n, size=self.n_ants)
                routes, lengths = executer.build_solutions(starts)
                construction_time += time() - t0

                if self.local_search:
                    t0 = time()
                    problem.local_search(routes, lengths)
                    local_search_time += time() - t0

                if self.validate:
                    self.check_routes(routes, lengths)

                # Strict minimum, the first ant wins ties
                ant = int(np.argmin(lengths))
                if lengths[ant] < best_length:
                    best_length = float(lengths[ant])
                    best_route = np.array(routes[ant], dtype=np.int32)
                    best_found_at = iteration

                t0 = time()
                executer.global_update(best_route, best_length)
                global_update_time += time() - t0

                history.append(best_length)
                stopping.next_iteration()
                self.print_update(best_length, 1)
        finally:
            self.print_end()
            executer.release_run()

        return {
            'iterations': stopping.get_iteration(),
            'best_length': best_length,
            'best_route': best_route,
            'best_found_at': best_found_at,
            'construction_time': construction_time,
            'local_search_time': local_search_time,
            'global_update_time': global_update_time,
            'total_time': time() - time_start,
            'best_length_history': np.array(history),
            'executer': executer.name,
            'memory': executer.memory,
        }

    def check_routes(self, routes, lengths):
        expected = np.arange(self.problem.dimension)
        for ant in range(routes.shape[0]):
            assert np.array_equal(np.sort(routes[ant]), expected), f"Route of ant {ant} is not a permutation."
        assert np.allclose(lengths, self.problem.fitness(routes), rtol=1e-5), "Tour lengths do not match their routes."
