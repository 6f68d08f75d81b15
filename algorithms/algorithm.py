from abc import ABC, abstractmethod
from executers import Executer, EXECUTERS
from time import time
import tqdm
import numpy as np


class Algorithm(ABC):
    '''Base class for optimization algorithms that drive a construction strategy over a given problem instance.
    This abstract class handles the selection of the construction strategy (executer), enforces the methods the
    strategy must expose, manages random seeds, and offers progress bar utilities for iterative or time-limited runs.

    Attributes:
        required_methods: Names of the methods the executer must implement.
        executer: The construction strategy (monolithic, step or selective).
        progress_bar: Progress bar object for tracking algorithm progress (initialized as None).
        print_mode: Mode for progress bar updates ('iterations' or 'timelimit').
        max_iter: Maximum number of iterations (if applicable).
        timelimit: Time limit in seconds (if applicable).
        start_time: Start time for time-limited progress tracking.
        seed: Random seed for reproducibility.
        rng: Host random generator seeded with `seed`.

    Methods:
        __init__(problem, required_methods, executer='monolithic', **executer_params):
            Raises ValueError if an unknown or invalid executer is provided.
        init_seed(seed):
            Sets the random seed of the host generator for reproducibility.
        check_required_methods():
            Raises ValueError if the executer lacks a required method.
        print_init(time_start, iterations, timelimit):
            Initializes and configures the progress bar based on the stopping criterion.
        print_update(best_fit, n_iters=1):
        print_end():
        fit():
            Abstract method to be implemented by subclasses, defining the optimization logic.
    '''
    def __init__(self, problem, required_methods, executer='monolithic', **executer_params):
        """
        Initializes the algorithm with the specified problem, required methods, and construction strategy.

        Args:
            problem: The problem instance to be solved.
            required_methods: A list of method names the executer must implement.
            executer (str or Executer, optional): 'monolithic', 'step', 'selective', or an executer instance.
                Defaults to 'monolithic'.
            **executer_params: Keyword arguments forwarded to the executer constructor when it is built by name.

        Raises:
            ValueError: If an unknown executer name is provided or if the provided executer is not a valid type.
        """
        self.problem = problem

        if isinstance(executer, str):
            if executer not in EXECUTERS:
                raise ValueError(f"Unknown executer type: {executer} available: {', '.join(EXECUTERS)}")
            self.executer = EXECUTERS[executer](problem, **executer_params)
        else:
            if not isinstance(executer, Executer):
                raise ValueError("Invalid executer type provided.")
            if executer.problem is not problem:
                raise ValueError("Executer was built for a different problem.")
            self.executer = executer

        self.required_methods = required_methods
        self.check_required_methods()
        self.progress_bar = None
        self.seed = None
        self.rng = None

    def init_seed(self, seed):
        """
        Initializes the host random generator.

        Args:
            seed (int or None): The seed value to set for reproducibility.
        """
        self.seed = seed
        self.rng = np.random.default_rng(seed)

    def check_required_methods(self):
        """
        Checks whether the executer implements all required methods.

        Raises:
            ValueError: If the executer class does not implement a required method.
        """
        for method in self.required_methods:
            if not callable(getattr(self.executer, method, None)):
                raise ValueError(f"Executer class must implement the {method} method.")

    def print_init(self, time_start, iterations, timelimit):
        """
        Initializes and configures the progress bar for the algorithm based on the stopping criterion.

        Parameters:
            time_start (float): The starting time of the algorithm, used for time-based progress tracking.
            iterations (int or float): The maximum number of iterations to run. Use np.inf for unlimited iterations.
            timelimit (float): The time limit in seconds for the algorithm to run. Use np.inf for unlimited time.
        """
        if iterations == np.inf:
            self.print_mode = 'timelimit'
        else:
            self.print_mode = 'iterations'

        self.max_iter = iterations
        self.timelimit = timelimit

        if self.print_mode == 'timelimit':
            self.start_time = time_start
            self.progress_bar = tqdm.tqdm(
                total=self.timelimit,
                desc="⏱ Time Progress",
                unit="s",
                bar_format="{l_bar}▕{bar}▏ Elapsed: {elapsed}, ETA: {remaining} {postfix}"
            )
        else:
            self.progress_bar = tqdm.tqdm(
                total=self.max_iter,
                desc="Iterations",
                unit="iter",
                leave=True,
            )

    def print_update(self, best_fit, n_iters=1):
        """
        Updates the progress bar and displays the current best tour length.

        Args:
            best_fit (float): The current best tour length to display.
            n_iters (int, optional): Number of iterations to update the progress bar by (default is 1).
        """
        if self.progress_bar is not None:
            if self.print_mode == 'timelimit':
                elapsed_time = round(time() - self.start_time, 2)
                elapsed_time = min(elapsed_time, self.timelimit)
                self.progress_bar.n = elapsed_time
                self.progress_bar.refresh()
            else:
                self.progress_bar.update(n_iters)

            self.progress_bar.set_postfix_str(f"Best length: {best_fit:.4f}")

    def print_end(self):
        """
        Closes and resets the progress bar if it exists.
        """
        if self.progress_bar is not None:
            self.progress_bar.close()
            self.progress_bar = None

    @abstractmethod
    def fit(self):
        """
        Runs the optimization and returns its result.
        """
        pass
