'''
Stopping conditions consulted once per iteration by the controller.

A stopping condition exposes ``init()``, ``is_reached()``, ``next_iteration()`` and
``get_iteration()``. `Budget` stops on whichever of an iteration count or a wall-clock time
limit runs out first.
'''

from time import time
import numpy as np


class Budget:
    """
    Iteration and/or time budget.

    Args:
        iterations (int or float, optional): Maximum number of iterations, np.inf for no limit.
        timelimit (float, optional): Maximum run time in seconds, None or np.inf for no limit.

    Raises:
        ValueError: If both limits are unlimited or if either is not positive.
    """

    def __init__(self, iterations=np.inf, timelimit=None):
        if iterations is None:
            iterations = np.inf
        if timelimit is None:
            timelimit = np.inf
        if iterations == np.inf and timelimit == np.inf:
            raise ValueError("Either iterations or timelimit must be set to a finite value.")
        if iterations <= 0:
            raise ValueError("Iterations must be greater than 0.")
        if timelimit <= 0:
            raise ValueError("Timelimit must be greater than 0.")

        self.iterations = iterations
        self.timelimit = timelimit
        self.iteration = 0
        self.start_time = None

    def init(self):
        self.iteration = 0
        self.start_time = time()

    def is_reached(self):
        if self.start_time is None:
            raise RuntimeError("Stopping condition not initialized, call init first.")
        return self.iteration >= self.iterations or time() - self.start_time >= self.timelimit

    def next_iteration(self):
        self.iteration += 1

    def get_iteration(self):
        return self.iteration
