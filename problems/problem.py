'''
Module: problem

This module defines the abstract base class `Problem`, the interface a problem data provider
offers to the ACS controller and its construction strategies, and the `patch_problem`
decorator factory used to plug collaborators (for instance a custom local search) into a
problem instance at runtime.

Classes:
--------
    Problem (ABC): Read-only problem data plus solution generation and evaluation.

Functions:
    patch_problem(problem): Decorator factory to dynamically add methods to a Problem instance.
'''

from abc import ABC, abstractmethod


class Problem(ABC):
    """
    Abstract base class for problems solved by the ant colony.

    Subclasses own the immutable problem data (dimension, distance matrix, heuristic matrix
    and nearest-neighbour lists) that every kernel reads concurrently during a run.

    Methods:
        generate_solution(num_samples=1):
            Abstract method to generate one or more random candidate solutions.
        fitness(solutions):
            Abstract method returning the length of one or more tours.
        local_search(routes, lengths):
            Optional local-search collaborator. Raises NotImplementedError by default.
    """

    @abstractmethod
    def generate_solution(self, num_samples=1):
        """
        Generates one or more solutions for the problem instance.

        Args:
            num_samples (int, optional): The number of solutions to generate. Defaults to 1.
        """

        pass

    @abstractmethod
    def fitness(self, solutions):
        """
        Calculates the length of the given tour(s).

        Args:
            solutions (np.ndarray): One tour (1D) or a batch of tours (2D).
        """

        pass

    def local_search(self, routes, lengths):
        """
        Improves ``routes`` in place and refreshes ``lengths`` accordingly.

        Raises:
            NotImplementedError: If the problem has no local search.
        """

        raise NotImplementedError("Local search not implemented")


def patch_problem(problem):
    """
    Adds a method to an instance of the Problem class or its subclasses.

    The returned decorator attaches the decorated function to ``problem`` under the
    function's own name, replacing any method with that name on this instance only.

    Args:
        problem: An instance of the Problem class or its subclasses.

    Raises:
        TypeError: If `problem` is not an instance of Problem or its subclasses.
        TypeError: If the decorated object is not callable.

    Returns:
        A decorator that adds the decorated function as a method to the `problem` instance.
    """

    if not isinstance(problem, Problem):
        raise TypeError("The argument must be an instance of the Problem class or its subclasses.")

    def add_method(func):
        if not callable(func):
            raise TypeError("The argument must be a callable function.")
        setattr(problem, func.__name__, func)
        return func

    return add_method
