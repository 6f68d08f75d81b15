"""
This module initializes the problems package and exposes key classes and utilities.

Imports:
    Problem, patch_problem (from .problem): Base class and patching utility for problem definitions.
    TSPProblem (from .tsp_problem): Symmetric Traveling Salesman Problem instances.
"""
from .problem import Problem, patch_problem
from .tsp_problem import TSPProblem
