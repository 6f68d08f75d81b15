'''
Run controller of the ant colony.

Classes
-------
Algorithm
    Base class handling the construction strategy, random seeds and progress output.
ACS
    Ant Colony System: iterates construction, local search and global update.
Budget
    Iteration and/or time limit used as the default stopping condition.
'''

from .algorithm import Algorithm
from .stopping import Budget
from .acs import ACS

__all__ = ['Algorithm', 'ACS', 'Budget']
