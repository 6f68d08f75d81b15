"""
This package provides the tour construction strategies driven by the ACS controller.

Modules:
--------
- Executer: Base class holding the run context and the strategy interface.
- ConstructionError: Raised when ants report a construction failure.
- MonolithicExecuter: Whole tours in one kernel launch, dense or locked memory.
- StepExecuter: One kernel launch per construction step, dense or locked memory.
- SelectiveExecuter: Whole tours in one kernel launch, selective memory.

Usage:
    Pass an executer name to `algorithms.ACS`, or build one directly and hand it over.
"""

from .executer import Executer, ConstructionError
from .dense_executer import DenseExecuter, MonolithicExecuter, StepExecuter
from .selective_executer import SelectiveExecuter

EXECUTERS = {
    'monolithic': MonolithicExecuter,
    'step': StepExecuter,
    'selective': SelectiveExecuter,
}
