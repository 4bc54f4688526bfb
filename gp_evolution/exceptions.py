"""
gp_evolution/exceptions.py - Error taxonomy for the evolutionary engine
"""
from typing import Optional


class EvolutionError(Exception):
    """Base class for all engine errors"""


class ConfigurationError(EvolutionError, ValueError):
    """A precondition of the run is violated; detected before the first generation"""


class EvaluationError(EvolutionError):
    """An expression tree could not be evaluated"""


class RunFailedError(EvolutionError):
    """A single run was aborted because fitness evaluation raised"""

    def __init__(self, run_index: int, cause: Optional[BaseException] = None):
        self.run_index = run_index
        self.cause = cause
        message = f"Run {run_index} failed"
        if cause is not None:
            message += f": {type(cause).__name__}: {cause}"
        super().__init__(message)
