"""
Exact rain-filling simulation over a one-dimensional bar profile.
"""

from .core import (
    InvalidInputError,
    InvalidQueryError,
    InvariantViolationError,
    Model,
    Part,
    WaterLevelsError,
)

__version__ = "0.1.0"

__all__ = ['InvalidInputError', 'InvalidQueryError', 'InvariantViolationError',
           'Model', 'Part', 'WaterLevelsError']
