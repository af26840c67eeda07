"""
Core water level simulation.
"""

from .direction import Direction
from .errors import InvalidInputError, InvalidQueryError, InvariantViolationError, WaterLevelsError
from .model import Generation, Model
from .parts import NextChange, Part, Parts

__all__ = ['Direction', 'Generation', 'InvalidInputError', 'InvalidQueryError',
           'InvariantViolationError', 'Model', 'NextChange', 'Part', 'Parts', 'WaterLevelsError']
