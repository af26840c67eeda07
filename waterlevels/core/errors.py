"""Error types raised by the water level engine."""


class WaterLevelsError(ValueError):
    """Base class for errors caused by bad caller input."""


class InvalidInputError(WaterLevelsError):
    """Raised when a height profile or horizon cannot be simulated."""


class InvalidQueryError(WaterLevelsError):
    """Raised when a level query asks for a time outside [0, horizon]."""


class InvariantViolationError(AssertionError):
    """
    Raised when the engine's own invariants are broken.

    This signals a defect in the simulation (e.g. a merge target that
    matches neither neighbor), not a problem with the caller's input.
    It is never converted into a WaterLevelsError.
    """
