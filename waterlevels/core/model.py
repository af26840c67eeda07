"""
Exact water levels over time for a one-dimensional bar profile.

Rain falls on every bar at one height unit per time unit. Between two
merges the set of segments is fixed and every segment rises linearly, so
the whole simulation is a timeline of generations, each holding the
segments valid on a half-open time interval. Queries never step time;
they evaluate the linear law inside the owning generation.
"""

import math
from bisect import bisect_right
from typing import List, Optional, Sequence, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, ConfigDict, Field

from ..config import settings
from .errors import InvalidInputError, InvalidQueryError, InvariantViolationError
from .parts import Part, Parts

logger = structlog.get_logger()


class Generation(BaseModel):
    """Segments that stay unchanged during [start, end)."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    start: float = Field(..., description="Absolute time the segments appear")
    end: float = Field(..., description="Absolute time of the next merge, inf when stable")
    parts: Parts = Field(..., description="Segment partition at start")

    def __contains__(self, time: float) -> bool:
        return self.start <= time < self.end


class Model:
    """Precomputed generation timeline answering level queries."""

    def __init__(self, heights: Sequence[float], max_time: float, tolerance: Optional[float] = None):
        """
        Validate the profile and build every generation up front.

        Args:
            heights: Non-negative finite bar heights, at least one
            max_time: Latest time that may be queried
            tolerance: Absolute height tolerance, defaults to
                ``settings.merge_tolerance``

        Raises:
            InvalidInputError: On an empty profile, a negative, infinite or
                NaN height, or a negative or NaN horizon
        """
        try:
            values = np.asarray(heights, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"heights should be numbers: {e}") from e

        if values.ndim != 1:
            raise InvalidInputError(f"heights should be one-dimensional, got shape {values.shape}")
        if values.size == 0:
            raise InvalidInputError("should not be empty")
        if not np.all(np.isfinite(values)) or np.any(np.signbit(values)):
            raise InvalidInputError("should be a positive number")

        max_time = float(max_time)
        if math.isnan(max_time) or max_time < 0:
            raise InvalidInputError(f"max time should be a positive number, got {max_time}")

        self._max_time = max_time
        self._tolerance = settings.merge_tolerance if tolerance is None else float(tolerance)
        self._initial_parts = Parts.from_heights(values.tolist(), self._tolerance)
        self._generations = tuple(self._calculate_generations())
        self._starts = [generation.start for generation in self._generations]

    def _calculate_generations(self) -> List[Generation]:
        logger.info("Building generation timeline",
                    positions=self._initial_parts[-1].end,
                    segments=len(self._initial_parts))

        generations = []
        parts = self._initial_parts
        start = 0.0

        while parts.next_change is not None:
            changes, delta = parts.next_change
            end = start + delta
            generations.append(Generation(start=start, end=end, parts=parts))
            logger.debug("Merge event", start=start, delta=delta, changes=changes)

            last_state = parts.calculate_parts_at_rel_time(delta)
            parts = Parts.from_parts_and_changes(last_state, changes, self._tolerance)
            start = end

        # final, stable generation
        generations.append(Generation(start=start, end=math.inf, parts=parts))

        logger.info("Generation timeline built", generations=len(generations))
        return generations

    @property
    def max_time(self) -> float:
        return self._max_time

    @property
    def initial_parts(self) -> Parts:
        return self._initial_parts

    @property
    def generations(self) -> Tuple[Generation, ...]:
        return self._generations

    def generation_at(self, time: float) -> Generation:
        """
        Find the generation whose interval contains ``time``.

        Raises:
            InvalidQueryError: If ``time`` is negative, not finite or past the horizon
        """
        time = float(time)
        if not math.isfinite(time):
            raise InvalidQueryError(f"time should be a finite number, got {time}")
        if math.copysign(1.0, time) < 0:
            raise InvalidQueryError("time should not be negative")
        if time > self._max_time:
            raise InvalidQueryError(f"more than max time provided: {time} > {self._max_time}")

        idx = bisect_right(self._starts, time) - 1
        generation = self._generations[idx]
        if time not in generation:
            raise InvariantViolationError(f"No generation covers time {time}")
        return generation

    def parts_at(self, time: float) -> List[Part]:
        """Segments with their heights at absolute ``time``."""
        generation = self.generation_at(time)
        offset = time - generation.start
        if offset < 0:
            raise InvariantViolationError(f"Negative offset {offset} into generation")
        return generation.parts.calculate_parts_at_rel_time(offset)

    def calculate_levels(self, time: float) -> np.ndarray:
        """
        Height of every original position at ``time``.

        Raises:
            InvalidQueryError: If ``time`` is negative, not finite or past the horizon
        """
        parts = self.parts_at(time)
        heights = np.fromiter((part.height for part in parts), dtype=np.float64, count=len(parts))
        lengths = np.fromiter((len(part) for part in parts), dtype=np.intp, count=len(parts))

        logger.debug("Calculated levels", time=time, segments=len(parts))
        return np.repeat(heights, lengths)
