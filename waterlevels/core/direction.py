"""Stepping over segment indices toward either end of the profile."""

from enum import Enum
from typing import Optional


class Direction(Enum):
    """Traversal direction over a half-open index range."""

    LEFT = "left"
    RIGHT = "right"

    def next_index(self, idx: int, bounds: range) -> Optional[int]:
        """
        Step ``idx`` once in this direction.

        Args:
            idx: Current index
            bounds: Valid half-open range of indices

        Returns:
            The new index, or None when the step would leave ``bounds``
        """
        if self is Direction.LEFT:
            candidate = idx - 1
        else:
            candidate = idx + 1

        if candidate not in bounds:
            return None
        return candidate
