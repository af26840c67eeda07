"""
Segments of equal height and their fill dynamics.

A profile of bars is kept as an ordered partition of positions into
segments (``Part``), where neighboring segments never share a height.
For a fixed partition this module derives:

- how fast every segment rises while rain falls at a unit rate per position
- which segments reach a taller neighbor first, and when

Water landing on a slope runs downhill to the floor of the nearest basin
on each side; a peak splits its water evenly between both sides.
"""

import math
from collections import abc
from dataclasses import dataclass, replace
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

import structlog

from ..config import settings
from .direction import Direction
from .errors import InvalidInputError, InvariantViolationError

logger = structlog.get_logger()

# (accumulated credit, divisor); rise rate is credit / divisor
Velocity = Tuple[float, int]

# (segment index, height that segment reaches)
Change = Tuple[int, float]


@dataclass(frozen=True)
class Part:
    """A maximal run of positions [start, end) standing at one height."""
    height: float
    start: int
    end: int

    @property
    def range(self) -> range:
        return range(self.start, self.end)

    def __len__(self) -> int:
        return self.end - self.start


class NextChange(NamedTuple):
    """Simultaneous merges and the time until they happen."""
    changes: Tuple[Change, ...]
    delta: float


def _same_height(a: float, b: float, tolerance: float) -> bool:
    return math.isclose(a, b, rel_tol=0.0, abs_tol=tolerance)


def find_destination(parts: Sequence[Part], current_idx: int, direction: Direction) -> Optional[int]:
    """
    Find the segment that water leaving ``current_idx`` ends up in.

    Walks in ``direction`` while heights keep strictly decreasing and
    returns the lowest segment reached.

    Returns:
        Index of the destination segment, or None if the first step
        already goes uphill (or there is nowhere to step)
    """
    if current_idx >= len(parts):
        return None

    bounds = range(len(parts))
    found = None
    last_height = parts[current_idx].height
    idx = current_idx

    while True:
        next_idx = direction.next_index(idx, bounds)
        if next_idx is None:
            break
        idx = next_idx

        height = parts[idx].height
        if math.isnan(height) or math.isnan(last_height):
            raise InvariantViolationError(f"Heights are not comparable: {height}, {last_height}")
        if height > last_height:
            break
        if height == last_height:
            raise InvariantViolationError(f"Equal neighbor heights: {height} == {last_height}")

        last_height = height
        found = idx

    if found is not None:
        return found

    # Open edge: water pushed onto the boundary segment stays there
    if direction is Direction.LEFT and current_idx == 0 and idx != current_idx:
        return 0
    if direction is Direction.RIGHT and current_idx == len(parts) - 1 and idx != current_idx:
        return len(parts) - 1
    return None


def is_accept_water(parts: Sequence[Part], idx: int) -> bool:
    """Whether every existing neighbor of segment ``idx`` is strictly taller."""
    height = parts[idx].height
    left_taller = idx == 0 or parts[idx - 1].height > height
    right_taller = idx == len(parts) - 1 or parts[idx + 1].height > height
    return left_taller and right_taller


def calculate_filling_velocity(parts: Sequence[Part]) -> List[Velocity]:
    """
    Distribute the rain falling on every segment to the segments that hold it.

    A segment in a basin keeps its own water. A segment on a slope sends
    it to the basin found downhill; a peak sends half to each side.

    Returns:
        ``(credit, divisor)`` per segment, divisor being the segment length
    """
    credits = [0.0] * len(parts)
    divisors = [len(part) for part in parts]

    for idx, part in enumerate(parts):
        size = len(part)
        if is_accept_water(parts, idx):
            credits[idx] += size
            continue

        right = find_destination(parts, idx, Direction.RIGHT)
        left = find_destination(parts, idx, Direction.LEFT)

        if left is not None and right is not None:
            credits[left] += size / 2.0
            credits[right] += size / 2.0
        elif left is not None:
            credits[left] += size
        elif right is not None:
            credits[right] += size

    return list(zip(credits, divisors))


def calculate_next_configuration_change(
    parts: Sequence[Part],
    velocities: Sequence[Velocity],
    tolerance: float,
) -> Optional[NextChange]:
    """
    Find the earliest moment a rising segment reaches a taller neighbor.

    Every rising segment aims at its nearest taller neighbor (left wins a
    tie). All segments arriving within ``tolerance`` of the earliest time
    are reported together, ordered by index.

    Returns:
        NextChange, or None if no segment will ever reach a neighbor
    """
    best_changes: List[Change] = []
    best_time = None

    for idx, (credit, divisor) in enumerate(velocities):
        velocity = credit / divisor
        if velocity <= 0.0:
            continue

        height = parts[idx].height
        left_diff = None
        right_diff = None
        if idx > 0 and height < parts[idx - 1].height:
            left_diff = parts[idx - 1].height - height
        if idx < len(parts) - 1 and height < parts[idx + 1].height:
            right_diff = parts[idx + 1].height - height

        if left_diff is not None and (right_diff is None or left_diff <= right_diff):
            diff, will_be_height = left_diff, parts[idx - 1].height
        elif right_diff is not None:
            diff, will_be_height = right_diff, parts[idx + 1].height
        else:
            continue

        time_to_reach = diff / velocity
        if best_time is not None and _same_height(time_to_reach, best_time, tolerance):
            best_changes.append((idx, will_be_height))
        elif best_time is None or time_to_reach < best_time:
            best_changes = [(idx, will_be_height)]
            best_time = time_to_reach

    if best_time is None:
        return None
    return NextChange(tuple(best_changes), best_time)


def merge_changes(parts: Sequence[Part], changes: Sequence[Change], tolerance: float) -> List[Part]:
    """
    Apply a set of simultaneous merges and coalesce equal neighbors.

    Each changed segment is absorbed by the neighbor whose height it
    reached. Absorbing can leave equal-height segments side by side, so
    adjacent equal pairs are fused until none remain.

    Args:
        parts: Segments at the moment of the change
        changes: ``(index, reached height)`` pairs
        tolerance: Absolute tolerance for height equality

    Returns:
        New segment list; ``parts`` is left untouched
    """
    slots: List[Optional[Part]] = list(parts)

    for changed_idx, changed_height in changes:
        was_part = slots[changed_idx]
        if was_part is None:
            raise InvariantViolationError(f"Segment {changed_idx} changed twice")
        slots[changed_idx] = None

        if changed_idx >= 1 and _same_height(changed_height, parts[changed_idx - 1].height, tolerance):
            target_idx = changed_idx - 1
            target = slots[target_idx]
            if target is None or target.end != was_part.start:
                raise InvariantViolationError(f"Segment {changed_idx} cannot join its left neighbor")
            slots[target_idx] = replace(target, end=was_part.end)
        elif changed_idx + 1 < len(parts) and _same_height(changed_height, parts[changed_idx + 1].height, tolerance):
            target_idx = changed_idx + 1
            target = slots[target_idx]
            if target is None or was_part.end != target.start:
                raise InvariantViolationError(f"Segment {changed_idx} cannot join its right neighbor")
            slots[target_idx] = replace(target, start=was_part.start)
        else:
            raise InvariantViolationError(
                f"Segment {changed_idx} reached {changed_height}, matching neither neighbor"
            )

    merged = [part for part in slots if part is not None]

    while True:
        if not merged:
            raise InvariantViolationError("Merging produced no segments")

        coalesced = [merged[0]]
        for part in merged[1:]:
            previous = coalesced[-1]
            if _same_height(previous.height, part.height, tolerance):
                if previous.end != part.start:
                    raise InvariantViolationError(f"Segments {previous} and {part} do not touch")
                coalesced[-1] = replace(previous, end=part.end)
            else:
                coalesced.append(part)

        if len(coalesced) == len(merged):
            return coalesced
        merged = coalesced


class Parts(abc.Sequence):
    """
    Immutable snapshot of a segment partition.

    Fill velocities and the next configuration change are derived once
    when the snapshot is created.
    """

    def __init__(self, parts: Sequence[Part], tolerance: Optional[float] = None):
        if not parts:
            raise InvalidInputError("should not be empty")

        self._inner = tuple(parts)
        self._tolerance = settings.merge_tolerance if tolerance is None else tolerance
        self._velocities = tuple(calculate_filling_velocity(self._inner))
        self._next_change = calculate_next_configuration_change(
            self._inner, self._velocities, self._tolerance
        )

    @classmethod
    def from_heights(cls, heights: Sequence[float], tolerance: Optional[float] = None) -> "Parts":
        """
        Build segments from raw bar heights, joining runs of equal heights.

        Raises:
            InvalidInputError: If ``heights`` is empty
        """
        if len(heights) == 0:
            raise InvalidInputError("should not be empty")
        if tolerance is None:
            tolerance = settings.merge_tolerance

        parts = []
        current_height = float(heights[0])
        start = 0
        for idx in range(1, len(heights)):
            height = float(heights[idx])
            if not _same_height(height, current_height, tolerance):
                parts.append(Part(current_height, start, idx))
                current_height = height
                start = idx
        parts.append(Part(current_height, start, len(heights)))

        return cls(parts, tolerance)

    @classmethod
    def from_parts_and_changes(
        cls,
        parts: Sequence[Part],
        changes: Sequence[Change],
        tolerance: Optional[float] = None,
    ) -> "Parts":
        """
        Build the partition that follows a simultaneous set of merges.

        Raises:
            InvalidInputError: If ``parts`` is empty
            InvariantViolationError: If a change matches neither neighbor
        """
        if not parts:
            raise InvalidInputError("should not be empty")
        if tolerance is None:
            tolerance = settings.merge_tolerance
        return cls(merge_changes(parts, changes, tolerance), tolerance)

    @property
    def velocities(self) -> Tuple[Velocity, ...]:
        return self._velocities

    @property
    def next_change(self) -> Optional[NextChange]:
        return self._next_change

    def rates(self) -> List[float]:
        """Height gained per unit of time, per segment."""
        return [credit / divisor for credit, divisor in self._velocities]

    def calculate_parts_at_rel_time(self, time: float) -> List[Part]:
        """Segments after ``time`` units of rain, without merging anything."""
        return [
            replace(part, height=part.height + credit * time / divisor)
            for part, (credit, divisor) in zip(self._inner, self._velocities)
        ]

    def __getitem__(self, idx):
        return self._inner[idx]

    def __len__(self) -> int:
        return len(self._inner)

    def __iter__(self) -> Iterator[Part]:
        return iter(self._inner)

    def __repr__(self) -> str:
        return f"Parts({list(self._inner)!r})"
