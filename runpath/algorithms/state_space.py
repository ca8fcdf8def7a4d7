"""Search states and run-based successor generation.

A state is a cell plus the axis of the run that reached it.  Successors are
whole straight runs on the perpendicular axis, so a state never has to track
how many steps it has already taken in one direction:

* from the start state (arrival axis ``None``) both axes are open;
* a run of length ``d`` is only a legal stopping point if
  ``min_run <= d <= max_run``;
* shorter runs still contribute their cell costs to the running sum used for
  the longer runs in the same direction.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Container, List, NamedTuple, Optional, Tuple

from .grid import Coordinate, GridModel


class Axis(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @property
    def perpendicular(self) -> "Axis":
        return Axis.VERTICAL if self is Axis.HORIZONTAL else Axis.HORIZONTAL


# unit step per axis, both directions
AXIS_STEPS = {
    Axis.HORIZONTAL: ((1, 0), (-1, 0)),
    Axis.VERTICAL: ((0, 1), (0, -1)),
}


class SearchState(NamedTuple):
    position: Coordinate
    arrival_axis: Optional[Axis]  # None == start, nothing walked yet


class Move(NamedTuple):
    to: Coordinate
    via_axis: Axis
    cost: int  # accumulated path cost at ``to``

    @property
    def state(self) -> SearchState:
        return SearchState(self.to, self.via_axis)


@dataclass(frozen=True)
class RunBounds:
    min_run: int = 1
    max_run: int = 3

    def __post_init__(self):
        if self.min_run < 1:
            raise ValueError(f"min_run must be >= 1, got {self.min_run}")
        if self.max_run < self.min_run:
            raise ValueError(f"max_run ({self.max_run}) must be >= min_run ({self.min_run})")


def open_axes(arrival_axis: Optional[Axis]) -> Tuple[Axis, ...]:
    if arrival_axis is None:
        return Axis.HORIZONTAL, Axis.VERTICAL
    return (arrival_axis.perpendicular,)


def successors(
    grid: GridModel,
    state: SearchState,
    cost: int,
    bounds: RunBounds,
    visited: Optional[Container[SearchState]] = None,
) -> List[Move]:
    """Every legal run out of ``state`` whose target state is not in ``visited``.

    ``cost`` is the accumulated cost already paid to stand on ``state``; the
    cell the run starts from is not charged again.
    """
    x, y = state.position
    moves: List[Move] = []
    for axis in open_axes(state.arrival_axis):
        for dx, dy in AXIS_STEPS[axis]:
            running = cost
            for d in range(1, bounds.max_run + 1):
                pos = Coordinate(x + dx * d, y + dy * d)
                if not grid.in_bounds(pos):
                    break
                running += grid.cost(pos)
                if d < bounds.min_run:
                    continue
                if visited is not None and SearchState(pos, axis) in visited:
                    continue
                moves.append(Move(pos, axis, running))
    return moves
