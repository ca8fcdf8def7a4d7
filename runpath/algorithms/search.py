"""Least-cost search over run-based states (Dijkstra / A*).

One engine covers both strategies: the heuristic is a policy parameter and
the zero heuristic turns A* into plain Dijkstra.  The engine finalizes a
state when it is popped, so with a consistent heuristic the first popped
state standing on ``end`` carries the minimal cost.

Unreachability is a normal outcome: ``run()`` returns ``None``.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, Optional, Set

from .frontier import Frontier
from .grid import Coordinate, GridModel, OutOfBounds
from .state_space import RunBounds, SearchState, successors

logger = logging.getLogger(__name__)

Heuristic = Callable[[Coordinate, Coordinate], int]


def zero_heuristic(a: Coordinate, b: Coordinate) -> int:
    return 0


def manhattan(a: Coordinate, b: Coordinate) -> int:
    # admissible only when every cell costs at least 1
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def scaled_manhattan(grid: GridModel) -> Heuristic:
    """Manhattan distance times the cheapest cell cost of ``grid``.

    Every unit step pays at least ``grid.min_cost()``, so this never
    overestimates, also on grids containing zero-cost cells.
    """
    factor = grid.min_cost()

    def h(a: Coordinate, b: Coordinate) -> int:
        return factor * manhattan(a, b)

    return h


STRATEGIES: Dict[str, Callable[[GridModel], Heuristic]] = {
    "dijkstra": lambda grid: zero_heuristic,
    "astar": scaled_manhattan,
}


def heuristic_for(strategy: str, grid: GridModel) -> Heuristic:
    try:
        return STRATEGIES[strategy](grid)
    except KeyError:
        raise ValueError(f"unknown strategy {strategy!r}, expected one of {sorted(STRATEGIES)}") from None


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

@dataclass
class SearchEngine:
    grid: GridModel
    start: Coordinate
    end: Coordinate
    min_run: int = 1
    max_run: int = 3
    heuristic: Heuristic = zero_heuristic
    include_start_cost: bool = False  # charge the start cell itself

    # internal state
    bounds: RunBounds = field(init=False)
    frontier: Frontier = field(init=False, default_factory=Frontier)
    visited: Set[SearchState] = field(init=False, default_factory=set)
    popped_count: int = field(init=False, default=0)
    pushed_count: int = field(init=False, default=0)
    done: bool = field(init=False, default=False)
    result: Optional[int] = field(init=False, default=None)

    def __post_init__(self):
        self.start = Coordinate(*self.start)
        self.end = Coordinate(*self.end)
        for name, p in (("start", self.start), ("end", self.end)):
            if not self.grid.in_bounds(p):
                raise OutOfBounds(f"{name} {tuple(p)} outside {self.grid.width}x{self.grid.height} grid")
        self.bounds = RunBounds(self.min_run, self.max_run)

    # --------------------------------------------------------
    def reset(self) -> None:
        self.frontier = Frontier()
        self.visited = set()
        self.popped_count = 0
        self.pushed_count = 0
        self.done = False
        self.result = None

        cost0 = self.grid.cost(self.start) if self.include_start_cost else 0
        origin = SearchState(self.start, None)
        self.frontier.push_or_improve(origin, cost0 + self.heuristic(self.start, self.end), cost0)
        self.pushed_count = 1

    def _snapshot(self, state: Optional[SearchState], cost: Optional[int], priority: Optional[int],
                  reachable: Optional[bool] = None) -> dict:
        return {
            "iteration": self.popped_count,
            "position": list(state.position) if state else None,
            "axis": state.arrival_axis.value if state and state.arrival_axis else None,
            "cost": cost,
            "priority": priority,
            "frontier_size": len(self.frontier),
            "visited_count": len(self.visited),
            "done": self.done,
            "reachable": reachable,
        }

    # --------------------------------------------------------
    def run_iter(self) -> Iterator[dict]:
        """Generator yielding one snapshot per popped state; the last one has done=True."""
        self.reset()
        logger.debug("search %s -> %s on %r, runs [%d, %d]",
                     tuple(self.start), tuple(self.end), self.grid, self.min_run, self.max_run)
        while True:
            popped = self.frontier.pop_min()
            if popped is None:
                self.done = True
                logger.debug("frontier exhausted after %d pops, %s unreachable",
                             self.popped_count, tuple(self.end))
                yield self._snapshot(None, None, None, reachable=False)
                return

            state, priority, cost = popped
            self.popped_count += 1
            if state.position == self.end:
                self.done = True
                self.result = cost
                logger.debug("reached %s with cost %d after %d pops",
                             tuple(self.end), cost, self.popped_count)
                yield self._snapshot(state, cost, priority, reachable=True)
                return

            self.visited.add(state)
            for move in successors(self.grid, state, cost, self.bounds, self.visited):
                if self.frontier.push_or_improve(move.state, move.cost + self.heuristic(move.to, self.end), move.cost):
                    self.pushed_count += 1
            yield self._snapshot(state, cost, priority)

    def run(self) -> Optional[int]:
        """Minimal cost from start to end, or None when no legal path exists."""
        for _ in self.run_iter():
            pass
        return self.result


# ---------------------------------------------------------------------------
# Convenience entry points
# ---------------------------------------------------------------------------

def find_min_cost(grid: GridModel, start: Coordinate, end: Coordinate, min_run: int = 1, max_run: int = 3,
                  strategy: str = "dijkstra", include_start_cost: bool = False) -> Optional[int]:
    engine = SearchEngine(
        grid=grid,
        start=start,
        end=end,
        min_run=min_run,
        max_run=max_run,
        heuristic=heuristic_for(strategy, grid),
        include_start_cost=include_start_cost,
    )
    return engine.run()


def sweep(grid: GridModel, starts: Iterable[Coordinate], end: Coordinate, min_run: int = 1, max_run: int = 3,
          strategy: str = "dijkstra", include_start_cost: bool = False,
          max_workers: Optional[int] = None) -> Dict[Coordinate, Optional[int]]:
    """Run one independent search per start cell; all of them share ``grid`` read-only."""
    starts = [Coordinate(*s) for s in starts]
    # build every engine up front so bad input fails before any thread starts
    engines = [
        SearchEngine(grid, s, end, min_run, max_run, heuristic_for(strategy, grid), include_start_cost)
        for s in starts
    ]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        costs = list(pool.map(SearchEngine.run, engines))
    reachable = [c for c in costs if c is not None]
    logger.info("sweep over %d starts: %d reachable, best %s",
                len(starts), len(reachable), min(reachable) if reachable else None)
    return dict(zip(starts, costs))
