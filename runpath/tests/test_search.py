import heapq

import numpy as np
import pytest

from runpath.algorithms.grid import Coordinate, GridModel, OutOfBounds
from runpath.algorithms.search import (
    SearchEngine,
    find_min_cost,
    heuristic_for,
    manhattan,
    scaled_manhattan,
    sweep,
)


def step_dijkstra(grid, start, end, min_run, max_run):
    """Reference search over single steps, tracking direction and straight-line count."""
    dirs = [(1, 0), (-1, 0), (0, 1), (0, -1)]
    best = {}
    heap = [(0, start, None, 0)]
    while heap:
        cost, pos, d, n = heapq.heappop(heap)
        if pos == end and (d is None or n >= min_run):
            return cost
        if best.get((pos, d, n), float("inf")) < cost:
            continue
        for i, (dx, dy) in enumerate(dirs):
            if d is not None:
                pdx, pdy = dirs[d]
                if (dx, dy) == (-pdx, -pdy):
                    continue
                if i == d and n >= max_run:
                    continue
                if i != d and n < min_run:
                    continue
            nxt = (pos[0] + dx, pos[1] + dy)
            if not grid.in_bounds(nxt):
                continue
            n2 = n + 1 if i == d else 1
            c2 = cost + grid.cost(nxt)
            if c2 < best.get((nxt, i, n2), float("inf")):
                best[(nxt, i, n2)] = c2
                heapq.heappush(heap, (c2, nxt, i, n2))
    return None


def test_example_short_runs(example_grid):
    assert find_min_cost(example_grid, (0, 0), (12, 12), 1, 3) == 102
    assert find_min_cost(example_grid, (0, 0), (12, 12), 1, 3, strategy="astar") == 102


def test_example_long_runs(example_grid):
    assert find_min_cost(example_grid, (0, 0), (12, 12), 4, 10) == 94
    assert find_min_cost(example_grid, (0, 0), (12, 12), 4, 10, strategy="astar") == 94


def test_small_grid_start_cost(small_grid):
    assert find_min_cost(small_grid, (0, 0), (2, 2), 1, 3, include_start_cost=True) == 13
    assert find_min_cost(small_grid, (0, 0), (2, 2), 1, 3) == 11


def test_deterministic(example_grid):
    results = {find_min_cost(example_grid, (0, 0), (12, 12), 4, 10) for _ in range(3)}
    assert results == {94}


def test_pop_priorities_never_decrease(example_grid):
    for heuristic in (heuristic_for("dijkstra", example_grid), manhattan):
        engine = SearchEngine(example_grid, (0, 0), (12, 12), 4, 10, heuristic=heuristic)
        priorities = [snap["priority"] for snap in engine.run_iter()]
        assert priorities == sorted(priorities)
        assert engine.result == 94


def test_last_snapshot_reports_outcome(small_grid):
    engine = SearchEngine(small_grid, (0, 0), (2, 2), 1, 3)
    history = list(engine.run_iter())
    assert history[-1]["done"] and history[-1]["reachable"]
    assert history[-1]["cost"] == 11
    assert history[-1]["position"] == [2, 2]
    assert not any(snap["done"] for snap in history[:-1])
    assert engine.popped_count == len(history)


@pytest.mark.parametrize("seed", range(6))
@pytest.mark.parametrize("min_run, max_run", [(1, 3), (2, 4), (4, 10)])
def test_matches_step_search_on_random_grids(seed, min_run, max_run):
    rng = np.random.RandomState(seed)
    h, w = rng.randint(1, 9, size=2)
    grid = GridModel(rng.randint(0, 10, size=(h, w)))
    end = (w - 1, h - 1)
    expected = step_dijkstra(grid, (0, 0), end, min_run, max_run)
    assert find_min_cost(grid, (0, 0), end, min_run, max_run) == expected
    assert find_min_cost(grid, (0, 0), end, min_run, max_run, strategy="astar") == expected


def test_astar_expands_no_more_than_dijkstra(example_grid):
    dijkstra = SearchEngine(example_grid, (0, 0), (12, 12), 1, 3)
    astar = SearchEngine(example_grid, (0, 0), (12, 12), 1, 3, heuristic=scaled_manhattan(example_grid))
    assert dijkstra.run() == astar.run() == 102
    assert astar.popped_count <= dijkstra.popped_count


def test_unreachable_when_grid_shorter_than_min_run():
    grid = GridModel.from_rows([[1, 1, 1], [1, 1, 1], [1, 1, 1]])
    engine = SearchEngine(grid, (0, 0), (2, 2), min_run=4, max_run=10)
    assert engine.run() is None
    assert engine.done


def test_unreachable_in_single_row():
    # no vertical room to turn, so the whole trip must be one run
    grid = GridModel.from_rows([[1, 2, 3, 4, 5]])
    assert find_min_cost(grid, (0, 0), (4, 0), 1, 3) is None
    assert find_min_cost(grid, (0, 0), (4, 0), 1, 4) == 14


def test_start_equals_end():
    grid = GridModel.from_rows([[7]])
    assert find_min_cost(grid, (0, 0), (0, 0), 4, 10) == 0
    assert find_min_cost(grid, (0, 0), (0, 0), 4, 10, include_start_cost=True) == 7


def test_zero_cost_cells():
    grid = GridModel.from_rows([[0, 0, 0], [0, 0, 0], [0, 0, 0]])
    assert find_min_cost(grid, (0, 0), (2, 2), 1, 3, strategy="astar") == 0


def test_endpoints_validated_before_search(small_grid):
    with pytest.raises(OutOfBounds):
        SearchEngine(small_grid, (0, 0), (3, 3))
    with pytest.raises(OutOfBounds):
        SearchEngine(small_grid, (-1, 0), (2, 2))
    with pytest.raises(ValueError):
        SearchEngine(small_grid, (0, 0), (2, 2), min_run=5, max_run=2)
    with pytest.raises(ValueError):
        heuristic_for("bfs", small_grid)


def test_sweep_shares_grid(example_grid):
    starts = [(0, 0), (12, 0), (0, 12), (6, 6)]
    costs = sweep(example_grid, starts, (12, 12), 4, 10, max_workers=4)
    assert costs[Coordinate(0, 0)] == 94
    assert set(costs) == {Coordinate(*s) for s in starts}
    for s in starts:
        assert costs[Coordinate(*s)] == find_min_cost(example_grid, s, (12, 12), 4, 10)
