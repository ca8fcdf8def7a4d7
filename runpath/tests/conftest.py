import pytest

from runpath.algorithms.grid import GridModel

EXAMPLE_TEXT = """\
2413432311323
3215453535623
3255245654254
3446585845452
4546657867536
1438598798454
4457876987766
3637877979653
4654967986887
4564679986453
1224686865563
2546548887735
4322674655533
"""

SMALL_ROWS = [[2, 4, 1], [3, 2, 1], [3, 2, 5]]


@pytest.fixture
def example_text():
    return EXAMPLE_TEXT


@pytest.fixture
def example_grid():
    return GridModel.from_text(EXAMPLE_TEXT)


@pytest.fixture
def small_grid():
    return GridModel.from_rows(SMALL_ROWS)
