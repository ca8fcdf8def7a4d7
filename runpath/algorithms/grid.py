"""Read-only cost grid used by the constrained-run search.

Grid coordinates are integer indices (x = column, y = row).  Costs are stored
row-major in a numpy array which is frozen after construction, so a single
``GridModel`` can be shared between searches running in different threads.
"""
from __future__ import annotations

import string
from typing import Iterable, List, NamedTuple, Sequence

import numpy as np


class RunpathError(Exception):
    """Base class for input errors raised before a search starts."""


class MalformedGrid(RunpathError, ValueError):
    """Grid is empty, ragged, or holds a cell that is not a non-negative integer."""


class OutOfBounds(RunpathError, IndexError):
    """Coordinate lies outside the grid."""


class Coordinate(NamedTuple):
    x: int
    y: int


class GridModel:
    def __init__(self, costs: Sequence[Sequence[int]]):
        """costs[r][c] == traversal cost of cell (c, r)"""
        try:
            arr = np.array(costs)
        except ValueError as exc:  # ragged nested lists
            raise MalformedGrid(f"grid rows have unequal lengths: {exc}") from exc
        if arr.ndim != 2 or arr.size == 0:
            raise MalformedGrid(f"grid must be a non-empty rectangle, got shape {arr.shape}")
        if arr.dtype.kind not in "iu":
            raise MalformedGrid(f"grid cells must be integers, got dtype {arr.dtype}")
        if (arr < 0).any():
            raise MalformedGrid("grid cells must be non-negative")
        self.cells = arr.astype(np.int64)
        self.cells.setflags(write=False)
        self.height, self.width = self.cells.shape

    # --------------------------------------------------
    @classmethod
    def from_text(cls, text: str) -> "GridModel":
        """Decode one row per line, one decimal digit per character.

        Blank lines (e.g. a trailing newline) are ignored.
        """
        rows: List[List[int]] = []
        for lineno, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue
            if rows and len(line) != len(rows[0]):
                raise MalformedGrid(
                    f"line {lineno}: expected {len(rows[0])} cells, got {len(line)}"
                )
            row = []
            for col, ch in enumerate(line):
                if ch not in string.digits:
                    raise MalformedGrid(f"line {lineno}, column {col}: invalid digit {ch!r}")
                row.append(int(ch))
            rows.append(row)
        if not rows:
            raise MalformedGrid("grid text is empty")
        return cls(rows)

    @classmethod
    def from_rows(cls, rows: Iterable[Iterable[int]]) -> "GridModel":
        materialised = [list(r) for r in rows]
        widths = {len(r) for r in materialised}
        if len(widths) > 1:
            raise MalformedGrid(f"grid rows have unequal lengths: {sorted(widths)}")
        return cls(materialised)

    # --------------------------------------------------
    def in_bounds(self, p: Coordinate) -> bool:
        x, y = p
        return 0 <= x < self.width and 0 <= y < self.height

    def cost(self, p: Coordinate) -> int:
        if not self.in_bounds(p):
            raise OutOfBounds(f"{tuple(p)} outside {self.width}x{self.height} grid")
        return int(self.cells[p[1], p[0]])

    def min_cost(self) -> int:
        return int(self.cells.min())

    def __repr__(self) -> str:
        return f"GridModel(width={self.width}, height={self.height})"
