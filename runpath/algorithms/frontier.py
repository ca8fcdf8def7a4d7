"""Min-priority frontier with decrease-key semantics.

Built on ``heapq`` with an entry map and lazy invalidation: improving a
state's priority pushes a fresh heap entry and marks the old one dead, dead
entries are skipped on pop.  Equal priorities pop in insertion order.
"""
from __future__ import annotations

import heapq
import itertools
from typing import Any, Dict, List, Optional, Tuple

from .state_space import SearchState

_Entry = List[Any]  # [priority, seq, cost, state, alive]


class Frontier:
    def __init__(self):
        self._heap: List[_Entry] = []
        self._entries: Dict[SearchState, _Entry] = {}
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, state: SearchState) -> bool:
        return state in self._entries

    def __bool__(self) -> bool:
        return bool(self._entries)

    def best(self, state: SearchState) -> Optional[Tuple[int, int]]:
        """(priority, cost) currently queued for ``state``, or None."""
        entry = self._entries.get(state)
        if entry is None:
            return None
        return entry[0], entry[2]

    # --------------------------------------------------
    def push_or_improve(self, state: SearchState, priority: int, cost: int) -> bool:
        """Queue ``state`` or lower its priority.  Returns True if anything changed."""
        old = self._entries.get(state)
        if old is not None:
            if priority >= old[0]:
                return False
            old[4] = False
        entry = [priority, next(self._seq), cost, state, True]
        self._entries[state] = entry
        heapq.heappush(self._heap, entry)
        return True

    def pop_min(self) -> Optional[Tuple[SearchState, int, int]]:
        """Remove and return (state, priority, cost) with the lowest priority."""
        while self._heap:
            priority, _, cost, state, alive = heapq.heappop(self._heap)
            if not alive:
                continue
            del self._entries[state]
            return state, priority, cost
        return None
