"""Open set for the expression search.

The frontier needs an unusual mix of operations: insert-or-improve keyed by
value, and extraction of a globally cheapest entry. Two implementations are
provided:

* ``HeapFrontier`` keeps the authoritative best node per value in a dict and
  orders candidates with ``heapq``. Improving a value just pushes another heap
  record; stale records are skipped lazily on extraction.
* ``LevelFrontier`` tracks the current minimum cost level and caches every
  value sitting on that level. When the cache runs dry, the level is bumped
  and the dict is re-scanned once, evicting entries that can no longer matter.
"""

import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from minrpn.core.data_models import ExpressionNode, Number

logger = logging.getLogger(__name__)


class FrontierOrderError(ValueError):
    """Raised when a node would break the non-decreasing extraction order."""
    pass


class EmptyFrontierError(LookupError):
    """Raised when extracting from an empty frontier."""
    pass


class Frontier(ABC):
    """Value-keyed open set with cheapest-first extraction."""

    def __init__(self):
        # Best known node per value; at most one live entry per value.
        self._backing: Dict[Number, ExpressionNode] = {}
        # Cost of the most recently extracted node.
        self._level = 0

    @property
    def level(self) -> int:
        return self._level

    def size(self) -> int:
        """Number of live entries."""
        return len(self._backing)

    def __len__(self) -> int:
        return len(self._backing)

    def __contains__(self, value: Number) -> bool:
        return value in self._backing

    def get(self, value: Number) -> Optional[ExpressionNode]:
        return self._backing.get(value)

    def _check_order(self, node: ExpressionNode) -> None:
        if node.cost < 1:
            raise FrontierOrderError(f"Node cost must be at least 1, got {node.cost}")
        if node.cost <= self._level:
            raise FrontierOrderError(
                f"Cannot push node of cost {node.cost} after extracting level {self._level}"
            )

    def insert_or_improve(self, node: ExpressionNode) -> bool:
        """Insert ``node`` unless a node of equal or lower cost already exists.

        Returns:
            True if the node was stored
        """
        self._check_order(node)
        current = self._backing.get(node.value)
        if current is not None and current.cost <= node.cost:
            return False
        self._backing[node.value] = node
        self._on_stored(node)
        return True

    def _on_stored(self, node: ExpressionNode) -> None:
        """Hook called after ``node`` became the best entry for its value."""
        pass

    @abstractmethod
    def extract_min(self) -> ExpressionNode:
        """Remove and return some node of minimum cost."""
        pass

    @abstractmethod
    def level_size(self) -> int:
        """Number of entries known to sit on the current cost level."""
        pass

    def prune(self, cost_bound: int, keep_value: Optional[Number] = None) -> int:
        """Evict entries whose cost is ``>= cost_bound``, except ``keep_value``.

        Returns:
            Number of evicted entries
        """
        doomed = [
            value for value, node in self._backing.items()
            if node.cost >= cost_bound and value != keep_value
        ]
        for value in doomed:
            del self._backing[value]
        if doomed:
            logger.debug(f"Pruned {len(doomed)} open entries with cost >= {cost_bound}")
        return len(doomed)


class HeapFrontier(Frontier):
    """Binary heap with lazy deletion of stale records."""

    def __init__(self):
        super().__init__()
        self._heap: List[Tuple[int, int, ExpressionNode]] = []
        # Insertion counter; keeps heap records comparable without touching nodes.
        self._counter = itertools.count()

    def _on_stored(self, node: ExpressionNode) -> None:
        heapq.heappush(self._heap, (node.cost, next(self._counter), node))

    def _is_live(self, node: ExpressionNode) -> bool:
        return self._backing.get(node.value) is node

    def _drop_stale(self) -> None:
        while self._heap and not self._is_live(self._heap[0][2]):
            heapq.heappop(self._heap)

    def extract_min(self) -> ExpressionNode:
        self._drop_stale()
        if not self._heap:
            raise EmptyFrontierError("extract_min() on an empty frontier")
        cost, _, node = heapq.heappop(self._heap)
        del self._backing[node.value]
        self._level = cost
        return node

    def level_size(self) -> int:
        return sum(1 for node in self._backing.values() if node.cost == self._level)

    def prune(self, cost_bound: int, keep_value: Optional[Number] = None) -> int:
        evicted = super().prune(cost_bound, keep_value)
        # Compact once the heap is mostly dead records.
        if len(self._heap) > 2 * len(self._backing) + 64:
            self._heap = [entry for entry in self._heap if self._is_live(entry[2])]
            heapq.heapify(self._heap)
        return evicted


class LevelFrontier(Frontier):
    """Level counter plus a cached stack of values on the current level."""

    def __init__(self):
        super().__init__()
        self._cached: List[Number] = []
        self._cost_bound: Optional[int] = None
        self._keep_value: Optional[Number] = None

    def prune(self, cost_bound: int, keep_value: Optional[Number] = None) -> int:
        # Remembered so every later re-scan keeps evicting.
        self._cost_bound = cost_bound
        self._keep_value = keep_value
        return super().prune(cost_bound, keep_value)

    def _step_recache(self) -> None:
        self._level += 1
        doomed = []
        for value, node in self._backing.items():
            if node.cost == self._level:
                self._cached.append(value)
            elif (self._cost_bound is not None and node.cost >= self._cost_bound
                  and value != self._keep_value):
                doomed.append(value)
        for value in doomed:
            del self._backing[value]
        logger.info(f"Now at level {self._level} ({self.size()} open, "
                    f"{self.level_size()} of that on current level)")

    def _recache(self) -> None:
        while not self._cached:
            if not self._backing:
                raise EmptyFrontierError("extract_min() on an empty frontier")
            self._step_recache()

    def _pop_cached(self) -> Optional[ExpressionNode]:
        # Cached values may have been pruned since the level was scanned.
        while self._cached:
            value = self._cached.pop()
            node = self._backing.get(value)
            if node is not None and node.cost == self._level:
                return node
        return None

    def extract_min(self) -> ExpressionNode:
        node = self._pop_cached()
        while node is None:
            self._recache()
            node = self._pop_cached()
        del self._backing[node.value]
        return node

    def level_size(self) -> int:
        return len(self._cached)


FRONTIER_KINDS = {
    'heap': HeapFrontier,
    'level': LevelFrontier,
}


def create_frontier(kind: str = 'heap') -> Frontier:
    """Create a frontier by name (``'heap'`` or ``'level'``)."""
    try:
        return FRONTIER_KINDS[kind]()
    except KeyError:
        raise ValueError(f"Unknown frontier kind: {kind!r} (expected one of {sorted(FRONTIER_KINDS)})")
