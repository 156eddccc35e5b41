"""Search session: open set, closed set and the best answer seen so far.

Invariants kept by this module:

* the frontier and the closed set hold nodes for disjoint sets of values;
* a closed node never changes once stored;
* every composite node's operands are registered (open or closed) when the
  node is created, and each operand is strictly cheaper than the node.

Expanding a closed node pairs it with every closed node, which makes the
whole search quadratic in the number of closed values. For the integer
domain with a bounded window the pairing is done with numpy over the whole
closed set at once, and a dense table of the cheapest cost seen per value
throws away candidates that cannot improve anything before a node is built.
Both paths admit the same candidates in the same order.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Tuple

import numpy as np

from minrpn.core.data_models import ExpressionNode, Number, NumericDomain, Operator
from minrpn.search.frontier import Frontier, HeapFrontier

logger = logging.getLogger(__name__)

ALL_OPERATORS: FrozenSet[Operator] = frozenset(
    (Operator.PLUS, Operator.MINUS, Operator.TIMES, Operator.DIVIDE)
)

# Largest window (on |value|) that gets a dense cost table.
DENSE_WINDOW_LIMIT = 1 << 22
# Closed values at or above this magnitude could overflow int64 products.
SAFE_OPERAND_LIMIT = 1 << 31

# Column layout of one batch row: a/b, a-b, a*b, a+b, b/a, b-a
_BATCH_OPERATORS = (Operator.DIVIDE, Operator.MINUS, Operator.TIMES, Operator.PLUS,
                    Operator.DIVIDE, Operator.MINUS)
_MIRRORED_FROM = 4
_UNSEEN = np.iinfo(np.int32).max

DiscoveryCallback = Callable[[ExpressionNode], None]


@dataclass
class SessionCounters:
    """Bookkeeping for a single search run."""
    nodes_generated: int = 0
    nodes_accepted: int = 0
    rejected_closed: int = 0
    rejected_window: int = 0
    rejected_cost: int = 0
    rejected_known: int = 0  # batch path: value already seen at equal or lower cost
    nodes_pruned: int = 0


class SearchSession:
    """All mutable state of one search, passed around explicitly."""

    def __init__(self,
                 target: Number,
                 domain: NumericDomain = NumericDomain.INTEGER,
                 min_relevant: Optional[Number] = None,
                 max_relevant: Optional[Number] = None,
                 operators: Iterable[Operator] = ALL_OPERATORS,
                 frontier: Optional[Frontier] = None,
                 on_discovery: Optional[DiscoveryCallback] = None,
                 vectorized: bool = True):
        self.target = target
        self.domain = domain
        self.min_relevant = min_relevant
        self.max_relevant = max_relevant
        self.operators = frozenset(operators)
        if Operator.NONE in self.operators:
            raise ValueError("Operator.NONE marks seeds and cannot be used to combine values")
        self.frontier = frontier if frontier is not None else HeapFrontier()
        self.closed: Dict[Number, ExpressionNode] = {}
        # Cost of the cheapest target expression seen; None until found.
        self.best_target_cost: Optional[int] = None
        self.on_discovery = on_discovery
        self.counters = SessionCounters()

        self._cost_table: Optional[np.ndarray] = None
        self._table_offset = 0
        if vectorized:
            self._init_batch_state()

    def _init_batch_state(self) -> None:
        if self.domain is not NumericDomain.INTEGER or self.max_relevant is None:
            return
        offset = int(self.max_relevant)
        if offset > DENSE_WINDOW_LIMIT:
            logger.debug(f"Window {self.max_relevant} too wide for a dense cost table")
            return
        self._table_offset = offset
        self._cost_table = np.full(2 * offset + 1, _UNSEEN, dtype=np.int32)
        self._closed_values = np.empty(256, dtype=np.int64)
        self._closed_costs = np.empty(256, dtype=np.int64)
        self._closed_count = 0

    @property
    def vectorized(self) -> bool:
        return self._cost_table is not None

    @property
    def target_found(self) -> bool:
        return self.best_target_cost is not None

    def is_relevant(self, value: Number) -> bool:
        """Check ``value`` against the exclusive relevance window on ``|value|``."""
        magnitude = abs(value)
        if self.min_relevant is not None and not magnitude > self.min_relevant:
            return False
        if self.max_relevant is not None and not magnitude < self.max_relevant:
            return False
        # NaN fails every comparison above only when a bound is set.
        return magnitude == magnitude

    def provide(self, value: Number) -> None:
        """Seed phase: offer a base constant as a cost-1 node."""
        node = ExpressionNode.seed(value)
        stored = self.frontier.insert_or_improve(node)
        if stored:
            self._note_cost(value, 1)
            if value == self.target:
                self._record_discovery(node)

    def _passes_filters(self, value: Number, cost: int) -> bool:
        """Closed, window and cost-bound checks on a raw candidate value."""
        # Closed values are final; rediscovering them is wasted work.
        if value in self.closed:
            self.counters.rejected_closed += 1
            return False
        if not self.is_relevant(value):
            self.counters.rejected_window += 1
            return False
        if self.best_target_cost is not None and cost >= self.best_target_cost:
            self.counters.rejected_cost += 1
            return False
        return True

    def discover(self, node: ExpressionNode) -> bool:
        """Admit a freshly generated candidate into the frontier if it is worth keeping.

        Returns:
            True if the frontier kept the node
        """
        self.counters.nodes_generated += 1
        if not self._passes_filters(node.value, node.cost):
            return False
        return self._admit(node)

    def _admit(self, node: ExpressionNode) -> bool:
        stored = self.frontier.insert_or_improve(node)
        if stored:
            self.counters.nodes_accepted += 1
            self._note_cost(node.value, node.cost)
        if node.value == self.target:
            self._record_discovery(node)
        return stored

    def _note_cost(self, value: Number, cost: int) -> None:
        if self._cost_table is None:
            return
        if -self._table_offset <= value <= self._table_offset:
            index = value + self._table_offset
            if cost < self._cost_table[index]:
                self._cost_table[index] = cost

    def _record_discovery(self, node: ExpressionNode) -> None:
        self.best_target_cost = node.cost
        # Nothing at or above this cost can lead to a shorter expression.
        self.counters.nodes_pruned += self.frontier.prune(node.cost, keep_value=self.target)
        if self.on_discovery is not None:
            self.on_discovery(node)

    def _combine(self, op: Operator, left: ExpressionNode, right: ExpressionNode,
                 cost: int) -> None:
        if op not in self.operators:
            return
        value = self.domain.apply(op, left.value, right.value)
        if value is None:
            # Zero divisor or inexact integer division.
            return
        self.counters.nodes_generated += 1
        if not self._passes_filters(value, cost):
            return
        self._admit(ExpressionNode(value=value, left=left.value, right=right.value,
                                   cost=cost, operator=op))

    def generate_against(self, a: ExpressionNode, b: ExpressionNode) -> None:
        """Offer every combination of the just-closed ``a`` with closed ``b``.

        ``b`` may be ``a`` itself. Commutative operators are only tried in one
        order; the mirrored forms are generated for ``-`` and ``/`` only.
        """
        cost = a.cost + b.cost
        for op in (Operator.DIVIDE, Operator.MINUS, Operator.TIMES, Operator.PLUS):
            self._combine(op, a, b, cost)
        if b.value != a.value:
            for op in (Operator.DIVIDE, Operator.MINUS):
                self._combine(op, b, a, cost)

    def close(self, node: ExpressionNode) -> None:
        """Move an extracted node to the closed set and expand it."""
        if node.value in self.closed:
            raise ValueError(f"Value {node.value!r} is already closed")
        # Closed first, so the node also gets combined with itself.
        self.closed[node.value] = node
        if self._cost_table is not None and abs(node.value) >= SAFE_OPERAND_LIMIT:
            logger.info(f"Closed value {node.value} is too large for batch expansion; "
                        f"expanding pair by pair from now on")
            self._cost_table = None

        if self._cost_table is not None:
            self._note_cost(node.value, node.cost)
            self._remember_closed(node)
            self._generate_batch(node)
        else:
            for peer in self.closed.values():
                self.generate_against(node, peer)

    def _remember_closed(self, node: ExpressionNode) -> None:
        if self._closed_count == len(self._closed_values):
            self._closed_values = np.resize(self._closed_values, 2 * self._closed_count)
            self._closed_costs = np.resize(self._closed_costs, 2 * self._closed_count)
        self._closed_values[self._closed_count] = node.value
        self._closed_costs[self._closed_count] = node.cost
        self._closed_count += 1

    def _generate_batch(self, a: ExpressionNode) -> None:
        """``generate_against(a, peer)`` for every closed peer, with numpy."""
        n = self._closed_count
        peers = self._closed_values[:n]
        av = a.value

        nonzero = peers != 0
        divisors = np.where(nonzero, peers, 1)
        mirrored = peers != av
        ones = np.ones(n, dtype=bool)
        if av != 0:
            mirrored_quotients = peers // av
            mirrored_exact = mirrored & (peers % av == 0)
        else:
            mirrored_quotients = np.zeros(n, dtype=np.int64)
            mirrored_exact = np.zeros(n, dtype=bool)

        values = np.stack([av // divisors, av - peers, av * peers, av + peers,
                           mirrored_quotients, peers - av], axis=1).ravel()
        valid = np.stack([nonzero & (av % divisors == 0), ones, ones, ones,
                          mirrored_exact, mirrored], axis=1)
        for column, op in enumerate(_BATCH_OPERATORS):
            if op not in self.operators:
                valid[:, column] = False
        costs = np.repeat(self._closed_costs[:n] + a.cost, len(_BATCH_OPERATORS))

        flat = np.flatnonzero(valid.ravel())
        self.counters.nodes_generated += len(flat)

        magnitude = np.abs(values[flat])
        keep = magnitude < self.max_relevant
        if self.min_relevant is not None:
            keep &= magnitude > self.min_relevant
        self.counters.rejected_window += len(flat) - int(np.count_nonzero(keep))
        flat = flat[keep]

        if self.best_target_cost is not None:
            keep = costs[flat] < self.best_target_cost
            self.counters.rejected_cost += len(flat) - int(np.count_nonzero(keep))
            flat = flat[keep]

        keep = costs[flat] < self._cost_table[values[flat] + self._table_offset]
        self.counters.rejected_known += len(flat) - int(np.count_nonzero(keep))
        flat = flat[keep]

        table = self._cost_table
        offset = self._table_offset
        peer_values = peers.tolist()
        for index, value, cost in zip(flat.tolist(), values[flat].tolist(), costs[flat].tolist()):
            # Earlier rows of this batch may have claimed the value already.
            if cost >= table[value + offset]:
                self.counters.rejected_known += 1
                continue
            if not self._passes_filters(value, cost):
                continue
            row, column = divmod(index, len(_BATCH_OPERATORS))
            peer = peer_values[row]
            left, right = (av, peer) if column < _MIRRORED_FROM else (peer, av)
            self._admit(ExpressionNode(value=value, left=left, right=right, cost=cost,
                                       operator=_BATCH_OPERATORS[column]))

    def lookup_best_known(self, value: Number) -> ExpressionNode:
        """Find the node for ``value`` in the closed set, then in the frontier.

        Raises:
            KeyError: If the value was never discovered
        """
        node = self.closed.get(value)
        if node is not None:
            return node
        node = self.frontier.get(value)
        if node is None:
            raise KeyError(value)
        return node

    def target_node(self) -> Optional[ExpressionNode]:
        try:
            return self.lookup_best_known(self.target)
        except KeyError:
            return None

    def snapshot(self) -> Tuple[int, int, int]:
        """Return ``(cost_level, open_count, closed_count)``."""
        return self.frontier.level, self.frontier.size(), len(self.closed)
