"""Best-first search for the shortest expression that evaluates to a target.

Values are discovered by combining already-closed values pairwise with
``+ - * /``. The frontier always yields a cheapest open value, so the first
time a value is closed it is closed at its minimum term count.
"""

import time
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from minrpn.core.data_models import ExpressionNode, Number, NumericDomain, Operator
from minrpn.search.frontier import create_frontier
from minrpn.search.render import render
from minrpn.search.session import ALL_OPERATORS, SearchSession

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], None]


class EmptyFrontierPrecondition(ValueError):
    """Raised when a search is started without any seed values."""
    pass


class SearchState(Enum):
    RUNNING = 'running'
    FOUND = 'found'          # target seen, search still running
    EXHAUSTED = 'exhausted'  # frontier ran dry before the target was reached
    DONE = 'done'
    TIMED_OUT = 'timed_out'


class StopPolicy(Enum):
    """When to stop once the target has been seen.

    FIRST_CLOSED stops as soon as the target itself is extracted.
    EXHAUSTIVE_BOUND keeps expanding while some further expansion could still
    shave off a term.
    """
    FIRST_CLOSED = 'first_closed'
    EXHAUSTIVE_BOUND = 'exhaustive_bound'


@dataclass
class SearchConfig:
    """Configuration for the expression search."""
    seeds: Sequence[Number] = (69, 420)
    target: Number = 2017
    domain: NumericDomain = NumericDomain.INTEGER
    operators: Sequence[Operator] = tuple(sorted(ALL_OPERATORS, key=lambda op: op.value))
    min_relevant: Optional[Number] = None  # None: domain default
    max_relevant: Optional[Number] = None  # None: factor * largest seed
    max_relevant_factor: float = 3000
    stop_policy: StopPolicy = StopPolicy.FIRST_CLOSED
    frontier: str = 'heap'
    render_style: str = 'infix'
    max_computation_time: Optional[float] = None  # seconds
    max_nodes_expanded: Optional[int] = None
    first_report: int = 100  # expansions before the first progress report
    report_growth: float = 1.5  # geometric spacing of later reports

    def resolved_min_relevant(self) -> Optional[Number]:
        if self.min_relevant is not None:
            return self.min_relevant
        return self.domain.default_min_relevant()

    def resolved_max_relevant(self) -> Optional[Number]:
        if self.max_relevant is not None:
            return self.max_relevant
        if not self.seeds or self.max_relevant_factor is None:
            return None
        largest = max(abs(seed) for seed in self.seeds)
        bound = largest * self.max_relevant_factor
        return int(bound) if self.domain is NumericDomain.INTEGER else float(bound)


@dataclass
class SearchResult:
    """Result from an expression search."""
    success: bool
    state: SearchState
    target: Number
    cost: Optional[int] = None
    expression: Optional[str] = None
    render_style: str = 'infix'
    nodes_expanded: int = 0
    nodes_generated: int = 0
    nodes_pruned: int = 0
    closed_count: int = 0
    open_count: int = 0
    max_level_reached: int = 0
    computation_time: float = 0.0
    termination_reason: str = "unknown"
    discoveries: List[Tuple[int, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary."""
        return {
            'success': self.success,
            'state': self.state.value,
            'target': self.target,
            'cost': self.cost,
            'expression': self.expression,
            'render_style': self.render_style,
            'nodes_expanded': self.nodes_expanded,
            'nodes_generated': self.nodes_generated,
            'nodes_pruned': self.nodes_pruned,
            'closed_count': self.closed_count,
            'open_count': self.open_count,
            'max_level_reached': self.max_level_reached,
            'computation_time': self.computation_time,
            'termination_reason': self.termination_reason,
            'discoveries': [list(d) for d in self.discoveries],
        }


class ExpressionSearcher:
    """Runs the open/closed search state machine for one configuration."""

    def __init__(self, config: Optional[SearchConfig] = None):
        """Initialize searcher.

        Args:
            config: Search configuration parameters
        """
        self.config = config or SearchConfig()
        self.state = SearchState.RUNNING
        self.session: Optional[SearchSession] = None
        self.nodes_expanded = 0
        self._discoveries: List[Tuple[int, str]] = []

        logger.info(f"Expression searcher initialized with target={self.config.target}, "
                    f"seeds={list(self.config.seeds)}, domain={self.config.domain.value}, "
                    f"frontier={self.config.frontier}, policy={self.config.stop_policy.value}")

    def _new_session(self) -> SearchSession:
        cfg = self.config
        return SearchSession(
            target=cfg.target,
            domain=cfg.domain,
            min_relevant=cfg.resolved_min_relevant(),
            max_relevant=cfg.resolved_max_relevant(),
            operators=cfg.operators,
            frontier=create_frontier(cfg.frontier),
            on_discovery=self._on_discovery,
        )

    def _on_discovery(self, node: ExpressionNode) -> None:
        expression = render(self.session.lookup_best_known, node.value, self.config.render_style)
        self._discoveries.append((node.cost, expression))
        if self.state is SearchState.RUNNING:
            self.state = SearchState.FOUND
        logger.info(f"One way ({node.cost} terms) = {expression}")

    def _should_stop(self, node: ExpressionNode) -> bool:
        session = self.session
        if node.value == session.target:
            return True
        if not session.target_found:
            return False
        if self.config.stop_policy is StopPolicy.EXHAUSTIVE_BOUND:
            # Any later candidate costs at least node.cost + 1.
            return session.best_target_cost <= node.cost + 1
        return False

    def search(self, progress_callback: Optional[ProgressCallback] = None) -> SearchResult:
        """Search for the cheapest expression of the configured target.

        Args:
            progress_callback: Called with ``(cost_level, open_count, closed_count)``
                at geometrically spaced expansion counts

        Returns:
            SearchResult; ``success`` is False when the explored space ran out

        Raises:
            EmptyFrontierPrecondition: If no seeds were configured
        """
        cfg = self.config
        if not cfg.seeds:
            raise EmptyFrontierPrecondition("At least one seed value is required")

        start_time = time.perf_counter()
        deadline = (start_time + cfg.max_computation_time
                    if cfg.max_computation_time is not None else None)

        self.state = SearchState.RUNNING
        self.nodes_expanded = 0
        self._discoveries = []
        self.session = session = self._new_session()

        target = session.target
        if not session.is_relevant(target):
            logger.warning(f"Target {target} lies outside the relevance window "
                           f"({session.min_relevant}, {session.max_relevant}); "
                           f"only a seed can match it")

        for seed in cfg.seeds:
            session.provide(seed)

        next_report = cfg.first_report
        termination_reason = "unknown"
        while True:
            if session.frontier.size() == 0:
                self.state = SearchState.EXHAUSTED
                termination_reason = "exhausted"
                logger.warning("Goal can't be reached within the relevance window")
                break
            if deadline is not None and time.perf_counter() > deadline:
                self.state = SearchState.TIMED_OUT
                termination_reason = "timeout"
                logger.warning(f"Search timed out after {cfg.max_computation_time}s")
                break
            if cfg.max_nodes_expanded is not None and self.nodes_expanded >= cfg.max_nodes_expanded:
                self.state = SearchState.TIMED_OUT
                termination_reason = "max_nodes_expanded"
                logger.warning(f"Search stopped after {self.nodes_expanded} expansions")
                break

            node = session.frontier.extract_min()
            self.nodes_expanded += 1
            if self.nodes_expanded == next_report:
                level, open_count, closed_count = session.snapshot()
                logger.info(f"Expanding {node.value} at depth {node.cost}, {open_count} open "
                            f"({session.frontier.level_size()} on current level), "
                            f"{closed_count} closed")
                if progress_callback is not None:
                    progress_callback(level, open_count, closed_count)
                next_report = max(next_report + 1, int(next_report * cfg.report_growth))

            session.close(node)

            if self._should_stop(node):
                self.state = SearchState.DONE
                termination_reason = ("target_closed" if node.value == target
                                      else "no_shorter_expression")
                break

        return self._create_result(start_time, termination_reason)

    def _create_result(self, start_time: float, termination_reason: str) -> SearchResult:
        session = self.session
        computation_time = time.perf_counter() - start_time
        success = self.state is SearchState.DONE and session.target_found
        cost = None
        expression = None
        if success:
            cost = session.best_target_cost
            expression = self.render_target()
            logger.info(f"Done after {len(session.closed)} steps. Turns out, you need only "
                        f"{cost} terms to build {session.target}: {expression}")

        return SearchResult(
            success=success,
            state=self.state,
            target=session.target,
            cost=cost,
            expression=expression,
            render_style=self.config.render_style,
            nodes_expanded=self.nodes_expanded,
            nodes_generated=session.counters.nodes_generated,
            nodes_pruned=session.counters.nodes_pruned,
            closed_count=len(session.closed),
            open_count=session.frontier.size(),
            max_level_reached=session.frontier.level,
            computation_time=computation_time,
            termination_reason=termination_reason,
            discoveries=list(self._discoveries),
        )

    def render_target(self, style: Optional[str] = None) -> str:
        """Render the best known expression for the target.

        Raises:
            RuntimeError: If no search ran or the target was never reached
        """
        if self.session is None or not self.session.target_found:
            raise RuntimeError("Target has not been reached")
        return render(self.session.lookup_best_known, self.session.target,
                      style or self.config.render_style)


def create_searcher(seeds: Sequence[Number] = (69, 420),
                    target: Number = 2017,
                    domain: str = 'integer',
                    **kwargs) -> ExpressionSearcher:
    """Create an expression searcher with the given parameters.

    Args:
        seeds: Base constants, each usable any number of times
        target: Value to build
        domain: ``'integer'`` or ``'float'``
        **kwargs: Further ``SearchConfig`` fields; ``stop_policy`` and
            ``operators`` may be given as strings

    Returns:
        Configured ExpressionSearcher
    """
    numeric_domain = NumericDomain(domain)
    if isinstance(kwargs.get('stop_policy'), str):
        kwargs['stop_policy'] = StopPolicy(kwargs['stop_policy'])
    if 'operators' in kwargs:
        kwargs['operators'] = tuple(
            op if isinstance(op, Operator) else Operator.from_symbol(op)
            for op in kwargs['operators']
        )
    config = SearchConfig(
        seeds=tuple(numeric_domain.coerce(seed) for seed in seeds),
        target=numeric_domain.coerce(target),
        domain=numeric_domain,
        **kwargs
    )
    return ExpressionSearcher(config)
