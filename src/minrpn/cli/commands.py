"""CLI command implementations."""

import json
import logging
import time
from typing import Any, Dict, List, Optional

from omegaconf import DictConfig, OmegaConf

from minrpn import __version__
from minrpn.config import load_config, validate_config, ConfigValidationError
from minrpn.config.validators import check_config_consistency
from minrpn.core.data_models import NumericDomain, Operator
from minrpn.search.driver import (ExpressionSearcher, SearchConfig, StopPolicy,
                                  ProgressCallback)

from .utils import save_results, format_duration, parse_number_list, ProgressReporter

logger = logging.getLogger(__name__)


def build_search_config(config: DictConfig) -> SearchConfig:
    """Translate the ``search``/``solver``/``rendering`` sections into a SearchConfig."""
    search_cfg = config.get('search', {})
    solver_cfg = config.get('solver', {})
    relevance = search_cfg.get('relevance', {}) or {}
    progress = search_cfg.get('progress', {}) or {}

    domain = NumericDomain(search_cfg.get('domain', 'integer'))

    def optional_number(value):
        return None if value is None else domain.coerce(value)

    return SearchConfig(
        seeds=tuple(domain.coerce(seed) for seed in search_cfg.get('seeds', [])),
        target=domain.coerce(search_cfg.get('target')),
        domain=domain,
        operators=tuple(Operator.from_symbol(symbol)
                        for symbol in search_cfg.get('operators', ['+', '-', '*', '/'])),
        min_relevant=optional_number(relevance.get('min_relevant', None)),
        max_relevant=optional_number(relevance.get('max_relevant', None)),
        max_relevant_factor=relevance.get('max_relevant_factor', 3000),
        stop_policy=StopPolicy(search_cfg.get('stop_policy', 'first_closed')),
        frontier=search_cfg.get('frontier', 'heap'),
        render_style=config.get('rendering', {}).get('style', 'infix'),
        max_computation_time=solver_cfg.get('timeout_seconds', None),
        max_nodes_expanded=search_cfg.get('max_nodes_expanded', None),
        first_report=progress.get('first_report', 100),
        report_growth=progress.get('growth_factor', 1.5),
    )


class ExpressionSolver:
    """Loads configuration and runs one expression search."""

    def __init__(self, config_overrides: Optional[List[str]] = None,
                 config_updates: Optional[Dict[str, Any]] = None):
        """Initialize solver.

        Args:
            config_overrides: List of Hydra configuration overrides
            config_updates: Typed dotted-key values applied on top of the overrides
        """
        try:
            self.config = load_config(overrides=config_overrides or [], updates=config_updates)
        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            raise

        for issue in check_config_consistency(self.config):
            logger.warning(f"Configuration issue: {issue}")

        self.search_config = build_search_config(self.config)
        self.searcher = ExpressionSearcher(self.search_config)

    def solve(self, progress_callback: Optional[ProgressCallback] = None) -> Dict[str, Any]:
        """Run the search and return a JSON-friendly result dictionary."""
        result = self.searcher.search(progress_callback=progress_callback)
        output = result.to_dict()
        output['seeds'] = list(self.search_config.seeds)
        output['domain'] = self.search_config.domain.value
        return output


def parse_number(text: str):
    """Parse ``"12"`` as an int and ``"0.75"`` as a float."""
    try:
        return int(text)
    except ValueError:
        return float(text)


def _solve_updates(args) -> Dict[str, Any]:
    """Configuration values set by ``solve`` options; these win over ``--config``."""
    updates: Dict[str, Any] = {}
    if getattr(args, 'target', None) is not None:
        updates['search.target'] = parse_number(args.target)
    if getattr(args, 'seeds', None):
        updates['search.seeds'] = [parse_number(token) for token in parse_number_list(args.seeds)]
    if getattr(args, 'domain', None):
        updates['search.domain'] = args.domain
    if getattr(args, 'operators', None):
        updates['search.operators'] = list(args.operators)
    if getattr(args, 'policy', None):
        updates['search.stop_policy'] = args.policy
    if getattr(args, 'frontier', None):
        updates['search.frontier'] = args.frontier
    if getattr(args, 'style', None):
        updates['rendering.style'] = args.style
    if getattr(args, 'timeout', None) is not None:
        updates['solver.timeout_seconds'] = args.timeout
    if getattr(args, 'min_relevant', None) is not None:
        updates['search.relevance.min_relevant'] = args.min_relevant
    if getattr(args, 'max_relevant', None) is not None:
        updates['search.relevance.max_relevant'] = args.max_relevant
    return updates


def solve_command(args) -> int:
    """Handle solve command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (1 when the target cannot be built)
    """
    try:
        config_overrides = args.config.split() if getattr(args, 'config', None) else []
        config_updates = _solve_updates(args)

        logger.info("Initializing expression solver...")
        solver = ExpressionSolver(config_overrides, config_updates)

        reporter = ProgressReporter(quiet=args.quiet)
        start_time = time.perf_counter()
        result = solver.solve(progress_callback=reporter)
        total_time = time.perf_counter() - start_time

        result.update({
            'solver_version': __version__,
            'total_time': total_time,
            'timestamp': time.time()
        })

        if args.output:
            save_results(result, args.output)
            logger.info(f"Results saved to {args.output}")
        else:
            print(json.dumps(result, indent=2))

        if not args.quiet:
            print(f"\nTarget: {result['target']}")
            print(f"Success: {result['success']}")
            if result['success']:
                print(f"Terms: {result['cost']}")
                print(f"{result['target']} = {result['expression']}")
            else:
                print(f"Goal can't be reached ({result['termination_reason']})")
            print(f"Nodes expanded: {result['nodes_expanded']} "
                  f"({result['closed_count']} closed, {result['open_count']} open)")
            print(f"Computation time: {format_duration(result['computation_time'])}")

        return 0 if result['success'] else 1

    except Exception as e:
        logger.error(f"Solve command failed: {e}")
        return 1


def config_command(args) -> int:
    """Handle config command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    overrides = args.config.split() if getattr(args, 'config', None) else []
    try:
        if args.config_action == 'show':
            config = load_config(overrides=overrides, validate=False)
            print("Current Configuration:")
            print("=" * 50)
            print(OmegaConf.to_yaml(config, resolve=True))
            return 0

        elif args.config_action == 'validate':
            try:
                config = load_config(overrides=overrides, validate=False)
                validate_config(config)
            except ConfigValidationError as e:
                print(f"Configuration validation failed: {e}")
                return 1
            for issue in check_config_consistency(config):
                print(f"Warning: {issue}")
            print("Configuration is valid")
            return 0

        else:
            print("Unknown config action")
            return 1

    except Exception as e:
        logger.error(f"Config command failed: {e}")
        return 1
