"""Configuration validation for minrpn."""

import logging
from typing import List
from omegaconf import DictConfig, ListConfig

logger = logging.getLogger(__name__)

DOMAINS = ('integer', 'float')
STOP_POLICIES = ('first_closed', 'exhaustive_bound')
FRONTIER_KINDS = ('heap', 'level')
RENDER_STYLES = ('infix', 'postfix')
OPERATOR_SYMBOLS = ('+', '-', '*', '/')


class ConfigValidationError(Exception):
    """Exception raised when configuration validation fails."""
    pass


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: DictConfig) -> None:
    """Validate the complete configuration.

    Args:
        config: Configuration to validate

    Raises:
        ConfigValidationError: If validation fails
    """
    try:
        validate_solver_config(config.get('solver', {}))
        validate_search_config(config.get('search', {}))
        validate_rendering_config(config.get('rendering', {}))

        logger.debug("Configuration validation passed")

    except Exception as e:
        raise ConfigValidationError(f"Configuration validation failed: {e}")


def validate_solver_config(solver_config: DictConfig) -> None:
    """Validate solver configuration section.

    Args:
        solver_config: Solver configuration section
    """
    if not solver_config:
        return

    timeout = solver_config.get('timeout_seconds', None)
    if timeout is not None and (not _is_number(timeout) or timeout <= 0):
        raise ConfigValidationError(
            f"timeout_seconds must be positive number or null, got {timeout}"
        )


def validate_search_config(search_config: DictConfig) -> None:
    """Validate search configuration section.

    Args:
        search_config: Search configuration section
    """
    if not search_config:
        return

    domain = search_config.get('domain', 'integer')
    if domain not in DOMAINS:
        raise ConfigValidationError(f"search.domain must be one of {DOMAINS}, got {domain}")

    seeds = search_config.get('seeds', [])
    if not isinstance(seeds, (list, tuple, ListConfig)) or len(seeds) == 0:
        raise ConfigValidationError(f"search.seeds must be a non-empty list, got {seeds}")
    for seed in seeds:
        if not _is_number(seed):
            raise ConfigValidationError(f"search.seeds must contain numbers, got {seed!r}")
        if domain == 'integer' and not float(seed).is_integer():
            raise ConfigValidationError(f"integer domain requires integral seeds, got {seed}")

    target = search_config.get('target', None)
    if not _is_number(target):
        raise ConfigValidationError(f"search.target must be a number, got {target!r}")
    if domain == 'integer' and not float(target).is_integer():
        raise ConfigValidationError(f"integer domain requires an integral target, got {target}")

    operators = search_config.get('operators', list(OPERATOR_SYMBOLS))
    if not operators:
        raise ConfigValidationError("search.operators must name at least one operator")
    for symbol in operators:
        if symbol not in OPERATOR_SYMBOLS:
            raise ConfigValidationError(
                f"search.operators entries must be one of {OPERATOR_SYMBOLS}, got {symbol!r}"
            )

    policy = search_config.get('stop_policy', 'first_closed')
    if policy not in STOP_POLICIES:
        raise ConfigValidationError(
            f"search.stop_policy must be one of {STOP_POLICIES}, got {policy}"
        )

    frontier = search_config.get('frontier', 'heap')
    if frontier not in FRONTIER_KINDS:
        raise ConfigValidationError(
            f"search.frontier must be one of {FRONTIER_KINDS}, got {frontier}"
        )

    max_nodes = search_config.get('max_nodes_expanded', None)
    if max_nodes is not None and (not isinstance(max_nodes, int) or max_nodes <= 0):
        raise ConfigValidationError(
            f"search.max_nodes_expanded must be positive integer or null, got {max_nodes}"
        )

    validate_relevance_config(search_config.get('relevance', {}))
    validate_progress_config(search_config.get('progress', {}))


def validate_relevance_config(relevance_config: DictConfig) -> None:
    """Validate the relevance window (exclusive bounds on ``|value|``)."""
    if not relevance_config:
        return

    min_relevant = relevance_config.get('min_relevant', None)
    max_relevant = relevance_config.get('max_relevant', None)
    for key, value in (('min_relevant', min_relevant), ('max_relevant', max_relevant)):
        if value is not None and (not _is_number(value) or value < 0):
            raise ConfigValidationError(
                f"relevance.{key} must be non-negative number or null, got {value}"
            )
    if min_relevant is not None and max_relevant is not None and min_relevant >= max_relevant:
        raise ConfigValidationError(
            f"relevance.min_relevant ({min_relevant}) must be below max_relevant ({max_relevant})"
        )

    factor = relevance_config.get('max_relevant_factor', 3000)
    if factor is not None and (not _is_number(factor) or factor <= 0):
        raise ConfigValidationError(
            f"relevance.max_relevant_factor must be positive number or null, got {factor}"
        )


def validate_progress_config(progress_config: DictConfig) -> None:
    """Validate progress reporting cadence."""
    if not progress_config:
        return

    first_report = progress_config.get('first_report', 100)
    if not isinstance(first_report, int) or isinstance(first_report, bool) or first_report <= 0:
        raise ConfigValidationError(
            f"progress.first_report must be positive integer, got {first_report}"
        )

    growth = progress_config.get('growth_factor', 1.5)
    if not _is_number(growth) or growth < 1:
        raise ConfigValidationError(
            f"progress.growth_factor must be a number >= 1, got {growth}"
        )


def validate_rendering_config(rendering_config: DictConfig) -> None:
    """Validate rendering configuration section."""
    if not rendering_config:
        return

    style = rendering_config.get('style', 'infix')
    if style not in RENDER_STYLES:
        raise ConfigValidationError(
            f"rendering.style must be one of {RENDER_STYLES}, got {style}"
        )


def check_config_consistency(config: DictConfig) -> List[str]:
    """Check configuration consistency and return issues.

    Args:
        config: Configuration to check

    Returns:
        List of consistency issues
    """
    issues = []

    search_config = config.get('search', {})
    relevance = search_config.get('relevance', {}) or {}
    target = search_config.get('target', None)
    max_relevant = relevance.get('max_relevant', None)
    min_relevant = relevance.get('min_relevant', None)
    seeds = search_config.get('seeds', []) or []

    if _is_number(target) and target not in seeds:
        if max_relevant is not None and abs(target) >= max_relevant:
            issues.append(f"target {target} is outside max_relevant={max_relevant}")
        if min_relevant is not None and abs(target) <= min_relevant:
            issues.append(f"target {target} is inside min_relevant={min_relevant}")

    return issues
