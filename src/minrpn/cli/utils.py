"""CLI utility functions."""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


def setup_logging(level: int = logging.INFO,
                  format_string: Optional[str] = None) -> None:
    """Setup logging configuration.

    Args:
        level: Logging level
        format_string: Custom format string
    """
    if format_string is None:
        if level <= logging.DEBUG:
            format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_string = "%(levelname)s: %(message)s"

    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # Hydra is chatty at INFO
    logging.getLogger('hydra').setLevel(logging.WARNING)


def parse_number_list(text: str) -> List[str]:
    """Split ``"69,420"`` or ``"69 420"`` into number tokens."""
    return [token for token in text.replace(',', ' ').split() if token]


def save_results(results: Dict[str, Any],
                 output_path: Union[str, Path],
                 pretty: bool = True) -> None:
    """Save results to JSON file.

    Args:
        results: Results dictionary
        output_path: Output file path
        pretty: Whether to pretty-print JSON
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Convert numpy scalars to plain numbers for JSON serialization
    def convert(obj):
        if hasattr(obj, 'tolist'):
            return obj.tolist()
        if isinstance(obj, dict):
            return {k: convert(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [convert(item) for item in obj]
        return obj

    serializable_results = convert(results)

    with open(output_path, 'w') as f:
        if pretty:
            json.dump(serializable_results, f, indent=2, sort_keys=True)
        else:
            json.dump(serializable_results, f)


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string
    """
    if seconds < 0.001:
        return f"{seconds*1000000:.1f}µs"
    elif seconds < 1:
        return f"{seconds*1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.1f}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = seconds % 60
        return f"{hours}h {minutes}m {secs:.1f}s"


class ProgressReporter:
    """Prints search progress; pass an instance as the search progress callback."""

    def __init__(self, quiet: bool = False):
        """Initialize progress reporter.

        Args:
            quiet: Record reports without printing them
        """
        self.quiet = quiet
        self.start_time = time.time()
        self.reports: List[Dict[str, Any]] = []

    def __call__(self, level: int, open_count: int, closed_count: int) -> None:
        elapsed = time.time() - self.start_time
        self.reports.append({
            'level': level,
            'open': open_count,
            'closed': closed_count,
            'elapsed': elapsed,
        })
        if not self.quiet:
            print(f"Level {level} | open: {open_count} | closed: {closed_count} | "
                  f"elapsed: {format_duration(elapsed)}")
