"""Main CLI entry point for minrpn."""

import sys
import argparse
import logging
from typing import List, Optional

from . import commands
from .utils import setup_logging


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog='minrpn',
        description='minrpn - find the shortest +-*/ expression that builds a number from seed constants',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  minrpn solve 2017                             # Build 2017 from the default seeds 69 and 420
  minrpn solve 100 --seeds 3,7 --style postfix  # Print the answer in reverse Polish notation
  minrpn solve 0.75 --seeds 3 --domain float    # Allow inexact division
  minrpn config show                            # Show current configuration
        """
    )

    # Global options
    parser.add_argument(
        '--config', '-c',
        type=str,
        help='Space separated configuration overrides (e.g., "search.frontier=level")'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='count',
        default=0,
        help='Increase verbosity (use -v or -vv)'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress all output except results'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        help='Output file for results (JSON format)'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands',
        metavar='COMMAND'
    )

    # Solve command
    solve_parser = subparsers.add_parser(
        'solve',
        help='Find the shortest expression for a target',
        description='Find the shortest expression for a target number'
    )

    solve_parser.add_argument(
        'target',
        type=str,
        nargs='?',
        help='Target number (default: search.target from the configuration)'
    )

    solve_parser.add_argument(
        '--seeds', '-s',
        type=str,
        help='Comma separated seed constants (e.g., 69,420)'
    )

    solve_parser.add_argument(
        '--domain',
        choices=['integer', 'float'],
        help='Numeric domain (default: integer)'
    )

    solve_parser.add_argument(
        '--operators',
        type=str,
        help='Allowed operators as one string (e.g., "+-*")'
    )

    solve_parser.add_argument(
        '--style',
        choices=['infix', 'postfix'],
        help='Output expression style (default: infix)'
    )

    solve_parser.add_argument(
        '--policy',
        choices=['first_closed', 'exhaustive_bound'],
        help='When to stop after the target was seen (default: first_closed)'
    )

    solve_parser.add_argument(
        '--frontier',
        choices=['heap', 'level'],
        help='Open set implementation (default: heap)'
    )

    solve_parser.add_argument(
        '--timeout', '-t',
        type=float,
        help='Timeout in seconds (default: none)'
    )

    solve_parser.add_argument(
        '--min-relevant',
        type=float,
        help='Discard values with |value| <= this bound'
    )

    solve_parser.add_argument(
        '--max-relevant',
        type=float,
        help='Discard values with |value| >= this bound'
    )

    # Config command
    config_parser = subparsers.add_parser(
        'config',
        help='Configuration management',
        description='Inspect solver configuration'
    )

    config_subparsers = config_parser.add_subparsers(
        dest='config_action',
        help='Configuration actions'
    )

    config_subparsers.add_parser(
        'show',
        help='Show current configuration'
    )

    config_subparsers.add_parser(
        'validate',
        help='Validate configuration'
    )

    return parser


def main_cli(args: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.quiet:
        log_level = logging.ERROR
    elif parsed_args.verbose == 0:
        log_level = logging.WARNING
    elif parsed_args.verbose == 1:
        log_level = logging.INFO
    else:
        log_level = logging.DEBUG

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    try:
        if not parsed_args.command:
            parser.print_help()
            return 1

        if parsed_args.command == 'solve':
            return commands.solve_command(parsed_args)
        if parsed_args.command == 'config':
            return commands.config_command(parsed_args)

        logger.error(f"Unknown command: {parsed_args.command}")
        return 1

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130  # Standard exit code for SIGINT
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        return 1


def main() -> None:
    """Entry point for console script."""
    sys.exit(main_cli())


if __name__ == '__main__':
    main()
