"""Command-line interface for minrpn.

This module provides CLI commands for solving a target and inspecting configuration.
"""

from .main import main_cli
from .commands import solve_command, config_command, ExpressionSolver
from .utils import setup_logging, save_results, ProgressReporter

__all__ = [
    'main_cli',
    'solve_command',
    'config_command',
    'ExpressionSolver',
    'setup_logging',
    'save_results',
    'ProgressReporter'
]
