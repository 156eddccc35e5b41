"""Tests for CLI interface."""

import json
import pytest
from pathlib import Path
from unittest.mock import patch

from minrpn.cli.main import main_cli, create_parser
from minrpn.cli.commands import ExpressionSolver, _solve_updates, parse_number
from minrpn.cli.utils import (
    save_results, format_duration, parse_number_list, ProgressReporter
)
from minrpn.config.config_manager import CONFIG_DIR_ENV

PROJECT_CONF = Path(__file__).parent.parent / "conf"


@pytest.fixture(autouse=True)
def project_config(monkeypatch):
    """Point config loading at the project's conf/ directory."""
    monkeypatch.setenv(CONFIG_DIR_ENV, str(PROJECT_CONF))


class TestCLIParser:
    """Test CLI argument parsing."""

    def test_create_parser(self):
        parser = create_parser()
        assert parser.prog == 'minrpn'

    def test_solve_command_parsing(self):
        parser = create_parser()

        args = parser.parse_args(['solve', '2017'])
        assert args.command == 'solve'
        assert args.target == '2017'
        assert args.seeds is None
        assert args.timeout is None

        args = parser.parse_args([
            'solve', '100',
            '--seeds', '3,7',
            '--domain', 'float',
            '--operators', '+*',
            '--style', 'postfix',
            '--policy', 'exhaustive_bound',
            '--frontier', 'level',
            '--timeout', '5',
            '--max-relevant', '500',
        ])
        assert args.seeds == '3,7'
        assert args.domain == 'float'
        assert args.operators == '+*'
        assert args.style == 'postfix'
        assert args.policy == 'exhaustive_bound'
        assert args.frontier == 'level'
        assert args.timeout == 5.0
        assert args.max_relevant == 500.0

    def test_target_is_optional(self):
        args = create_parser().parse_args(['solve'])
        assert args.target is None

    def test_invalid_choice(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(['solve', '10', '--frontier', 'stack'])

    def test_config_command_parsing(self):
        parser = create_parser()

        args = parser.parse_args(['config', 'show'])
        assert args.command == 'config'
        assert args.config_action == 'show'

        args = parser.parse_args(['config', 'validate'])
        assert args.config_action == 'validate'

    def test_global_options(self):
        parser = create_parser()
        args = parser.parse_args([
            '--verbose', '--verbose',
            '--config', 'search.frontier=level',
            '--output', 'results.json',
            'solve', '10'
        ])

        assert args.verbose == 2
        assert args.config == 'search.frontier=level'
        assert args.output == 'results.json'


class TestSolveUpdates:
    """Test translation of solve options into configuration values."""

    def test_updates(self):
        args = create_parser().parse_args([
            '--config', 'search.frontier=level rendering.style=postfix',
            'solve', '100', '--seeds', '3, 7', '--operators', '+-/', '--timeout', '2'
        ])

        assert _solve_updates(args) == {
            'search.target': 100,
            'search.seeds': [3, 7],
            'search.operators': ['+', '-', '/'],
            'solver.timeout_seconds': 2.0,
        }

    def test_fractional_numbers(self):
        args = create_parser().parse_args(['solve', '0.75', '--seeds', '3,1.5'])
        updates = _solve_updates(args)

        assert updates['search.target'] == 0.75
        assert updates['search.seeds'] == [3, 1.5]
        assert isinstance(updates['search.seeds'][0], int)

    def test_no_options(self):
        args = create_parser().parse_args(['solve'])
        assert _solve_updates(args) == {}

    def test_parse_number_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_number("twelve")

    def test_updates_win_over_config_overrides(self):
        solver = ExpressionSolver(['search.frontier=level', 'search.target=50'],
                                  {'search.target': 10, 'search.seeds': [2]})

        assert solver.search_config.target == 10
        assert solver.search_config.seeds == (2,)
        assert solver.search_config.frontier == 'level'

    def test_division_only_operator_update(self):
        solver = ExpressionSolver(config_updates={'search.operators': ['/'],
                                                  'search.seeds': [8], 'search.target': 1})
        result = solver.solve()

        assert result['success'] is True
        assert result['expression'] == "(8/8)"


class TestCLIUtils:
    """Test CLI utility functions."""

    def test_parse_number_list(self):
        assert parse_number_list("69,420") == ['69', '420']
        assert parse_number_list(" 3 , 7 ") == ['3', '7']
        assert parse_number_list("0.5 2") == ['0.5', '2']

    def test_save_results(self, tmp_path):
        import numpy as np

        output = tmp_path / "nested" / "results.json"
        save_results({'target': np.int64(10), 'discoveries': [(4, "x")]}, output)

        with open(output) as f:
            data = json.load(f)
        assert data == {'target': 10, 'discoveries': [[4, "x"]]}

    def test_format_duration(self):
        assert format_duration(0.0005) == "500.0µs"
        assert format_duration(0.5) == "500.0ms"
        assert format_duration(5.5) == "5.50s"
        assert format_duration(65.5) == "1m 5.5s"
        assert format_duration(3665.5) == "1h 1m 5.5s"

    def test_progress_reporter(self, capsys):
        reporter = ProgressReporter(quiet=False)
        reporter(3, 120, 45)

        assert len(reporter.reports) == 1
        assert reporter.reports[0]['level'] == 3
        assert reporter.reports[0]['open'] == 120
        assert "Level 3 | open: 120 | closed: 45" in capsys.readouterr().out

    def test_progress_reporter_quiet(self, capsys):
        reporter = ProgressReporter(quiet=True)
        reporter(1, 2, 3)

        assert len(reporter.reports) == 1
        assert capsys.readouterr().out == ""


class TestExpressionSolver:
    """Test the configuration backed solver."""

    def test_solve(self):
        solver = ExpressionSolver(['search.target=10', 'search.seeds=[2]'])
        result = solver.solve()

        assert result['success'] is True
        assert result['cost'] == 4
        assert result['seeds'] == [2]
        assert result['domain'] == 'integer'

    @patch('minrpn.cli.commands.load_config')
    def test_load_failure_propagates(self, mock_load_config):
        mock_load_config.side_effect = FileNotFoundError("no conf")

        with pytest.raises(FileNotFoundError):
            ExpressionSolver()


class TestMainCLI:
    """End-to-end runs through main_cli."""

    def test_no_command(self, capsys):
        assert main_cli([]) == 1

    def test_solve_success(self, capsys, tmp_path):
        output = tmp_path / "result.json"
        exit_code = main_cli(['--output', str(output), 'solve', '10', '--seeds', '2'])

        assert exit_code == 0
        out = capsys.readouterr().out
        assert "Terms: 4" in out
        assert "10 = " in out

        with open(output) as f:
            data = json.load(f)
        assert data['success'] is True
        assert data['cost'] == 4
        assert data['target'] == 10
        assert data['solver_version']

    def test_solve_prints_json_without_output(self, capsys):
        exit_code = main_cli(['--quiet', 'solve', '489', '--seeds', '69,420'])

        assert exit_code == 0
        data = json.loads(capsys.readouterr().out)
        assert data['expression'] == "(420+69)"

    def test_solve_postfix_float(self, capsys, tmp_path):
        output = tmp_path / "result.json"
        exit_code = main_cli(['-o', str(output), 'solve', '0.75', '--seeds', '3',
                              '--domain', 'float', '--style', 'postfix'])

        assert exit_code == 0
        with open(output) as f:
            data = json.load(f)
        assert data['cost'] == 4
        assert data['render_style'] == 'postfix'
        assert data['domain'] == 'float'

    def test_solve_unreachable(self, capsys, tmp_path):
        exit_code = main_cli(['-o', str(tmp_path / "r.json"), 'solve', '7', '--seeds', '2',
                              '--operators', '+-*', '--max-relevant', '10'])

        assert exit_code == 1
        assert "Goal can't be reached (exhausted)" in capsys.readouterr().out

    def test_solve_invalid_configuration(self):
        assert main_cli(['--config', 'search.frontier=stack', 'solve', '10']) == 1

    def test_config_show(self, capsys):
        assert main_cli(['config', 'show']) == 0
        out = capsys.readouterr().out
        assert "Current Configuration:" in out
        assert "target: 2017" in out

    def test_config_validate(self, capsys):
        assert main_cli(['config', 'validate']) == 0
        assert "Configuration is valid" in capsys.readouterr().out

    def test_config_validate_failure(self, capsys):
        assert main_cli(['--config', 'rendering.style=prefix', 'config', 'validate']) == 1
        assert "Configuration validation failed" in capsys.readouterr().out
