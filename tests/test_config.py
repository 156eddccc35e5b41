"""Tests for configuration management system."""

import pytest
import tempfile
import shutil
from pathlib import Path
from omegaconf import DictConfig, OmegaConf

from minrpn.config import (
    ConfigManager, apply_updates, load_config, get_config, get_parameter, validate_config,
    ConfigValidationError
)
from minrpn.config.config_manager import CONFIG_DIR_ENV, default_config_dir
from minrpn.config.validators import check_config_consistency
from minrpn.cli.commands import build_search_config
from minrpn.core.data_models import NumericDomain, Operator
from minrpn.search.driver import StopPolicy

CONFIG_CONTENT = """
solver:
  name: "test-solver"
  timeout_seconds: 30.0

search:
  seeds: [3, 7]
  target: 100
  domain: integer
  operators: ["+", "-", "*", "/"]
  stop_policy: first_closed
  frontier: heap
  max_nodes_expanded: null
  relevance:
    min_relevant: null
    max_relevant: null
    max_relevant_factor: 3000
  progress:
    first_report: 100
    growth_factor: 1.5

rendering:
  style: infix
"""


@pytest.fixture
def temp_config_dir():
    """Create temporary configuration directory."""
    temp_dir = tempfile.mkdtemp()
    config_dir = Path(temp_dir) / "conf"
    config_dir.mkdir()

    with open(config_dir / "config.yaml", 'w') as f:
        f.write(CONFIG_CONTENT)

    yield config_dir

    shutil.rmtree(temp_dir)


class TestConfigManager:
    """Test ConfigManager functionality."""

    def test_config_manager_initialization(self, temp_config_dir):
        manager = ConfigManager(temp_config_dir)
        assert manager.config_dir.resolve() == temp_config_dir.resolve()
        assert manager.config is None

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigManager(tmp_path / "nowhere")

    def test_load_config_basic(self, temp_config_dir):
        manager = ConfigManager(temp_config_dir)
        config = manager.load_config()

        assert isinstance(config, DictConfig)
        assert config.solver.name == "test-solver"
        assert list(config.search.seeds) == [3, 7]
        assert config.search.target == 100

    def test_load_config_with_overrides(self, temp_config_dir):
        manager = ConfigManager(temp_config_dir)
        config = manager.load_config(overrides=[
            "search.target=42",
            "search.seeds=[2,5]",
            "search.frontier=level",
        ])

        assert config.search.target == 42
        assert list(config.search.seeds) == [2, 5]
        assert config.search.frontier == "level"

    def test_invalid_override_fails_validation(self, temp_config_dir):
        manager = ConfigManager(temp_config_dir)
        with pytest.raises(ConfigValidationError):
            manager.load_config(overrides=["search.stop_policy=sometimes"])

    def test_invalid_override_without_validation(self, temp_config_dir):
        manager = ConfigManager(temp_config_dir)
        config = manager.load_config(overrides=["search.stop_policy=sometimes"], validate=False)
        assert config.search.stop_policy == "sometimes"

    def test_get_parameter(self, temp_config_dir):
        manager = ConfigManager(temp_config_dir)
        manager.load_config()

        assert manager.get_parameter("search.relevance.max_relevant_factor") == 3000
        assert manager.get_parameter("search.nonexistent", "default") == "default"

    def test_get_parameter_before_load(self, temp_config_dir):
        manager = ConfigManager(temp_config_dir)
        with pytest.raises(RuntimeError):
            manager.get_parameter("search.target")

    def test_load_config_with_updates(self, temp_config_dir):
        manager = ConfigManager(temp_config_dir)
        config = manager.load_config(overrides=["search.target=42"],
                                     updates={"search.target": 7, "search.operators": ["/"],
                                              "rendering.style": "postfix"})

        assert config.search.target == 7
        assert list(config.search.operators) == ["/"]
        assert config.rendering.style == "postfix"

    def test_invalid_update_fails_validation(self, temp_config_dir):
        manager = ConfigManager(temp_config_dir)
        with pytest.raises(ConfigValidationError):
            manager.load_config(updates={"search.seeds": []})


class TestApplyUpdates:
    """Test typed updates on composed configurations."""

    def test_struct_config_accepts_new_keys(self):
        config = OmegaConf.create({"search": {"target": 1}})
        OmegaConf.set_struct(config, True)

        apply_updates(config, {"search.target": 5, "search.max_nodes_expanded": 9})

        assert config.search.target == 5
        assert config.search.max_nodes_expanded == 9
        # Struct mode is restored afterwards
        assert OmegaConf.is_struct(config)

    def test_lists_are_replaced(self):
        config = OmegaConf.create({"search": {"seeds": [69, 420]}})
        apply_updates(config, {"search.seeds": [2]})

        assert list(config.search.seeds) == [2]


class TestGlobalConfig:
    """Test module level helpers."""

    def test_load_sets_global(self, temp_config_dir):
        config = load_config(config_dir=temp_config_dir, overrides=["search.target=55"])

        assert get_config() is config
        assert get_parameter("search.target") == 55
        assert get_parameter("search.missing", 3) == 3

    def test_default_config_dir_from_environment(self, temp_config_dir, monkeypatch):
        monkeypatch.setenv(CONFIG_DIR_ENV, str(temp_config_dir))
        assert default_config_dir() == temp_config_dir

        config = load_config()
        assert config.solver.name == "test-solver"

    def test_project_config_is_valid(self, monkeypatch):
        monkeypatch.delenv(CONFIG_DIR_ENV, raising=False)
        project_conf = Path(__file__).parent.parent / "conf"

        config = load_config(config_dir=project_conf)
        assert config.search.target == 2017
        assert list(config.search.seeds) == [69, 420]


class TestValidation:
    """Test configuration validation."""

    @pytest.fixture
    def config(self):
        return OmegaConf.create(CONFIG_CONTENT)

    def test_valid(self, config):
        validate_config(config)

    @pytest.mark.parametrize("key,value", [
        ("solver.timeout_seconds", -1),
        ("search.seeds", []),
        ("search.seeds", [3, "x"]),
        ("search.seeds", [1.5]),
        ("search.target", 2.5),
        ("search.target", None),
        ("search.domain", "complex"),
        ("search.operators", []),
        ("search.operators", ["^"]),
        ("search.stop_policy", "never"),
        ("search.frontier", "stack"),
        ("search.max_nodes_expanded", 0),
        ("search.relevance.min_relevant", -1),
        ("search.relevance.max_relevant_factor", 0),
        ("search.progress.first_report", 0),
        ("search.progress.growth_factor", 0.5),
        ("rendering.style", "prefix"),
    ])
    def test_invalid(self, config, key, value):
        OmegaConf.update(config, key, value, merge=False)
        with pytest.raises(ConfigValidationError, match="Configuration validation failed"):
            validate_config(config)

    def test_window_must_be_ordered(self, config):
        config.search.relevance.min_relevant = 10
        config.search.relevance.max_relevant = 5
        with pytest.raises(ConfigValidationError):
            validate_config(config)

    def test_float_domain_accepts_fractions(self, config):
        config.search.domain = "float"
        config.search.seeds = [3]
        config.search.target = 0.75
        validate_config(config)

    def test_consistency_flags_target_outside_window(self, config):
        config.search.relevance.max_relevant = 50
        issues = check_config_consistency(config)

        assert len(issues) == 1
        assert "outside max_relevant" in issues[0]

    def test_consistency_ignores_seed_target(self, config):
        config.search.relevance.max_relevant = 5
        config.search.target = 7
        assert check_config_consistency(config) == []


class TestBuildSearchConfig:
    """Test translation of the configuration tree into a SearchConfig."""

    def test_build(self):
        config = OmegaConf.create(CONFIG_CONTENT)
        search_config = build_search_config(config)

        assert search_config.seeds == (3, 7)
        assert search_config.target == 100
        assert search_config.domain is NumericDomain.INTEGER
        assert search_config.operators == (Operator.PLUS, Operator.MINUS,
                                           Operator.TIMES, Operator.DIVIDE)
        assert search_config.stop_policy is StopPolicy.FIRST_CLOSED
        assert search_config.max_computation_time == 30.0
        assert search_config.resolved_max_relevant() == 21000

    def test_build_float(self):
        config = OmegaConf.create(CONFIG_CONTENT)
        config.search.domain = "float"
        config.search.target = 0.75
        config.search.operators = ["+", "/"]
        config.rendering.style = "postfix"
        search_config = build_search_config(config)

        assert search_config.target == 0.75
        assert search_config.seeds == (3.0, 7.0)
        assert isinstance(search_config.seeds[0], float)
        assert search_config.operators == (Operator.PLUS, Operator.DIVIDE)
        assert search_config.render_style == "postfix"
