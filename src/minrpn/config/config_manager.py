"""Hydra-backed configuration loading for minrpn."""

import os
import logging
from typing import Any, Dict, List, Optional, Union
from pathlib import Path
from omegaconf import DictConfig, OmegaConf, open_dict
from hydra import compose, initialize_config_dir
from hydra.core.global_hydra import GlobalHydra

from .validators import validate_config

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "MINRPN_CONFIG_DIR"

# Most recently loaded configuration
_global_config: Optional[DictConfig] = None


def default_config_dir() -> Path:
    """Config directory from ``$MINRPN_CONFIG_DIR``, else ``conf/`` at the project root."""
    env_dir = os.environ.get(CONFIG_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    return Path(__file__).parent.parent.parent.parent / "conf"


def apply_updates(config: DictConfig, updates: Dict[str, Any]) -> None:
    """Set dotted keys on ``config`` in place, replacing whole values.

    Unlike Hydra override strings the values keep their Python types, so
    ``{"search.operators": ["/"]}`` needs no quoting.
    """
    with open_dict(config):
        for key, value in updates.items():
            OmegaConf.update(config, key, value, merge=False)


class ConfigManager:
    """Composes the solver configuration from a Hydra config directory."""

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        if config_dir is None:
            config_dir = default_config_dir()

        self.config_dir = Path(config_dir).resolve()
        self.config: Optional[DictConfig] = None

        if not self.config_dir.exists():
            raise FileNotFoundError(f"Configuration directory not found: {self.config_dir}")

    def load_config(self,
                    config_name: str = "config",
                    overrides: Optional[List[str]] = None,
                    updates: Optional[Dict[str, Any]] = None,
                    validate: bool = True) -> DictConfig:
        """Compose ``config_name`` and apply command line changes.

        Args:
            config_name: Name of the main config file (without .yaml)
            overrides: Hydra override strings such as ``search.target=100``
            updates: Typed dotted-key values applied after the overrides
            validate: Whether to validate the final configuration

        Returns:
            The composed configuration

        Raises:
            ConfigValidationError: If ``validate`` is set and a value is invalid
        """
        GlobalHydra.instance().clear()

        try:
            with initialize_config_dir(config_dir=str(self.config_dir), version_base=None):
                cfg = compose(config_name=config_name, overrides=overrides or [])
        except Exception as e:
            logger.error(f"Failed to compose configuration '{config_name}': {e}")
            raise

        if updates:
            apply_updates(cfg, updates)
        if validate:
            validate_config(cfg)

        self.config = cfg
        global _global_config
        _global_config = cfg

        logger.debug(f"Loaded {config_name} from {self.config_dir} "
                     f"(overrides={overrides or []}, updates={updates or {}})")
        return cfg

    def get_parameter(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as ``search.target``."""
        if self.config is None:
            raise RuntimeError("No configuration loaded. Call load_config() first.")
        return OmegaConf.select(self.config, key, default=default)


def load_config(config_name: str = "config",
                overrides: Optional[List[str]] = None,
                config_dir: Optional[Union[str, Path]] = None,
                validate: bool = True,
                updates: Optional[Dict[str, Any]] = None) -> DictConfig:
    """Load configuration using a fresh config manager."""
    manager = ConfigManager(config_dir)
    return manager.load_config(config_name, overrides=overrides, updates=updates,
                               validate=validate)


def get_config() -> Optional[DictConfig]:
    """Get the most recently loaded configuration, or None."""
    return _global_config


def get_parameter(key: str, default: Any = None) -> Any:
    """Look up a dotted key in the most recently loaded configuration."""
    config = get_config()
    if config is None:
        logger.warning("No global configuration loaded")
        return default
    return OmegaConf.select(config, key, default=default)
