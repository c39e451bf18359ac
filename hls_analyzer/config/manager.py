"""
Configuration management for HLS analyzer.

This module handles loading, validating, and managing configuration from YAML
files. The FFPROBE_SERVICE_URL environment variable overrides the configured
probe service URL.
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from hls_analyzer.config.models import AnalyzerConfig, ProbeConfig
from hls_analyzer.utils import ConfigurationError, get_logger

logger = get_logger(__name__)

SERVICE_URL_ENV = "FFPROBE_SERVICE_URL"


class ConfigManager:
    """Manages analyzer configuration."""

    DEFAULT_CONFIG_LOCATIONS = [
        Path.home() / ".hls-analyzer.yaml",
        Path.home() / ".config" / "hls-analyzer" / "config.yaml",
        Path.cwd() / ".hls-analyzer.yaml",
    ]

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Optional path to configuration file
        """
        self.config_path = config_path
        self._config: Optional[AnalyzerConfig] = None

    @property
    def config(self) -> AnalyzerConfig:
        """
        Get current configuration, loading it if necessary.

        Returns:
            AnalyzerConfig instance

        Raises:
            ConfigurationError: If configuration cannot be loaded
        """
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self, config_path: Optional[Path] = None) -> AnalyzerConfig:
        """
        Load configuration from file or create default.

        Args:
            config_path: Optional path to configuration file

        Returns:
            Loaded AnalyzerConfig

        Raises:
            ConfigurationError: If configuration file is invalid
        """
        path = config_path or self.config_path

        if path:
            if not path.exists():
                raise ConfigurationError(f"Configuration file not found: {path}")
            config = self._load_from_file(path)
        else:
            config = None
            for default_path in self.DEFAULT_CONFIG_LOCATIONS:
                if default_path.exists():
                    logger.info(f"Loading configuration from {default_path}")
                    config = self._load_from_file(default_path)
                    break
            if config is None:
                logger.debug("No configuration file found, using defaults")
                config = AnalyzerConfig.create_default()

        self._config = self._apply_environment(config)
        return self._config

    def _load_from_file(self, path: Path) -> AnalyzerConfig:
        """
        Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            Loaded AnalyzerConfig

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration: {e}")

        if data is None:
            raise ConfigurationError(f"Configuration file is empty: {path}")
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {path}")

        try:
            config = AnalyzerConfig(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {path}: {e}")

        logger.debug(f"Successfully loaded configuration from {path}")
        return config

    def _apply_environment(self, config: AnalyzerConfig) -> AnalyzerConfig:
        """Apply environment variable overrides."""
        service_url = os.environ.get(SERVICE_URL_ENV)
        if service_url:
            try:
                config.probe = ProbeConfig(
                    **{**config.probe.model_dump(), "service_url": service_url}
                )
            except ValidationError as e:
                raise ConfigurationError(f"Invalid {SERVICE_URL_ENV}: {e}")
            logger.debug(f"Probe service URL taken from {SERVICE_URL_ENV}")
        return config

    def save(self, path: Optional[Path] = None, config: Optional[AnalyzerConfig] = None) -> None:
        """
        Save configuration to file.

        Args:
            path: Path to save configuration (uses default if None)
            config: Configuration to save (uses current if None)

        Raises:
            ConfigurationError: If configuration cannot be saved
        """
        cfg = config or self.config
        save_path = path or self.config_path or self.DEFAULT_CONFIG_LOCATIONS[0]

        try:
            save_path.parent.mkdir(parents=True, exist_ok=True)
            data = cfg.model_dump(mode="json")

            with open(save_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, indent=2)

            logger.info(f"Configuration saved to {save_path}")

        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {e}")

    def init_default_config(self, path: Optional[Path] = None, force: bool = False) -> Path:
        """
        Initialize default configuration file.

        Args:
            path: Path to create configuration file (uses default if None)
            force: Overwrite existing file

        Returns:
            Path to created configuration file

        Raises:
            ConfigurationError: If file already exists and force=False
        """
        target_path = path or self.DEFAULT_CONFIG_LOCATIONS[0]

        if target_path.exists() and not force:
            raise ConfigurationError(
                f"Configuration file already exists: {target_path}. Use force=True to overwrite."
            )

        self.save(target_path, AnalyzerConfig.create_default())

        logger.info(f"Default configuration created at {target_path}")
        return target_path

    def reload(self) -> AnalyzerConfig:
        """
        Reload configuration from file.

        Returns:
            Reloaded AnalyzerConfig
        """
        self._config = None
        return self.load()


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_path: Optional[Path] = None) -> ConfigManager:
    """
    Get global configuration manager instance.

    Args:
        config_path: Optional path to configuration file

    Returns:
        ConfigManager instance
    """
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager(config_path)

    return _config_manager
