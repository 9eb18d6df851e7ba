import os
from pathlib import Path
from string import Template
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from src.models.config import AppConfig
from src.utils.exceptions import ConfigValidationError

DEFAULT_CONFIG_PATH = "config/manga_proxy.yaml"


class ConfigManager:
    """Loads the YAML service configuration into an AppConfig.

    Loading does not log: logging is configured from the loaded config, so
    callers report ``config_loaded`` themselves once that is done.
    """

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        self.config_path = Path(config_path)
        self.env_loaded = False
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """Load and validate configuration"""
        if self._config:
            return self._config

        # 1. Load environment
        if not self.env_loaded:
            load_dotenv()
            self.env_loaded = True

        # 2. Check file existence
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        # 3. Read YAML
        try:
            raw_content = self.config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigValidationError(f"Failed to read config file: {e}")

        # 4. Substitute env vars
        try:
            substituted_content = Template(raw_content).safe_substitute(os.environ)
            config_data = yaml.safe_load(substituted_content) or {}
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigValidationError(
                f"Failed to parse YAML or substitute variables: {e}"
            )

        if not isinstance(config_data, dict):
            raise ConfigValidationError("Configuration root must be a mapping")

        # 5. Validate with Pydantic
        try:
            self._config = AppConfig(**config_data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid configuration: {e}")

        return self._config
