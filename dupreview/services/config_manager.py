import os
from pathlib import Path
from string import Template
from typing import Optional

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from dupreview.models.config import AppConfig

logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Configuration validation failed"""

    pass


class ConfigManager:
    """Loads the reviewer configuration and resolves its paths"""

    def __init__(
        self,
        config_path: str = "config/dupreview.yaml",
        vault_root: Optional[str] = None,
    ):
        self.config_path = Path(config_path)
        self.vault_override = vault_root
        self.env_loaded = False
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """Load and validate configuration.

        A vault passed on construction overrides the file's ``vault_root``;
        with an override the file itself is optional.
        """
        if self._config:
            return self._config

        # 1. Load environment
        if not self.env_loaded:  # pragma: no cover
            load_dotenv()
            self.env_loaded = True

        # 2. Check file existence
        if not self.config_path.exists():
            if self.vault_override:
                self._config = AppConfig(vault_root=self.vault_override)
                logger.info("config_defaults_used", vault_root=self.vault_override)
                return self._config
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        # 3. Read YAML
        try:
            raw_content = self.config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigValidationError(f"Failed to read config file: {e}")

        # 4. Substitute env vars
        try:
            template = Template(raw_content)
            substituted_content = template.safe_substitute(os.environ)
            config_data = yaml.safe_load(substituted_content) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(
                f"Failed to parse YAML or substitute variables: {e}"
            )

        if not isinstance(config_data, dict):
            raise ConfigValidationError("Configuration root must be a mapping")

        if self.vault_override:
            config_data["vault_root"] = self.vault_override

        # 5. Validate with Pydantic
        try:
            self._config = AppConfig(**config_data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid configuration: {e}")

        logger.info(
            "config_loaded",
            vault_root=self._config.vault_root,
            content_similarity=self._config.settings.enable_content_similarity,
        )
        return self._config
