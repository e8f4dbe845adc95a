"""API configuration manager: persisted file, then environment, then defaults."""
import json
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Optional

from ..constants import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE
from ..utils.exceptions import ConfigError
from ..utils.logger import app_home, get_logger

logger = get_logger()

DEFAULT_API_URL = "https://api.deepseek.com/v1/chat/completions"
DEFAULT_MODEL = "deepseek-chat"
PLACEHOLDER_API_KEY = "YOUR_DEEPSEEK_API_KEY"

# field name -> environment variable
ENV_VARS = {
    "endpoint": "DEEPSEEK_API_URL",
    "api_key": "DEEPSEEK_API_KEY",
    "model": "DEEPSEEK_MODEL",
}

DEFAULTS = {
    "endpoint": DEFAULT_API_URL,
    "api_key": PLACEHOLDER_API_KEY,
    "model": DEFAULT_MODEL,
}


@dataclass(frozen=True)
class ApiConfig:
    """Completion API configuration, built once at start-up and passed explicitly."""
    endpoint: str
    api_key: str
    model: str
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS

    def __repr__(self) -> str:
        return f"ApiConfig(endpoint={self.endpoint!r}, model={self.model!r})"


class ConfigManager:
    """Resolves API configuration from the persisted config file and the environment."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else app_home()
        self.config_file = self.config_dir / "config.json"

    def load_config(self) -> ApiConfig:
        """
        Resolve each API field independently.

        Order: persisted config file, environment variable, hardcoded default.
        Empty values are treated as missing at every level.
        """
        persisted = self._read_persisted()

        resolved = {}
        for field_name, env_var in ENV_VARS.items():
            value = persisted.get(field_name)
            if not value:
                value = os.getenv(env_var)
            if not value:
                value = DEFAULTS[field_name]
            resolved[field_name] = value

        extra = {}
        if "temperature" in persisted:
            extra["temperature"] = float(persisted["temperature"])
        if "max_tokens" in persisted:
            extra["max_tokens"] = int(persisted["max_tokens"])

        config = ApiConfig(**resolved, **extra)
        logger.debug(f"Resolved API configuration: {config!r}")
        return config

    def save_config(self, config: ApiConfig) -> None:
        """Persist configuration as JSON."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(asdict(config), f, indent=2)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration: {e}")

    def validate_config(self, config: ApiConfig) -> tuple[bool, str]:
        """Validate configuration values."""
        if not config.api_key or config.api_key == PLACEHOLDER_API_KEY:
            return False, "DeepSeek API key is required"

        if not config.endpoint.startswith(("http://", "https://")):
            return False, "API URL must start with http:// or https://"

        if not config.model:
            return False, "Model name is required"

        if not 0.0 <= config.temperature <= 2.0:
            return False, "Temperature must be between 0 and 2"

        if config.max_tokens < 1:
            return False, "Max tokens must be at least 1"

        return True, "Configuration is valid"

    def _read_persisted(self) -> Dict:
        """Read the persisted config file; a missing file yields no values."""
        if not self.config_file.exists():
            return {}

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load configuration: {e}")

        if not isinstance(data, dict):
            raise ConfigError("Configuration file must contain a JSON object")
        return data
