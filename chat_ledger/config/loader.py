"""
Configuration management and loading.

Handles client settings from an optional YAML file and the API
settings read from environment variables (or a .env file).
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from dotenv import load_dotenv

from chat_ledger.core.pricing import DEFAULT_RATE

ENV_API_ROUTE = "OPEN_AI_API_ROUTE"
ENV_MODEL = "MODEL_SELECTED"
ENV_API_KEY = "OPENAI_API_KEY"


class ConfigurationError(Exception):
    """Raised when required settings are missing at the point of use."""


@dataclass(frozen=True)
class ApiSettings:
    """Remote chat completion endpoint settings.

    All three values are required, but their absence is only an error
    once a request is actually made.
    """
    endpoint: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None

    def missing(self) -> List[str]:
        """Names of the environment variables that are not set."""
        names = []
        if not self.endpoint:
            names.append(ENV_API_ROUTE)
        if not self.model:
            names.append(ENV_MODEL)
        if not self.api_key:
            names.append(ENV_API_KEY)
        return names

    def require(self) -> None:
        """Raise ConfigurationError if any setting is missing."""
        missing = self.missing()
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


@dataclass(frozen=True)
class ClientSettings:
    """Local settings for storage paths, context and pricing."""
    db_path: str = "chat_history.db"
    rates_path: str = "model_rates.csv"
    export_path: str = "usage_costs.csv"
    context_window: int = 5
    resend_prompt: bool = False
    default_rate: float = DEFAULT_RATE
    request_timeout: float = 60.0

    def __post_init__(self):
        """Validate numeric settings."""
        if self.context_window < 1:
            raise ValueError("context_window must be >= 1")
        if self.default_rate < 0:
            raise ValueError("default_rate must be >= 0")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")


def load_api_settings(env: Optional[Dict[str, str]] = None) -> ApiSettings:
    """Read API settings from the environment.

    A .env file in the working directory is loaded first; variables
    already present in the environment take precedence.

    Args:
        env: Mapping to read instead of os.environ (skips .env loading)

    Returns:
        ApiSettings, possibly incomplete
    """
    if env is None:
        load_dotenv(override=False)
        env = os.environ
    return ApiSettings(
        endpoint=env.get(ENV_API_ROUTE) or None,
        model=env.get(ENV_MODEL) or None,
        api_key=env.get(ENV_API_KEY) or None
    )


_PATH_KEYS = ('db_path', 'rates_path', 'export_path')


def load_client_settings(path: Optional[str] = None) -> ClientSettings:
    """Load and validate client settings from a YAML file.

    Unknown keys and wrongly typed values are rejected so a typo never
    silently falls back to a default.

    Args:
        path: Path to YAML settings file, or None for all defaults

    Returns:
        Validated ClientSettings object

    Raises:
        FileNotFoundError: If the settings file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If settings are invalid
    """
    if path is None:
        return ClientSettings()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in settings file {path}: {e}")

    if raw_config is None:
        return ClientSettings()
    if not isinstance(raw_config, dict):
        raise ValueError("Settings file must contain a mapping")

    allowed_keys = set(_PATH_KEYS) | {
        'context_window', 'resend_prompt', 'default_rate', 'request_timeout'
    }
    unknown_keys = set(raw_config.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown settings keys: {unknown_keys}")

    values = {}
    for key in _PATH_KEYS:
        if key in raw_config:
            value = raw_config[key]
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"'{key}' must be a non-empty string")
            values[key] = value

    if 'context_window' in raw_config:
        window = raw_config['context_window']
        if isinstance(window, bool) or not isinstance(window, int):
            raise ValueError("'context_window' must be an integer")
        values['context_window'] = window

    if 'resend_prompt' in raw_config:
        if not isinstance(raw_config['resend_prompt'], bool):
            raise ValueError("'resend_prompt' must be true or false")
        values['resend_prompt'] = raw_config['resend_prompt']

    for key in ('default_rate', 'request_timeout'):
        if key in raw_config:
            value = raw_config[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"'{key}' must be a number")
            values[key] = float(value)

    return ClientSettings(**values)
