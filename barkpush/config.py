from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from barkpush.models.push import EncryptionAlgorithm

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"

_ENV_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _substitute_env(match: re.Match[str]) -> str:
    name = match.group(1)
    if name not in os.environ:
        msg = f"config.yaml references ${{{name}}} but {name} is not set"
        raise KeyError(msg)
    return os.environ[name]


def expand_env_vars(config_str: str) -> str:
    """
    Replace ``${VAR}`` references with environment values.

    Comment lines are copied as-is, so a commented-out ``key: ${BARK_KEY}``
    does not require BARK_KEY to be set.

    Raises:
        KeyError: If a referenced variable is not set
    """
    return "\n".join(
        line if line.lstrip().startswith("#") else _ENV_REFERENCE.sub(_substitute_env, line)
        for line in config_str.split("\n")
    )


def load_config_from_yaml(config_path: str | None = None) -> dict[str, Any]:
    """
    Read config.yaml into a dict, with environment references expanded.

    Args:
        config_path: File to read; defaults to $CONFIG_PATH, then ./config.yaml

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If a variable is unset, the YAML is malformed, or the
            document is not a mapping
    """
    path = Path(config_path or os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH))
    if not path.is_file():
        msg = f"No config file at {path} (set CONFIG_PATH to point elsewhere)"
        raise FileNotFoundError(msg)

    try:
        document = yaml.safe_load(expand_env_vars(path.read_text()))
    except KeyError as e:
        msg = f"Cannot expand {path}: {e.args[0]}"
        raise ValueError(msg) from None
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in {path}: {e}"
        raise ValueError(msg) from None

    if not isinstance(document, dict):
        msg = f"{path} must hold a mapping at the top level, got {type(document).__name__}"
        raise ValueError(msg)

    return document


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
    )

    # Security
    auth_token: str  # Required, bearer token for the HTTP API
    environment: str = "development"

    # Push defaults (read-only per dispatch)
    push_api_version: Literal["v1", "v2"] = "v1"
    push_sound: str | None = None
    push_timeout_seconds: int = Field(
        default=10,
        description="Timeout for each request to a push gateway",
    )

    # Client-side encryption
    encryption_enabled: bool = False
    encryption_algorithm: EncryptionAlgorithm = EncryptionAlgorithm.AES256
    encryption_mode: Literal["CBC", "GCM"] = "CBC"
    encryption_key: str | None = None

    # CORS (browser extension callers)
    cors_enabled: bool = True
    cors_allowed_origins: list[str] = Field(default=[])

    # Observability
    log_level: str = "INFO"
    log_json: bool = True

    @model_validator(mode="after")
    def validate_encryption_config(self) -> Settings:
        """Require a key of the right length when encryption is enabled."""
        if not self.encryption_enabled:
            return self

        if not self.encryption_key:
            msg = "encryption.enabled=true requires encryption.key to be set in config.yaml"
            raise ValueError(msg)

        from barkpush.services.crypto import get_key_length

        expected = get_key_length(self.encryption_algorithm)
        if len(self.encryption_key.encode("utf-8")) != expected:
            msg = (
                f"encryption.key must be {expected} ASCII characters "
                f"for {self.encryption_algorithm.value}"
            )
            raise ValueError(msg)
        return self


# (section, key) in config.yaml -> Settings field
_YAML_FIELDS: dict[tuple[str, str], str] = {
    ("auth", "token"): "auth_token",
    ("push", "api_version"): "push_api_version",
    ("push", "sound"): "push_sound",
    ("push", "timeout_seconds"): "push_timeout_seconds",
    ("encryption", "enabled"): "encryption_enabled",
    ("encryption", "algorithm"): "encryption_algorithm",
    ("encryption", "mode"): "encryption_mode",
    ("encryption", "key"): "encryption_key",
    ("cors", "enabled"): "cors_enabled",
    ("cors", "allowed_origins"): "cors_allowed_origins",
    ("logging", "level"): "log_level",
    ("logging", "json"): "log_json",
}


def flatten_config(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Map nested config.yaml sections onto flat Settings fields.

    Keys missing from the file are left out so Settings defaults apply.
    """
    flat_config: dict[str, Any] = {}
    if "environment" in config_dict:
        flat_config["environment"] = config_dict["environment"]

    for (section, key), field in _YAML_FIELDS.items():
        values = config_dict.get(section)
        if isinstance(values, dict) and key in values:
            flat_config[field] = values[key]

    return flat_config


# Initialize global config manager for dynamic reloading
from barkpush.services.config_manager import ConfigManager  # noqa: E402


class _SettingsProxy:
    """
    Proxy to Settings that enables dynamic reloading.

    Checks for file changes on every attribute access and reloads if
    necessary, so code can keep reading ``settings.<field>`` directly.
    """

    def __init__(self, config_manager: ConfigManager):
        object.__setattr__(self, "_config_manager", config_manager)

    def __getattr__(self, name: str) -> object:
        config_manager = object.__getattribute__(self, "_config_manager")
        return getattr(config_manager.get_settings(), name)

    def __setattr__(self, name: str, value: object) -> None:
        msg = "Settings are read-only; use ConfigManager.reload() to reload from disk"
        raise AttributeError(msg)


_config_manager = ConfigManager()
settings = _SettingsProxy(_config_manager)  # type: ignore[assignment]


def get_config_manager() -> ConfigManager:
    """Get the global ConfigManager instance for explicit reloads."""
    return _config_manager
