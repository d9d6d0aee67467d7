"""Validator configuration with environment variable support.

All settings can be configured via environment variables with the HOOKSEAL_ prefix.
Example: HOOKSEAL_MAX_AGE_SECONDS=120 narrows the freshness window to two minutes.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


def load_config_from_file(path: str | Path) -> dict[str, Any]:
    """Load configuration from a YAML or TOML file.

    If the file has a top-level ``validator`` table, only that table is
    returned; otherwise the whole document is.

    Args:
        path: Path to the configuration file (.yaml, .yml, or .toml)

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config file has encoding errors, invalid syntax, or unsupported format
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"Config file encoding error in {path}: {e}") from e

    try:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content) or {}
        elif path.suffix == ".toml":
            data = tomllib.loads(content)
        else:
            raise ValueError(f"Unsupported config format: {path.suffix}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    section = data.get("validator", data)
    if not isinstance(section, dict):
        raise ValueError(f"'validator' section in {path} must be a mapping")
    return section


class ValidatorSettings(BaseSettings):
    """Webhook validator configuration.

    All settings can be overridden via environment variables:
    - HOOKSEAL_SECRET: Shared HMAC secret
    - HOOKSEAL_SIGNATURE_HEADER_NAME: Header carrying the signature
    - HOOKSEAL_TIMESTAMP_HEADER_NAME: Header carrying the signing time
    - HOOKSEAL_MAX_AGE_SECONDS: Freshness window (seconds)
    - HOOKSEAL_SIGNATURE_ENCODING: base64 or hex
    - HOOKSEAL_REQUIRE_TIMESTAMP: Reject requests without a timestamp
    - etc.
    """

    model_config = SettingsConfigDict(
        env_prefix="HOOKSEAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    secret: SecretStr | None = Field(
        default=None,
        description="Shared HMAC secret. Never logged or displayed.",
    )
    signature_header_name: str = Field(
        default="x-signature",
        min_length=1,
        description="Header carrying the signature (case-insensitive).",
    )
    timestamp_header_name: str = Field(
        default="x-timestamp",
        min_length=1,
        description="Header carrying the ISO-8601 signing time (case-insensitive).",
    )
    max_age_seconds: float = Field(
        default=300.0,
        ge=0,
        description="Maximum absolute difference between timestamp and now (seconds).",
    )
    signature_encoding: Literal["base64", "hex"] = Field(
        default="base64",
        description="Encoding of the HMAC-SHA256 digest agreed with the sender.",
    )
    signature_prefix: str = Field(
        default="",
        description="Prefix stripped from the signature header (e.g. 'sha256=').",
    )
    require_timestamp: bool = Field(
        default=True,
        description="Reject requests without a timestamp header.",
    )
    max_body_size: int | None = Field(
        default=None,
        ge=0,
        description="Maximum raw body size (bytes). None disables the check.",
    )
    debug: bool = Field(
        default=False,
        description="Log signatures and payload previews. Never enable in production.",
    )
    log_level: str = Field(
        default="info",
        description="Log level (debug, info, warning, error).",
    )

    def secret_bytes(self) -> bytes | None:
        """Return the secret as bytes, or None when unset."""
        if self.secret is None:
            return None
        return self.secret.get_secret_value().encode("utf-8")

    def to_display_dict(self) -> dict[str, Any]:
        """Export current configuration for display, with the secret masked."""
        return {
            "secret": "********" if self.secret else None,
            "signature_header_name": self.signature_header_name,
            "timestamp_header_name": self.timestamp_header_name,
            "max_age_seconds": self.max_age_seconds,
            "signature_encoding": self.signature_encoding,
            "signature_prefix": self.signature_prefix,
            "require_timestamp": self.require_timestamp,
            "max_body_size": self.max_body_size,
            "debug": self.debug,
            "log_level": self.log_level,
        }


_config: ValidatorSettings | None = None


def get_config() -> ValidatorSettings:
    """Get the global configuration instance.

    Returns a cached instance of ValidatorSettings that reads from environment variables.
    The instance is created once and cached for the lifetime of the process.

    To reload config (e.g., in tests), call clear_config() first.
    """
    global _config
    if _config is None:
        _config = ValidatorSettings()
    return _config


def clear_config() -> None:
    """Clear the cached configuration.

    Call this to force reloading of environment variables on next get_config() call.
    Useful for testing.
    """
    global _config
    _config = None
