"""
Centralized configuration for passdeck.

All configuration is loaded from environment variables with sensible defaults.
The launcher front-end owns preference storage; it hands its values over via
``PASSDECK_*`` variables (or builds a ``PassConfig`` directly).

Usage:
    from passdeck.config import get_config
    cfg = get_config()
    print(cfg.cli_path)                  # "pass-cli"
    print(cfg.default_password_length)   # 20
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CLI_PATH = "pass-cli"
DEFAULT_PASSWORD_LENGTH = 20
DEFAULT_PASSWORD_TYPE = "random"
DEFAULT_CLI_TIMEOUT = 60.0

PASSWORD_TYPES = ("random", "passphrase")

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class PassConfig:
    """Top-level passdeck configuration."""

    # pass-cli executable (bare name resolves via the augmented PATH)
    cli_path: str = DEFAULT_CLI_PATH
    cli_timeout: float = DEFAULT_CLI_TIMEOUT

    # Password generator defaults
    default_password_length: int = DEFAULT_PASSWORD_LENGTH
    default_password_type: str = DEFAULT_PASSWORD_TYPE

    # Local list cache
    cache_dir: Path = field(default_factory=lambda: Path.home() / ".cache" / "passdeck")

    # Serve synthetic records instead of calling pass-cli (development only)
    mock_data: bool = False


# Singleton
_config: PassConfig | None = None


def get_config() -> PassConfig:
    """Get or create the singleton config from environment variables."""
    global _config
    if _config is not None:
        return _config
    _config = _load_from_env()
    return _config


def _parse_length(raw: str | None) -> int:
    if raw is None or not raw.strip():
        return DEFAULT_PASSWORD_LENGTH
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning("Ignoring invalid PASSDECK_PASSWORD_LENGTH %r", raw)
        return DEFAULT_PASSWORD_LENGTH
    if value <= 0:
        logger.warning("Ignoring non-positive PASSDECK_PASSWORD_LENGTH %r", raw)
        return DEFAULT_PASSWORD_LENGTH
    return value


def _parse_password_type(raw: str | None) -> str:
    value = (raw or "").strip().lower()
    if not value:
        return DEFAULT_PASSWORD_TYPE
    if value not in PASSWORD_TYPES:
        logger.warning("Ignoring unknown PASSDECK_PASSWORD_TYPE %r", raw)
        return DEFAULT_PASSWORD_TYPE
    return value


def _parse_timeout(raw: str | None) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_CLI_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid PASSDECK_CLI_TIMEOUT %r", raw)
        return DEFAULT_CLI_TIMEOUT
    return value if value > 0 else DEFAULT_CLI_TIMEOUT


def _load_from_env() -> PassConfig:
    """Load configuration from environment variables."""
    cache_dir = Path(
        os.environ.get("PASSDECK_CACHE_DIR", Path.home() / ".cache" / "passdeck")
    )

    return PassConfig(
        cli_path=os.environ.get("PASSDECK_CLI_PATH", "").strip() or DEFAULT_CLI_PATH,
        cli_timeout=_parse_timeout(os.environ.get("PASSDECK_CLI_TIMEOUT")),
        default_password_length=_parse_length(os.environ.get("PASSDECK_PASSWORD_LENGTH")),
        default_password_type=_parse_password_type(os.environ.get("PASSDECK_PASSWORD_TYPE")),
        cache_dir=cache_dir,
        mock_data=os.environ.get("PASSDECK_MOCK_DATA", "").strip().lower() in _TRUTHY,
    )


def reset_config() -> None:
    """Reset the singleton config (for testing)."""
    global _config
    _config = None
