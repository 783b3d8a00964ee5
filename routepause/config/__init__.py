"""
Configuration management for routepause.

Settings are loaded from TOML. The packaged ``defaults.toml`` is always read
first; an optional user file is merged over it section by section.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from routepause.errors import ConfigError

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent
DEFAULTS_PATH = CONFIG_DIR / "defaults.toml"


@dataclass
class DeviceSettings:
    """Which output device is managed and how route changes are discovered."""

    managed: str = "Background Music"
    poll_command: list[str] = field(default_factory=list)
    poll_interval: float = 1.0
    coalesce_delay: float = 0.05


@dataclass
class ControlSettings:
    """Retry, backoff and timeout policy for player control commands."""

    retry_count: int = 2
    retry_backoff: float = 0.2
    settle_timeout: float = 1.0
    settle_poll_interval: float = 0.1
    call_timeout: float = 10.0
    script_timeout: float = 3.0


@dataclass
class PlayerSettings:
    """Which backends are registered, and whether auto-pause starts enabled."""

    enabled: list[str] = field(default_factory=list)
    autopause: bool = True


@dataclass
class WebSettings:
    """HTTP query surface."""

    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 9077


@dataclass
class Settings:
    """Complete routepause configuration."""

    device: DeviceSettings = field(default_factory=DeviceSettings)
    control: ControlSettings = field(default_factory=ControlSettings)
    players: PlayerSettings = field(default_factory=PlayerSettings)
    web: WebSettings = field(default_factory=WebSettings)


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` over ``base`` one table deep."""
    merged = {key: dict(value) if isinstance(value, dict) else value for key, value in base.items()}
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def _positive(name: str, value: float, *, allow_zero: bool = False) -> float:
    if value < 0 or (value == 0 and not allow_zero):
        raise ConfigError(f"{name} must be {'>= 0' if allow_zero else '> 0'}, got {value}")
    return value


def _parse_device(data: dict[str, Any]) -> DeviceSettings:
    command = data.get("poll_command", [])
    if not isinstance(command, list) or not all(isinstance(arg, str) for arg in command):
        raise ConfigError("device.poll_command must be a list of strings")

    managed = str(data.get("managed", "")).strip()
    if not managed:
        raise ConfigError("device.managed must not be empty")

    return DeviceSettings(
        managed=managed,
        poll_command=list(command),
        poll_interval=_positive("device.poll_interval", float(data.get("poll_interval", 1.0))),
        coalesce_delay=_positive(
            "device.coalesce_delay", float(data.get("coalesce_delay", 0.05)), allow_zero=True
        ),
    )


def _parse_control(data: dict[str, Any]) -> ControlSettings:
    retry_count = int(data.get("retry_count", 2))
    if retry_count < 0:
        raise ConfigError(f"control.retry_count must be >= 0, got {retry_count}")

    return ControlSettings(
        retry_count=retry_count,
        retry_backoff=_positive(
            "control.retry_backoff", float(data.get("retry_backoff", 0.2)), allow_zero=True
        ),
        settle_timeout=_positive(
            "control.settle_timeout", float(data.get("settle_timeout", 1.0)), allow_zero=True
        ),
        settle_poll_interval=_positive(
            "control.settle_poll_interval", float(data.get("settle_poll_interval", 0.1))
        ),
        call_timeout=_positive("control.call_timeout", float(data.get("call_timeout", 10.0))),
        script_timeout=_positive("control.script_timeout", float(data.get("script_timeout", 3.0))),
    )


def _parse_players(data: dict[str, Any]) -> PlayerSettings:
    enabled = data.get("enabled", [])
    if not isinstance(enabled, list) or not all(isinstance(key, str) for key in enabled):
        raise ConfigError("players.enabled must be a list of backend names")

    return PlayerSettings(
        enabled=[key.lower() for key in enabled],
        autopause=bool(data.get("autopause", True)),
    )


def _parse_web(data: dict[str, Any]) -> WebSettings:
    return WebSettings(
        enabled=bool(data.get("enabled", True)),
        host=str(data.get("host", "127.0.0.1")),
        port=int(data.get("port", 9077)),
    )


def load_settings(config_path: Path | None = None) -> Settings:
    """
    Load settings from the packaged defaults and an optional user file.

    Args:
        config_path: Optional path to a user TOML file.

    Returns:
        Loaded Settings instance.

    Raises:
        ConfigError: If a file is missing, malformed or holds invalid values.
    """
    data = _read_toml(DEFAULTS_PATH)

    if config_path is not None:
        logger.debug("Loading config from %s", config_path)
        data = _merge(data, _read_toml(config_path))

    return Settings(
        device=_parse_device(data.get("device", {})),
        control=_parse_control(data.get("control", {})),
        players=_parse_players(data.get("players", {})),
        web=_parse_web(data.get("web", {})),
    )


# Global singleton instance (lazy loaded)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings (lazy loaded singleton).

    Returns:
        The Settings instance.
    """
    global _settings

    if _settings is None:
        _settings = load_settings()

    return _settings


def reload_settings(config_path: Path | None = None) -> Settings:
    """
    Force reload of the global settings.

    Returns:
        The newly loaded Settings instance.
    """
    global _settings
    _settings = load_settings(config_path)
    return _settings
