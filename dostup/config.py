"""Status bar configuration loaded from an INI file."""

import configparser
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .vpn.exceptions import ConfigurationError

CONFIG_ENV = "DOSTUP_STATUSBAR_CONFIG"
DEFAULT_HOME = Path.home() / "dostup"

LAUNCH_STRATEGIES = ("script", "direct")
READINESS_MODES = ("fixed", "poll")


@dataclass
class Settings:
    home: Path
    control_script: Path
    core_binary: Path
    core_config_dir: Path
    terminal_script: Path
    process_name: str = "mihomo"
    poll_interval: float = 5.0
    grace_period: float = 5.0
    launch_strategy: str = "script"
    readiness: str = "fixed"
    api_base_url: str = "http://127.0.0.1:9090"
    list_timeout: float = 10.0
    refresh_timeout: float = 15.0
    healthcheck_timeout: float = 30.0
    detail_timeout: float = 10.0
    title: str = "Dostup VPN"
    host: str = "127.0.0.1"
    port: int = 8765


def _path(config: configparser.ConfigParser, option: str, default: Path) -> Path:
    value = config.get("paths", option, fallback=None)
    return Path(value).expanduser() if value else default


def _number(config: configparser.ConfigParser, section: str, option: str, default: float) -> float:
    try:
        value = config.getfloat(section, option, fallback=default)
    except ValueError as e:
        raise ConfigurationError(f"Invalid [{section}] {option}: {e}")
    if value <= 0:
        raise ConfigurationError(f"[{section}] {option} must be positive, got {value}")
    return value


def _choice(config: configparser.ConfigParser, section: str, option: str, default: str, choices) -> str:
    value = config.get(section, option, fallback=default).strip().lower()
    if value not in choices:
        raise ConfigurationError(
            f"Invalid [{section}] {option} '{value}'. Valid values are: {', '.join(choices)}"
        )
    return value


def load_settings(config_file: Optional[str] = None) -> Settings:
    """
    Load settings, falling back to defaults for anything missing.

    Args:
        config_file: INI file path; defaults to $DOSTUP_STATUSBAR_CONFIG
            or ~/dostup/statusbar/statusbar.conf

    Returns:
        Settings
    """
    if config_file is None:
        config_file = os.environ.get(CONFIG_ENV, str(DEFAULT_HOME / "statusbar" / "statusbar.conf"))

    config = configparser.ConfigParser()
    try:
        config.read(config_file)
    except configparser.Error as e:
        raise ConfigurationError(f"Could not parse {config_file}: {e}")

    home = _path(config, "home", DEFAULT_HOME)
    try:
        port = config.getint("ui", "port", fallback=8765)
    except ValueError as e:
        raise ConfigurationError(f"Invalid [ui] port: {e}")
    if not 1 <= port <= 65535:
        raise ConfigurationError(f"[ui] port must be between 1 and 65535, got {port}")

    return Settings(
        home=home,
        control_script=_path(config, "control_script", home / "Dostup_VPN.command"),
        core_binary=_path(config, "core_binary", home / "mihomo"),
        core_config_dir=_path(config, "core_config_dir", home),
        terminal_script=_path(config, "terminal_script", home / "statusbar" / "run_command.command"),
        process_name=config.get("process", "name", fallback="mihomo"),
        poll_interval=_number(config, "process", "poll_interval", 5.0),
        grace_period=_number(config, "process", "grace_period", 5.0),
        launch_strategy=_choice(config, "process", "launch_strategy", "script", LAUNCH_STRATEGIES),
        readiness=_choice(config, "process", "readiness", "fixed", READINESS_MODES),
        api_base_url=config.get("api", "base_url", fallback="http://127.0.0.1:9090"),
        list_timeout=_number(config, "api", "list_timeout", 10.0),
        refresh_timeout=_number(config, "api", "refresh_timeout", 15.0),
        healthcheck_timeout=_number(config, "api", "healthcheck_timeout", 30.0),
        detail_timeout=_number(config, "api", "detail_timeout", 10.0),
        title=config.get("ui", "title", fallback="Dostup VPN"),
        host=config.get("ui", "host", fallback="127.0.0.1"),
        port=port,
    )
