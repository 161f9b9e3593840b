"""Configuration loading: YAML file -> immutable ManagerConfig snapshot."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml

from botmanager.errors import ConfigError

CONFIG_ENV_VAR = "BOT_MANAGER_CONFIG"
DEFAULT_CONFIG_FILE = "config.yml"


@dataclass(frozen=True)
class BotConfig:
    name: str
    user: str
    token: str
    channels: Tuple[str, ...] = ()
    create: bool = True
    auto_connect: bool = False
    log_file: Optional[str] = None
    reconnect: bool = True


@dataclass(frozen=True)
class ManagerConfig:
    bots: Mapping[str, BotConfig] = field(default_factory=lambda: MappingProxyType({}))
    log_file: Optional[str] = None
    monitor_interval: Optional[float] = None


def resolve_path(path: Optional[str], base_dir: Union[str, Path, None] = None) -> Optional[str]:
    """Resolve a relative path against base_dir (the working directory by default)."""
    if not path:
        return None
    p = Path(path)
    if p.is_absolute():
        return str(p)
    return str(Path(base_dir or os.getcwd()) / p)


def _parse_bot(name: str, raw: Any, base_dir) -> BotConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"bot {name!r}: definition must be a mapping")

    create = bool(raw.get("create", True))
    user = raw.get("user") or ""
    token = raw.get("token") or ""
    if create and (not user or not token):
        raise ConfigError(f"bot {name!r}: missing required user/token")

    channels = raw.get("channels") or []
    if isinstance(channels, str):
        channels = [channels]
    if not isinstance(channels, list):
        raise ConfigError(f"bot {name!r}: channels must be a list")

    return BotConfig(
        name=name,
        user=str(user),
        token=str(token),
        channels=tuple(str(c) for c in channels),
        create=create,
        auto_connect=bool(raw.get("autoConnect", False)),
        log_file=resolve_path(raw.get("logFile"), base_dir),
        reconnect=bool(raw.get("reconnect", True)),
    )


def parse_config(raw: Any, base_dir: Union[str, Path, None] = None) -> ManagerConfig:
    """Build a ManagerConfig from an already-decoded YAML document."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("config root must be a mapping")

    raw_bots = raw.get("bots") or {}
    if not isinstance(raw_bots, dict):
        raise ConfigError("'bots' must be a mapping of bot name to definition")

    bots: Dict[str, BotConfig] = {
        str(name): _parse_bot(str(name), definition, base_dir)
        for name, definition in raw_bots.items()
    }

    interval = raw.get("monitorInterval")
    if interval is not None:
        try:
            interval = float(interval)
        except (TypeError, ValueError):
            raise ConfigError(f"monitorInterval must be a number, got {interval!r}")
        if interval <= 0:
            interval = None

    return ManagerConfig(
        bots=MappingProxyType(bots),
        log_file=resolve_path(raw.get("logFile"), base_dir),
        monitor_interval=interval,
    )


def load_config(path: Optional[str] = None) -> ManagerConfig:
    """Read the YAML config from path, $BOT_MANAGER_CONFIG, or ./config.yml."""
    config_path = Path(path or os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE)
    if not config_path.exists():
        raise ConfigError(f"{config_path} does not exist.")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"{config_path}: invalid YAML: {e}") from e

    return parse_config(data)
