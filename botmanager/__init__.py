"""Bot Manager: supervised chat bots with structured JSON logging."""

from botmanager.errors import BotManagerError, ConfigError, JokeFetchError, UnknownActionError
from botmanager.log_sink import JsonLogSink
from botmanager.config import BotConfig, ManagerConfig, load_config, parse_config
from botmanager.domain.models import BotAction, BotPhase, BotState, LifecycleTimes
from botmanager.bots import Bot, Manager, StatusMonitor
from botmanager.adapters.discord_adapter import DiscordTransport
from botmanager.handlers import HANDLERS

__all__ = [
    "BotManagerError",
    "ConfigError",
    "JokeFetchError",
    "UnknownActionError",
    "JsonLogSink",
    "BotConfig",
    "ManagerConfig",
    "load_config",
    "parse_config",
    "BotAction",
    "BotPhase",
    "BotState",
    "LifecycleTimes",
    "Bot",
    "Manager",
    "StatusMonitor",
    "DiscordTransport",
    "HANDLERS",
]
