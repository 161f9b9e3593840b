from botmanager.bots.bot import Bot, MessageHandler, noop_handler
from botmanager.bots.manager import Manager, parse_action
from botmanager.bots.monitor import StatusMonitor

__all__ = [
    "Bot",
    "Manager",
    "MessageHandler",
    "StatusMonitor",
    "noop_handler",
    "parse_action",
]
