"""Message handlers, keyed by the bot name they serve."""

from typing import Dict

from botmanager.bots.bot import MessageHandler
from botmanager.handlers import bad_joke

HANDLERS: Dict[str, MessageHandler] = {
    "badJokeBot": bad_joke.on_message,
}

__all__ = ["HANDLERS", "bad_joke"]
