"""Exception taxonomy for the bot manager."""


class BotManagerError(Exception):
    """Base class for all bot manager errors."""


class ConfigError(BotManagerError):
    """Configuration is missing or invalid. Fatal at startup."""


class UnknownActionError(BotManagerError):
    """An exec() action name is not one of the supported bot actions."""

    def __init__(self, action: str):
        super().__init__(f"unknown action: {action!r}")
        self.action = action


class JokeFetchError(BotManagerError):
    """The joke API answered with a non-200 status."""

    def __init__(self, status):
        super().__init__(f"Error getting joke: status {status}")
        self.status = status
