"""Transport port: the chat-service client a Bot drives."""

from typing import Any, Awaitable, Callable, Protocol, Tuple

EVENT_CONNECTED = "connected"  # handler(address, port)
EVENT_DISCONNECTED = "disconnected"  # handler(reason)
EVENT_MESSAGE = "message"  # handler(channel, sender_state, text, is_self)

EVENTS = (EVENT_CONNECTED, EVENT_DISCONNECTED, EVENT_MESSAGE)

EventHandler = Callable[..., Awaitable[None]]


class ChatTransport(Protocol):
    """Opaque chat-protocol client.

    Implementations own the wire protocol and any reconnect policy chosen at
    construction. Failures are raised as exceptions; the Bot contains them.
    """

    async def connect(self) -> Tuple[str, int]:
        """Open the connection and return (server, port)."""

    async def disconnect(self) -> Tuple[str, int]:
        """Close the connection and return (server, port)."""

    async def say(self, channel: str, message: str) -> Any:
        """Send a message to a channel and return transport-specific send info."""

    def on(self, event: str, handler: EventHandler) -> None:
        """Subscribe handler to event."""

    def off(self, event: str, handler: EventHandler) -> None:
        """Unsubscribe a previously subscribed handler."""
