"""Bot: one chat-service connection plus its message pipeline.

Lifecycle:

    idle -> connecting -> listening -> disconnecting -> idle
    connecting -> idle (connect failed)
    listening -> dropped (transport lost the connection) -> listening (transport reconnected)

Every operation absorbs its own failures: errors are written to the bot's log
sink and the operation returns None. Callers never see exceptions from a
network operation.
"""

import asyncio
import inspect
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from botmanager.domain.models import BotPhase, BotState
from botmanager.errors import ConfigError
from botmanager.log_sink import JsonLogSink
from botmanager.ports.transport import (
    EVENT_CONNECTED,
    EVENT_DISCONNECTED,
    EVENT_MESSAGE,
    ChatTransport,
)

# handler(bot, channel, sender_state, message); may be sync or async
MessageHandler = Callable[["Bot", str, Dict[str, Any], str], Any]


async def noop_handler(bot, channel, sender_state, message):
    return None


class Bot:
    """Connection state machine around a ChatTransport."""

    def __init__(
        self,
        name: str,
        user: str,
        token: str,
        transport: ChatTransport,
        channels: Iterable[str] = (),
        handler: Optional[MessageHandler] = None,
        sink: Optional[JsonLogSink] = None,
    ):
        if not user or not token:
            raise ConfigError("Failed to create bot. Missing required info.")

        self.name = name
        self.user = user
        self.token = token
        self.channels = tuple(channels)
        self.transport = transport
        self._handler = handler or noop_handler
        self._sink = sink or JsonLogSink()
        self.state = BotState()

        # Bound once so off() always receives the exact objects given to on()
        self._subscriptions: Tuple[Tuple[str, Callable], ...] = (
            (EVENT_DISCONNECTED, self.on_disconnected),
            (EVENT_MESSAGE, self.on_message),
            (EVENT_CONNECTED, self.on_connected),
        )
        self._lifecycle_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------
    async def connect(self) -> Optional[Tuple[str, int]]:
        async with self._lifecycle_lock:
            if self.state.connected:
                self.log("connect", "connection not started: already connected")
                return None

            previous = self.state.phase
            self.state.phase = BotPhase.CONNECTING
            try:
                connection_info = await self.transport.connect()
            except asyncio.CancelledError:
                self.state.phase = previous
                raise
            except Exception as err:
                self.state.phase = previous if previous is BotPhase.DROPPED else BotPhase.IDLE
                self.error("connect", "connection not started: failed to connect", err)
                return None

            self.state.connected = True
            self.state.stamp("connected")
            self.state.phase = BotPhase.CONNECTED
            if self.state.listening:
                # still subscribed from before a drop
                self.state.phase = BotPhase.LISTENING
            else:
                self.listen()

            self.log("connect", "connection started", connection=connection_info)
            return connection_info

    async def disconnect(self) -> Optional[Tuple[str, int]]:
        async with self._lifecycle_lock:
            if not self.state.connected and not self.state.listening:
                self.log("disconnect", "connection not terminated: already disconnected")
                return None

            self.state.phase = BotPhase.DISCONNECTING
            # Unsubscribe first so the drop handler cannot fire for a requested close
            self.dontlisten()

            try:
                connection_info = await self.transport.disconnect()
            except Exception as err:
                self._mark_disconnected()
                self.error(
                    "disconnect",
                    "transport failed to disconnect; bot marked disconnected",
                    err,
                )
                return None

            self._mark_disconnected()
            self.log("disconnect", "connection terminated", connection=connection_info)
            return connection_info

    def listen(self) -> Optional["Bot"]:
        if self.state.listening:
            self.log("listen", "listen not started: already listening")
            return None

        if not self.state.connected:
            self.log("listen", "listen not started: client not connected")
            return None

        for event, handler in self._subscriptions:
            self.transport.on(event, handler)

        self.state.listening = True
        self.state.stamp("listen")
        self.state.phase = BotPhase.LISTENING
        return self

    def dontlisten(self) -> Optional["Bot"]:
        if not self.state.listening:
            self.log("dontlisten", "listen not stopped: not listening")
            return None

        for event, handler in self._subscriptions:
            self.transport.off(event, handler)

        self.state.listening = False
        self.state.stamp("dontlisten")
        if self.state.phase is BotPhase.LISTENING:
            self.state.phase = BotPhase.CONNECTED
        return self

    def _mark_disconnected(self):
        self.state.connected = False
        self.state.stamp("disconnected")
        self.state.phase = BotPhase.IDLE

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------
    async def say(self, channel: str, message: str) -> Any:
        if not self.state.connected:
            self.log("say", "message not sent: client not connected", channel=channel, message=message)
            return None

        if channel not in self.channels:
            self.log("say", "message not sent: not connected to channel", channel=channel, message=message)
            return None

        try:
            say_info = await self.transport.say(channel, message)
        except Exception as err:
            self.error("say", "message not sent: failed to send", err, channel=channel, message=message)
            return None

        self.state.messages_sent += 1
        self.state.stamp("message_sent")
        self.log("say", "message sent to channel", channel=channel, message=message)
        return say_info

    # ------------------------------------------------------------------
    # Transport event handlers
    # ------------------------------------------------------------------
    async def on_message(self, channel: str, sender_state: Dict[str, Any], message: str, is_self: bool = False):
        if is_self:
            return

        self.state.messages_seen += 1
        self.state.stamp("message_seen")
        self.log("onMessage", "message received", channel=channel, sender_state=sender_state, message=message)

        try:
            result = self._handler(self, channel, sender_state, message)
            if inspect.isawaitable(result):
                await result
        except Exception as err:
            self.error(
                "onMessage",
                "message handler failed",
                err,
                channel=channel,
                sender_state=sender_state,
                message=message,
            )

    async def on_disconnected(self, reason: Any = None):
        self.state.connected = False
        self.state.stamp("disconnected")
        self.state.phase = BotPhase.DROPPED
        self.error("onDisconnected", reason, ConnectionError("unexpectedly disconnected"))

    async def on_connected(self, address: Optional[str] = None, port: Optional[int] = None):
        self.state.connected = True
        self.state.stamp("connected")
        self.state.phase = BotPhase.LISTENING if self.state.listening else BotPhase.CONNECTED
        self.log("onConnected", "connected to server", address=address, port=port)

    # ------------------------------------------------------------------
    # Logging / status
    # ------------------------------------------------------------------
    def log(self, action: str, msg: Any, /, **extra: Any):
        self.state.stamp("log")
        self.state.logs += 1
        self._sink.log(action, msg, **{**extra, "bot": self.name})

    def error(self, action: str, msg: Any, /, err: Optional[BaseException] = None, **extra: Any):
        self.state.stamp("error")
        self.state.errors += 1
        self._sink.error(action, msg, err, **{**extra, "bot": self.name})

    def status(self) -> Dict[str, Any]:
        return self.state.to_dict()
