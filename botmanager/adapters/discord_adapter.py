"""Discord adapter: ChatTransport implemented over discord.Client.

DiscordTransport is what a Bot drives. Each connect() builds a fresh
_GatewayClient (a thin discord.Client subclass) whose gateway events are
converted to transport events:

    on_ready / on_resumed -> "connected"(address, port)
    on_disconnect         -> "disconnected"(reason)
    on_message            -> "message"(channel, sender_state, text, is_self)

discord.py dispatches each gateway event in its own task, so one bot's slow
handler never holds up another event.
"""

import asyncio
import sys
from typing import Any, Callable, Dict, List, Optional, Tuple

import discord

from botmanager.ports.transport import (
    EVENT_CONNECTED,
    EVENT_DISCONNECTED,
    EVENT_MESSAGE,
    EVENTS,
)

GATEWAY_HOST = "gateway.discord.gg"
GATEWAY_PORT = 443

_CHAT_TYPES = (discord.MessageType.default, discord.MessageType.reply)


def _log(msg: str):
    print(msg, file=sys.stderr)


def channel_label(channel) -> str:
    """'#name' for named channels, the id otherwise (DMs)."""
    name = getattr(channel, "name", None)
    return f"#{name}" if name else str(channel.id)


def sender_state(message: discord.Message) -> Dict[str, Any]:
    author = message.author
    return {
        "id": str(author.id),
        "username": author.name,
        "display_name": author.display_name,
        "bot": author.bot,
        "message_type": "chat" if message.type in _CHAT_TYPES else message.type.name,
    }


class _GatewayClient(discord.Client):
    """discord.Client that forwards gateway events to its DiscordTransport."""

    def __init__(self, transport: "DiscordTransport", **discord_kwargs):
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(intents=intents, **discord_kwargs)
        self._transport = transport

    async def on_ready(self):
        await self._transport.emit(EVENT_CONNECTED, GATEWAY_HOST, GATEWAY_PORT)

    async def on_resumed(self):
        await self._transport.emit(EVENT_CONNECTED, GATEWAY_HOST, GATEWAY_PORT)

    async def on_disconnect(self):
        await self._transport.emit(EVENT_DISCONNECTED, "gateway connection lost")

    async def on_message(self, message: discord.Message):
        is_self = self.user is not None and message.author.id == self.user.id
        await self._transport.emit(
            EVENT_MESSAGE,
            channel_label(message.channel),
            sender_state(message),
            message.content,
            is_self,
        )


class DiscordTransport:
    """ChatTransport for one Discord bot account."""

    def __init__(
        self,
        token: str,
        *,
        reconnect: bool = True,
        ready_timeout: float = 30.0,
        **discord_kwargs,
    ):
        self._token = token
        self.reconnect = reconnect
        self.ready_timeout = ready_timeout
        self._discord_kwargs = discord_kwargs
        self._listeners: Dict[str, List[Callable]] = {event: [] for event in EVENTS}
        self._client: Optional[_GatewayClient] = None
        self._runner: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls, bot_config) -> "DiscordTransport":
        return cls(bot_config.token, reconnect=bot_config.reconnect)

    # ------------------------------------------------------------------
    # Event subscription
    # ------------------------------------------------------------------
    def on(self, event: str, handler: Callable):
        if event not in self._listeners:
            raise ValueError(f"unknown transport event: {event}")
        self._listeners[event].append(handler)

    def off(self, event: str, handler: Callable):
        listeners = self._listeners.get(event, [])
        if handler in listeners:
            listeners.remove(handler)

    async def emit(self, event: str, *args):
        for handler in list(self._listeners.get(event, [])):
            await handler(*args)

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------
    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._client.is_ready() and not self._client.is_closed()

    async def connect(self) -> Tuple[str, int]:
        if self.is_connected:
            raise RuntimeError("already connected")

        client = _GatewayClient(self, **self._discord_kwargs)
        self._client = client
        ready = None
        try:
            await client.login(self._token)
            self._runner = asyncio.create_task(client.connect(reconnect=self.reconnect))
            ready = asyncio.create_task(client.wait_until_ready())
            done, _ = await asyncio.wait(
                {ready, self._runner},
                timeout=self.ready_timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if ready not in done:
                if self._runner in done and self._runner.exception():
                    raise self._runner.exception()
                raise ConnectionError(f"gateway not ready after {self.ready_timeout}s")
        except BaseException:
            await self._teardown()
            raise
        finally:
            if ready is not None and not ready.done():
                ready.cancel()
                await asyncio.gather(ready, return_exceptions=True)

        return GATEWAY_HOST, GATEWAY_PORT

    async def disconnect(self) -> Tuple[str, int]:
        if self._client is None:
            raise RuntimeError("not connected")
        await self._teardown()
        return GATEWAY_HOST, GATEWAY_PORT

    async def _teardown(self) -> Optional[BaseException]:
        """Close the client and reap the gateway runner.

        Returns the exception the runner ended with, if any. Reading it here
        keeps a dead runner from surfacing as an unretrieved task exception.
        """
        client, runner = self._client, self._runner
        self._client, self._runner = None, None
        if client is not None:
            await client.close()
        if runner is None:
            return None
        if not runner.done():
            try:
                await asyncio.wait_for(runner, timeout=5.0)
            except (asyncio.TimeoutError, asyncio.CancelledError):
                runner.cancel()
                return None
            except Exception:
                pass
        if runner.cancelled():
            return None
        failure = runner.exception()
        if failure is not None:
            _log(f"[DiscordTransport] gateway runner ended with: {failure!r}")
        return failure

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------
    def resolve_channel(self, channel: str):
        """Find a text channel by '#name', bare name, or numeric id."""
        if self._client is None:
            return None
        key = channel.lstrip("#")
        if key.isdigit():
            return self._client.get_channel(int(key))
        for candidate in self._client.get_all_channels():
            if isinstance(candidate, discord.TextChannel) and candidate.name == key:
                return candidate
        return None

    async def say(self, channel: str, message: str) -> Tuple[str, str]:
        if not self.is_connected:
            raise ConnectionError("not connected")
        target = self.resolve_channel(channel)
        if target is None:
            raise LookupError(f"channel not found: {channel}")
        # Discord caps a message at 2000 characters
        text = message
        while text:
            await target.send(text[:2000])
            text = text[2000:]
        return channel, message
