"""Shared fixtures: an in-memory transport and a recording log sink."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from botmanager.bots.bot import Bot
from botmanager.log_sink import JsonLogSink
from botmanager.ports.transport import EVENTS

CHANNEL = "#c"


class FakeTransport:
    """ChatTransport double: AsyncMock network calls, real subscription lists."""

    def __init__(self):
        self.connect = AsyncMock(return_value=("irc.example.com", 443))
        self.disconnect = AsyncMock(return_value=("irc.example.com", 443))
        self.say = AsyncMock(side_effect=lambda channel, message: (channel, message))
        self.listeners = {event: [] for event in EVENTS}
        self.on_calls = 0
        self.off_calls = 0

    def on(self, event, handler):
        self.on_calls += 1
        self.listeners[event].append(handler)

    def off(self, event, handler):
        self.off_calls += 1
        self.listeners[event].remove(handler)

    async def emit(self, event, *args):
        for handler in list(self.listeners[event]):
            await handler(*args)


def records(sink_mock, method="log"):
    """[(action, msg, extra), ...] recorded on a MagicMock sink."""
    calls = getattr(sink_mock, method).call_args_list
    return [(c.args[0], c.args[1], c.kwargs) for c in calls]


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def sink():
    return MagicMock(spec=JsonLogSink)


@pytest.fixture
def make_bot(transport, sink):
    def _make(handler=None, channels=(CHANNEL,)):
        return Bot(
            name="testBot",
            user="u",
            token="t",
            transport=transport,
            channels=channels,
            handler=handler,
            sink=sink,
        )

    return _make
