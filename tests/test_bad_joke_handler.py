"""Tests for the badJokeBot message handler."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from botmanager.errors import JokeFetchError
from botmanager.handlers import HANDLERS, bad_joke

from conftest import CHANNEL, records

CHAT = {"username": "viewer", "message_type": "chat"}


def _fake_session(payload):
    """aiohttp.ClientSession stand-in whose GET returns `payload` as JSON."""
    resp = MagicMock()
    resp.json = AsyncMock(return_value=payload)
    get_ctx = MagicMock()
    get_ctx.__aenter__ = AsyncMock(return_value=resp)
    get_ctx.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.get = MagicMock(return_value=get_ctx)
    session_ctx = MagicMock()
    session_ctx.__aenter__ = AsyncMock(return_value=session)
    session_ctx.__aexit__ = AsyncMock(return_value=False)
    return session_ctx, session


class TestGetJoke:
    @pytest.mark.asyncio
    async def test_returns_joke(self):
        session_ctx, session = _fake_session({"status": 200, "joke": "I'm reading a book on anti-gravity."})
        with patch("botmanager.handlers.bad_joke.aiohttp.ClientSession", return_value=session_ctx):
            joke = await bad_joke.get_joke()

        assert joke == "I'm reading a book on anti-gravity."
        url = session.get.call_args[0][0]
        assert url == bad_joke.JOKE_API_URL
        assert session.get.call_args[1]["headers"] == {"Accept": "application/json"}

    @pytest.mark.asyncio
    async def test_non_200_status_raises(self):
        session_ctx, _ = _fake_session({"status": 503})
        with patch("botmanager.handlers.bad_joke.aiohttp.ClientSession", return_value=session_ctx):
            with pytest.raises(JokeFetchError) as exc:
                await bad_joke.get_joke()
        assert exc.value.status == 503


class TestOnMessage:
    def _bot(self):
        bot = MagicMock()
        bot.say = AsyncMock(return_value=(CHANNEL, "joke"))
        return bot

    @pytest.mark.asyncio
    async def test_says_joke(self):
        bot = self._bot()
        with patch("botmanager.handlers.bad_joke.get_joke", AsyncMock(return_value="a joke")):
            result = await bad_joke.on_message(bot, CHANNEL, CHAT, "tell me a joke")

        bot.say.assert_awaited_once_with(CHANNEL, "a joke")
        assert result == (CHANNEL, "joke")

    @pytest.mark.asyncio
    async def test_ignores_messages_without_keyword(self):
        bot = self._bot()
        fetch = AsyncMock()
        with patch("botmanager.handlers.bad_joke.get_joke", fetch):
            await bad_joke.on_message(bot, CHANNEL, CHAT, "hello there")
        fetch.assert_not_awaited()
        bot.say.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ignores_non_chat(self):
        bot = self._bot()
        fetch = AsyncMock()
        with patch("botmanager.handlers.bad_joke.get_joke", fetch):
            await bad_joke.on_message(bot, CHANNEL, {"message_type": "pins_add"}, "joke")
        fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fetch_failure_logged(self):
        bot = self._bot()
        with patch("botmanager.handlers.bad_joke.get_joke", AsyncMock(side_effect=TimeoutError())):
            result = await bad_joke.on_message(bot, CHANNEL, CHAT, "joke please")

        assert result is None
        bot.say.assert_not_awaited()
        bot.error.assert_called_once()
        args, kwargs = bot.error.call_args
        assert args[:2] == ("onMessage", "error getting joke")
        assert kwargs["channel"] == CHANNEL
        assert kwargs["message"] == "joke please"

    @pytest.mark.asyncio
    async def test_fetch_failure_through_real_bot(self, make_bot, transport, sink):
        bot = make_bot(handler=HANDLERS["badJokeBot"])
        await bot.connect()

        with patch("botmanager.handlers.bad_joke.get_joke", AsyncMock(side_effect=JokeFetchError(500))):
            await transport.emit("message", CHANNEL, CHAT, "joke", False)

        assert bot.state.messages_seen == 1
        assert bot.state.errors == 1
        assert [r[0] for r in records(sink, "error")] == ["onMessage"]
        transport.say.assert_not_awaited()
