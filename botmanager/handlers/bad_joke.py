"""badJokeBot handler: answers chat messages mentioning "joke" with a dad joke."""

from typing import Any, Dict

import aiohttp

from botmanager.errors import JokeFetchError

JOKE_API_URL = "https://icanhazdadjoke.com"
JOKE_TIMEOUT_SECONDS = 10


async def get_joke(url: str = JOKE_API_URL, timeout: float = JOKE_TIMEOUT_SECONDS) -> str:
    """Fetch one joke. Raises JokeFetchError on a non-200 payload status."""
    async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
        async with session.get(url, headers={"Accept": "application/json"}) as resp:
            payload = await resp.json(content_type=None)

    status = payload.get("status")
    if status != 200:
        raise JokeFetchError(status)
    return payload["joke"]


async def on_message(bot, channel: str, sender_state: Dict[str, Any], message: str):
    if sender_state.get("message_type") != "chat":
        return None

    if "joke" not in message:
        return None

    try:
        joke = await get_joke()
    except Exception as err:
        bot.error(
            "onMessage",
            "error getting joke",
            err,
            channel=channel,
            sender_state=sender_state,
            message=message,
        )
        return None

    return await bot.say(channel, joke)
