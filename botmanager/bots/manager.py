"""Manager: creates, supervises and routes commands to named bots."""

import asyncio
import inspect
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Set

from botmanager.adapters.discord_adapter import DiscordTransport
from botmanager.bots.bot import Bot, MessageHandler
from botmanager.bots.monitor import StatusMonitor
from botmanager.config import BotConfig, ManagerConfig
from botmanager.domain.models import BotAction
from botmanager.errors import UnknownActionError
from botmanager.log_sink import JsonLogSink
from botmanager.ports.transport import ChatTransport

TransportFactory = Callable[[BotConfig], ChatTransport]


def parse_action(action) -> BotAction:
    """Map an action name to BotAction, raising UnknownActionError otherwise."""
    if isinstance(action, BotAction):
        return action
    try:
        return BotAction(str(action).strip().lower())
    except ValueError:
        raise UnknownActionError(str(action)) from None


class Manager:
    """Owns every Bot built from a ManagerConfig, keyed by bot name.

    Must be constructed inside a running event loop: bots flagged
    ``autoConnect`` are connected in background tasks straight away.
    """

    def __init__(
        self,
        config: ManagerConfig,
        handlers: Optional[Mapping[str, MessageHandler]] = None,
        transport_factory: Optional[TransportFactory] = None,
        sink: Optional[JsonLogSink] = None,
    ):
        self.config = config
        self.handlers: Mapping[str, MessageHandler] = handlers or {}
        self._transport_factory = transport_factory or DiscordTransport.from_config
        self._sink = sink or JsonLogSink(config.log_file)
        self.bots: Dict[str, Bot] = {}
        self._pending: Set[asyncio.Task] = set()
        self._monitor: Optional[StatusMonitor] = None

        for bot_name in self.config.bots:
            self.create(bot_name)

    # ------------------------------------------------------------------
    # Bot registry
    # ------------------------------------------------------------------
    def create(self, bot_name: str) -> Optional[Bot]:
        if bot_name in self.bots:
            self.error("create", "bot not created: already exists", bot_name=bot_name)
            return None

        bot_config = self.config.bots.get(bot_name)
        if bot_config is None:
            self.error("create", "bot not created: no configuration", bot_name=bot_name)
            return None

        if not bot_config.create:
            self.log("create", "skipping bot creation", bot_name=bot_name)
            return None

        self.log("create", "creating bot", bot_name=bot_name)
        bot = Bot(
            name=bot_name,
            user=bot_config.user,
            token=bot_config.token,
            channels=bot_config.channels,
            transport=self._transport_factory(bot_config),
            handler=self.handlers.get(bot_name),
            sink=JsonLogSink(bot_config.log_file or self.config.log_file),
        )
        self.bots[bot_name] = bot

        if bot_config.auto_connect:
            self.log("create", "auto connecting", bot_name=bot_name)
            self._track(bot.connect())
        else:
            self.log("create", "skipping auto connect", bot_name=bot_name)
        return bot

    def has(self, bot_name: str) -> bool:
        return bot_name in self.bots

    def _track(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def wait_for_pending(self):
        """Wait for in-flight auto-connects to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Command routing
    # ------------------------------------------------------------------
    async def exec(self, bot_name: str, action, args: Sequence[Any] = ()) -> Any:
        bot = self.bots.get(bot_name)
        if bot is None:
            self.log("exec", "bot does not exist", bot_name=bot_name, requested_action=str(action))
            return None

        try:
            bot_action = parse_action(action)
        except UnknownActionError as err:
            self.error("exec", "action not supported", err, bot_name=bot_name, requested_action=str(action))
            return None

        args = tuple(args or ())
        if len(args) != bot_action.arity:
            self.error(
                "exec",
                f"action expects {bot_action.arity} argument(s), got {len(args)}",
                bot_name=bot_name,
                requested_action=bot_action.value,
            )
            return None

        operation = self._operation(bot, bot_action)
        result = operation(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    @staticmethod
    def _operation(bot: Bot, action: BotAction) -> Callable[..., Any]:
        if action is BotAction.CONNECT:
            return bot.connect
        elif action is BotAction.DISCONNECT:
            return bot.disconnect
        elif action is BotAction.LISTEN:
            return bot.listen
        elif action is BotAction.DONTLISTEN:
            return bot.dontlisten
        elif action is BotAction.SAY:
            return bot.say
        return bot.status

    # ------------------------------------------------------------------
    # Status / monitoring
    # ------------------------------------------------------------------
    def status(self, bot_name: Optional[str] = None) -> Optional[Dict[str, Any]]:
        if bot_name is None:
            return {name: bot.status() for name, bot in self.bots.items()}

        bot = self.bots.get(bot_name)
        if bot is None:
            self.log("status", "bot does not exist", bot_name=bot_name)
            return None
        return bot.status()

    def start_monitor(self, interval: Optional[float] = None) -> StatusMonitor:
        interval = interval or self.config.monitor_interval
        if not interval:
            raise ValueError("monitor interval is not configured")
        if self._monitor is None or self._monitor.interval != interval:
            if self._monitor is not None and self._monitor.running:
                raise RuntimeError("monitor already running with a different interval")
            self._monitor = StatusMonitor(self, interval)
        self._monitor.start()
        self.log("monitor", "status monitor started", interval=interval)
        return self._monitor

    async def stop_monitor(self):
        if self._monitor is None:
            return
        await self._monitor.stop()
        self._monitor = None
        self.log("monitor", "status monitor stopped")

    async def shutdown(self):
        """Stop the monitor, abandon pending connects and disconnect every bot."""
        await self.stop_monitor()

        for task in list(self._pending):
            task.cancel()
        await self.wait_for_pending()

        for name, bot in self.bots.items():
            self.log("shutdown", "disconnecting bot", bot_name=name)
            await bot.disconnect()

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    def log(self, action: str, msg: Any, /, **extra: Any):
        self._sink.log(action, msg, **extra)

    def error(self, action: str, msg: Any, /, err: Optional[BaseException] = None, **extra: Any):
        self._sink.error(action, msg, err, **extra)
