"""Process entry point: load config, start the manager, run until terminated."""

import asyncio
import signal
import sys
from typing import Mapping, Optional

from botmanager.bots.bot import MessageHandler
from botmanager.bots.manager import Manager
from botmanager.config import ManagerConfig, load_config
from botmanager.errors import ConfigError
from botmanager.handlers import HANDLERS
from botmanager.log_sink import JsonLogSink


def _log(msg: str):
    print(msg, file=sys.stderr)


def install_failure_guard(loop: asyncio.AbstractEventLoop, sink: JsonLogSink, stop: asyncio.Event):
    """Last-resort handler for exceptions nothing else caught: log and stop."""
    state = {"failed": False}

    def handle(loop, context):
        err = context.get("exception")
        sink.error("unhandled", context.get("message", "unhandled failure"), err)
        state["failed"] = True
        stop.set()

    loop.set_exception_handler(handle)
    return state


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, stop: asyncio.Event):
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows: fall back to KeyboardInterrupt
            pass


async def run(
    config: ManagerConfig,
    handlers: Optional[Mapping[str, MessageHandler]] = None,
    stop: Optional[asyncio.Event] = None,
) -> int:
    """Run a Manager until `stop` is set. Returns the process exit code."""
    loop = asyncio.get_running_loop()
    stop = stop or asyncio.Event()
    sink = JsonLogSink(config.log_file)
    guard = install_failure_guard(loop, sink, stop)
    _install_signal_handlers(loop, stop)

    manager = Manager(config, handlers=HANDLERS if handlers is None else handlers, sink=sink)
    try:
        if config.monitor_interval:
            manager.start_monitor()
        await stop.wait()
    finally:
        await manager.shutdown()

    return 1 if guard["failed"] else 0


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    try:
        config = load_config(argv[0] if argv else None)
    except ConfigError as e:
        _log(f"[bot-manager] configuration error: {e}")
        return 1

    try:
        return asyncio.run(run(config))
    except KeyboardInterrupt:
        _log("[bot-manager] stopped via keyboard interrupt")
        return 0


if __name__ == "__main__":
    sys.exit(main())
