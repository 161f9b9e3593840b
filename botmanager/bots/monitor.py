"""Status monitor: periodic heartbeat of every bot's state."""

import asyncio
import sys
from typing import Optional


def _log(msg: str):
    print(msg, file=sys.stderr)


class StatusMonitor:
    """Logs manager.status() every `interval` seconds until stopped."""

    def __init__(self, manager, interval: float):
        if interval <= 0:
            raise ValueError(f"monitor interval must be positive, got {interval}")
        self._manager = manager
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self):
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _loop(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                self._manager.log("monitor", "status", status=self._manager.status())
            except Exception as e:
                _log(f"[StatusMonitor] tick failed: {e}")
