"""Newline-delimited JSON log sink.

Every record is one JSON object on its own line:

    {"action": ..., "msg": ..., <extra fields>, "time": <epoch ms>}

Error records additionally carry ``isError: true`` and a serialized ``err``.
Records are appended to a log file when one is configured, otherwise logs go
to stdout and errors to stderr.
"""

from __future__ import annotations

import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional


def _log(msg: str):
    print(msg, file=sys.stderr)


def now_ms() -> int:
    return int(time.time() * 1000)


def serialize_error(err: Optional[BaseException]) -> Dict[str, Any]:
    """Flatten an exception into a JSON-friendly dict."""
    if err is None:
        return {}
    data: Dict[str, Any] = {"type": type(err).__name__, "message": str(err)}
    for key, value in vars(err).items():
        if not key.startswith("_"):
            data[key] = value
    return data


class JsonLogSink:
    """Stateless structured event writer shared by a manager or a bot.

    ``action``, ``msg``, ``isError``, ``err`` and ``time`` are reserved: an
    extra field with one of those names never replaces the real value.
    """

    def __init__(self, log_file: Optional[str] = None):
        self.log_file = Path(log_file) if log_file else None

    def log(self, action: str, msg: Any, /, **extra: Any) -> Dict[str, Any]:
        record = {"action": action, "msg": msg}
        record.update(extra)
        record.update(action=action, msg=msg, time=now_ms())
        self._write(record, stream=sys.stdout)
        return record

    def error(
        self,
        action: str,
        msg: Any,
        /,
        err: Optional[BaseException] = None,
        **extra: Any,
    ) -> Dict[str, Any]:
        record = {"action": action, "msg": msg, "isError": True, "err": None}
        record.update(extra)
        record.update(
            action=action,
            msg=msg,
            isError=True,
            err=serialize_error(err),
            time=now_ms(),
        )
        self._write(record, stream=sys.stderr)
        return record

    def _write(self, record: Dict[str, Any], stream) -> None:
        line = json.dumps(record, ensure_ascii=False, default=str)
        if self.log_file is None:
            print(line, file=stream)
            return
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with self.log_file.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            # fall back to the console stream
            _log(f"[JsonLogSink] cannot write {self.log_file}: {e}")
            print(line, file=stream)
