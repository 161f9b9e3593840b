"""Domain data models: pure Python dataclasses and enums."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from botmanager.log_sink import now_ms


class BotPhase(str, Enum):
    """Lifecycle position of a bot's connection."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    LISTENING = "listening"
    DISCONNECTING = "disconnecting"
    DROPPED = "dropped"  # transport lost the connection without being asked to


class BotAction(str, Enum):
    """Operations the manager may route to a bot through exec()."""

    CONNECT = "connect"
    DISCONNECT = "disconnect"
    LISTEN = "listen"
    DONTLISTEN = "dontlisten"
    SAY = "say"
    STATUS = "status"

    @property
    def arity(self) -> int:
        return 2 if self is BotAction.SAY else 0


@dataclass
class LifecycleTimes:
    """Epoch-millisecond timestamp of the last occurrence of each event."""

    init: int = field(default_factory=now_ms)
    connected: Optional[int] = None
    disconnected: Optional[int] = None
    message_seen: Optional[int] = None
    message_sent: Optional[int] = None
    error: Optional[int] = None
    log: Optional[int] = None
    listen: Optional[int] = None
    dontlisten: Optional[int] = None


@dataclass
class BotState:
    """Runtime state for one bot. The only home of the connected/listening flags."""

    phase: BotPhase = BotPhase.IDLE
    connected: bool = False
    listening: bool = False
    messages_seen: int = 0
    messages_sent: int = 0
    logs: int = 0
    errors: int = 0
    time: LifecycleTimes = field(default_factory=LifecycleTimes)

    def stamp(self, event: str) -> int:
        ts = now_ms()
        setattr(self.time, event, ts)
        return ts

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["phase"] = self.phase.value
        return data
