from botmanager.ports.transport import (
    EVENT_CONNECTED,
    EVENT_DISCONNECTED,
    EVENT_MESSAGE,
    EVENTS,
    ChatTransport,
)

__all__ = [
    "EVENT_CONNECTED",
    "EVENT_DISCONNECTED",
    "EVENT_MESSAGE",
    "EVENTS",
    "ChatTransport",
]
