"""Access to the hosted database, auth and realtime services."""

from .client import BackendClient
from .realtime import ChangeEvent, ChangeKind, ChannelHandle, RealtimeClient

__all__ = [
    "BackendClient",
    "ChangeEvent",
    "ChangeKind",
    "ChannelHandle",
    "RealtimeClient",
]
