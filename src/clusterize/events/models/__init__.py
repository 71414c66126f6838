"""Event data models."""

from .base import BaseEvent
from .worker import (
    WorkerEvent,
    WorkerExitedEvent,
    WorkerForkedEvent,
    WorkerListeningEvent,
    WorkerOnlineEvent,
)

__all__ = [
    "BaseEvent",
    "WorkerEvent",
    "WorkerForkedEvent",
    "WorkerOnlineEvent",
    "WorkerListeningEvent",
    "WorkerExitedEvent",
]
