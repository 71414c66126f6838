"""Event infrastructure - event emitter and event types."""

from .base import BaseEmitter, EventHandler
from .emitter import EventEmitter
from .models import (
    BaseEvent,
    WorkerEvent,
    WorkerExitedEvent,
    WorkerForkedEvent,
    WorkerListeningEvent,
    WorkerOnlineEvent,
)
from .subscription import Subscription

__all__ = [
    # Base and implementations
    "BaseEmitter",
    "EventEmitter",
    "EventHandler",
    "Subscription",
    # Worker lifecycle events
    "BaseEvent",
    "WorkerEvent",
    "WorkerForkedEvent",
    "WorkerOnlineEvent",
    "WorkerListeningEvent",
    "WorkerExitedEvent",
]
