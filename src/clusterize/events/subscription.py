"""Handle returned by emitter subscriptions."""

from .base import BaseEmitter, EventHandler


class Subscription:
    """Represents one handler subscribed to one event type.

    Usage:
        sub = emitter.on("worker.exited", handler)
        ...
        sub.unsubscribe()
    """

    def __init__(
        self, emitter: BaseEmitter, event_type: str, handler: EventHandler
    ) -> None:
        self._emitter = emitter
        self._event_type = event_type
        self._handler = handler
        self._active = True

    @property
    def event_type(self) -> str:
        return self._event_type

    @property
    def is_active(self) -> bool:
        """True until unsubscribe() has been called."""
        return self._active

    def unsubscribe(self) -> None:
        """Remove the handler from the emitter. Safe to call repeatedly."""
        if not self._active:
            return
        self._active = False
        self._emitter.off(self._event_type, self._handler)
