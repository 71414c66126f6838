"""In-process event emitter with sync and async handler support."""

import inspect
import typing as t
from collections import defaultdict

from ..infrastructure.logging import get_logger
from .base import BaseEmitter, EventHandler
from .subscription import Subscription

if t.TYPE_CHECKING:
    import loguru


class EventEmitter(BaseEmitter):
    """Dispatches events to handlers registered per event type.

    Each emitter owns its own handler table, so separate pools never see
    each other's events. Handlers run one after another in subscription
    order; an awaitable result is awaited before the next handler runs.
    A failing handler is logged and does not stop the remaining handlers.

    Usage:
        emitter = EventEmitter(logger)
        emitter.on("worker.online", lambda e: print(e.worker_id))
        await emitter.emit("worker.online", event)
    """

    def __init__(self, logger: "loguru.Logger" = get_logger(__name__)) -> None:
        self._logger = logger
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def on(self, event_type: str, handler: EventHandler) -> Subscription:
        """Register ``handler`` for ``event_type``.

        Returns:
            Subscription that removes the handler when unsubscribed.
        """
        self._handlers[event_type].append(handler)
        return Subscription(self, event_type, handler)

    def off(self, event_type: str, handler: EventHandler) -> None:
        """Remove ``handler``; logs a warning if it was never registered."""
        handlers = self._handlers.get(event_type, [])
        if handler not in handlers:
            self._logger.warning(f"Handler {handler} not found for event {event_type}")
            return
        handlers.remove(handler)
        if not handlers:
            del self._handlers[event_type]

    async def emit(self, event_type: str, event_data: t.Any) -> None:
        """Deliver ``event_data`` to every handler of ``event_type``."""
        # Copy so handlers may unsubscribe while being dispatched.
        for handler in list(self._handlers.get(event_type, [])):
            try:
                result = handler(event_data)
            except Exception:
                self._logger.exception(f"Error in handler for event {event_type}")
                continue

            if inspect.isawaitable(result):
                try:
                    await result
                except Exception as exc:
                    self._logger.opt(exception=exc).error(
                        f"Error in async handler for event {event_type}"
                    )
