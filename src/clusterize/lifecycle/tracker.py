"""Startup timeouts and per-worker lifecycle state.

The tracker is fed lifecycle events by the supervisor's event wiring. It
is the only component that changes a WorkerRecord's state and the only
holder of startup timer handles.
"""

import asyncio
import typing as t

from ..domain.exceptions import SpawnTimeoutError
from ..domain.workers import WorkerRecord, WorkerState
from ..events import (
    WorkerEvent,
    WorkerExitedEvent,
    WorkerForkedEvent,
    WorkerListeningEvent,
    WorkerOnlineEvent,
)
from ..infrastructure.logging import get_logger

if t.TYPE_CHECKING:
    import loguru

DEFAULT_STARTUP_TIMEOUT = 30.0


class LifecycleTracker:
    """Tracks worker state transitions and enforces the startup timeout.

    State machine per worker id:

        FORKING --(online | listening)--> ONLINE --(exited)--> EXITED
        FORKING --(exited)--> EXITED
        FORKING --(startup timeout)--> TIMED_OUT

    TIMED_OUT is terminal: the record is dropped and later events for that
    id are ignored. A timeout is only logged; compensating for the lost
    slot is not the tracker's job. The timed-out process itself is not
    terminated: it keeps running until it exits on its own or the
    supervisor shuts down. Its eventual exit is ignored and forgets the id.

    Usage:
        workers: dict[int, WorkerRecord] = {}
        tracker = LifecycleTracker(workers, startup_timeout=30.0)

        emitter.on("worker.forked", tracker.track_forked)
        emitter.on("worker.online", tracker.track_online)
    """

    def __init__(
        self,
        workers: dict[int, WorkerRecord],
        startup_timeout: float = DEFAULT_STARTUP_TIMEOUT,
        logger: "loguru.Logger" = get_logger(__name__),
    ) -> None:
        """Initialise the tracker.

        Args:
            workers: Record map owned by the supervisor. The tracker adds
                records on fork, updates their state and drops records of
                workers that time out.
            startup_timeout: Seconds between fork and the first online,
                listening or exited event before the worker is reported as
                failed to fork.
            logger: Logger for lifecycle transitions.
        """
        self._workers = workers
        self._startup_timeout = startup_timeout
        self._logger = logger
        self._timeouts: dict[int, asyncio.TimerHandle] = {}
        self._timed_out: set[int] = set()

    @property
    def startup_timeout(self) -> float:
        return self._startup_timeout

    @property
    def pending_timeouts(self) -> int:
        """Number of armed startup timers."""
        return len(self._timeouts)

    def get_state(self, worker_id: int) -> WorkerState | None:
        """Current state of a worker, None if it was never seen or is gone."""
        if worker_id in self._timed_out:
            return WorkerState.TIMED_OUT
        record = self._workers.get(worker_id)
        return record.state if record is not None else None

    def track_forked(self, event: WorkerForkedEvent) -> None:
        """Create the worker's record and arm its startup timer."""
        loop = asyncio.get_running_loop()
        self._workers[event.worker_id] = WorkerRecord(worker_id=event.worker_id)
        self._timeouts[event.worker_id] = loop.call_later(
            self._startup_timeout, self._on_startup_timeout, event.worker_id
        )
        self._logger.debug(f"Worker {event.worker_id} forked")

    def track_online(self, event: WorkerOnlineEvent) -> None:
        record = self._live_record(event)
        if record is None:
            return
        self.clear_timeout(event.worker_id)
        record.state = WorkerState.ONLINE
        self._logger.info(f"Worker {event.worker_id} is online (pid {event.pid})")

    def track_listening(self, event: WorkerListeningEvent) -> None:
        record = self._live_record(event)
        if record is None:
            return
        self.clear_timeout(event.worker_id)
        record.state = WorkerState.ONLINE
        self._logger.info(
            f"Worker {event.worker_id} is listening on {event.address}"
        )

    def track_exited(self, event: WorkerExitedEvent) -> bool:
        """Mark the worker as exited.

        Returns:
            True if the worker was tracked and is now EXITED, False if the
            event was ignored (unknown or timed-out worker).
        """
        record = self._live_record(event)
        if record is None:
            return False
        self.clear_timeout(event.worker_id)
        record.state = WorkerState.EXITED
        self._logger.info(
            f"Worker {event.worker_id} exited "
            f"(code={event.exit_code}, signal={event.signal})"
        )
        return True

    def clear_timeout(self, worker_id: int) -> bool:
        """Cancel a worker's startup timer.

        Idempotent: returns False, without error, when no timer is armed.
        """
        handle = self._timeouts.pop(worker_id, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def clear_all(self) -> None:
        """Cancel every armed startup timer."""
        for worker_id in list(self._timeouts):
            self.clear_timeout(worker_id)

    def _live_record(self, event: WorkerEvent) -> WorkerRecord | None:
        if event.worker_id in self._timed_out:
            if isinstance(event, WorkerExitedEvent):
                self._timed_out.discard(event.worker_id)
            self._logger.warning(
                f"Ignoring {event.event_type} for worker {event.worker_id}: "
                "it already failed to fork"
            )
            return None
        record = self._workers.get(event.worker_id)
        if record is None or record.state.is_terminal:
            self._logger.debug(
                f"Ignoring {event.event_type} for untracked worker {event.worker_id}"
            )
            return None
        return record

    def _on_startup_timeout(self, worker_id: int) -> None:
        self._timeouts.pop(worker_id, None)
        record = self._workers.get(worker_id)
        if record is None or record.state is not WorkerState.FORKING:
            return

        record.state = WorkerState.TIMED_OUT
        del self._workers[worker_id]
        self._timed_out.add(worker_id)
        self._logger.error(str(SpawnTimeoutError(worker_id, self._startup_timeout)))
