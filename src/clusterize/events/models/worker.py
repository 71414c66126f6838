"""Lifecycle events emitted for each spawned worker process."""

from pydantic import Field

from ...domain.workers import ExitInfo
from .base import BaseEvent


class WorkerEvent(BaseEvent):
    """Base class for worker lifecycle events.

    All worker events include worker_id, the spawner-assigned identity that
    stays stable for the lifetime of the process.
    """

    worker_id: int = Field(ge=1, description="Spawner-assigned worker identifier")
    pid: int | None = Field(
        default=None, description="OS process id, None before the process exists"
    )
    event_type: str = Field(default="worker.base")


class WorkerForkedEvent(WorkerEvent):
    """Emitted when process creation for a worker has been requested."""

    event_type: str = Field(default="worker.forked")


class WorkerOnlineEvent(WorkerEvent):
    """Emitted when the worker process has started executing."""

    event_type: str = Field(default="worker.online")


class WorkerListeningEvent(WorkerEvent):
    """Emitted when worker code reports a bound listening resource."""

    event_type: str = Field(default="worker.listening")
    address: str = Field(description="Address descriptor, e.g. 127.0.0.1:8000")


class WorkerExitedEvent(WorkerEvent):
    """Emitted once when the worker process has terminated.

    No further events are emitted for the same worker_id afterwards.
    """

    event_type: str = Field(default="worker.exited")
    exit_code: int | None = Field(
        default=None, description="Exit status, None when killed by a signal"
    )
    signal: str | None = Field(default=None, description="Terminating signal name")

    def to_exit_info(self) -> ExitInfo:
        return ExitInfo(
            worker_id=self.worker_id, exit_code=self.exit_code, signal=self.signal
        )
