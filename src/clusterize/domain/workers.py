"""Domain models describing pool members and their exits."""

import time
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(Enum):
    """Which side of the pool the current process is on."""

    OVERSEER = "overseer"
    WORKER = "worker"


class WorkerState(Enum):
    """Lifecycle state of a single worker id."""

    FORKING = "forking"
    ONLINE = "online"
    EXITED = "exited"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (WorkerState.EXITED, WorkerState.TIMED_OUT)


@dataclass
class WorkerRecord:
    """Overseer-side bookkeeping for one spawned worker.

    Only the lifecycle tracker mutates ``state``. The startup timer is held
    by the tracker, never by the record.
    """

    worker_id: int
    started_at: float = field(default_factory=time.monotonic)
    state: WorkerState = WorkerState.FORKING


class ExitInfo(BaseModel):
    """Immutable description of one worker exit."""

    model_config = ConfigDict(frozen=True)

    worker_id: int = Field(description="Id of the worker that exited")
    exit_code: int | None = Field(
        default=None, description="Process exit status, None if killed by a signal"
    )
    signal: str | None = Field(
        default=None, description="Name of the terminating signal, e.g. SIGTERM"
    )

    @property
    def crashed(self) -> bool:
        """True for a non-zero exit status or a signal-terminated process."""
        return self.signal is not None or bool(self.exit_code)
