"""Interfaces for spawning and observing worker processes."""

import typing as t
from abc import ABC, abstractmethod

from ..domain.pool_config import WorkerEntry
from ..events import BaseEmitter


class BaseProcessHandle(ABC):
    """One spawned worker process as seen from the overseer.

    Lifecycle changes are not exposed on the handle itself; they are
    emitted on the owning spawner's emitter as ``worker.*`` events.
    """

    @property
    @abstractmethod
    def worker_id(self) -> int:
        """Spawner-assigned identifier, stable for the process lifetime."""
        pass

    @property
    @abstractmethod
    def pid(self) -> int | None:
        """OS process id, None until the process has been created."""
        pass

    @property
    @abstractmethod
    def env(self) -> t.Mapping[str, str]:
        """Environment the worker was spawned with."""
        pass

    @property
    @abstractmethod
    def is_alive(self) -> bool:
        pass

    @abstractmethod
    def terminate(self) -> None:
        """Ask the worker to stop (SIGTERM on POSIX). No-op once exited."""
        pass

    @abstractmethod
    def kill(self) -> None:
        """Force the worker to stop (SIGKILL on POSIX). No-op once exited."""
        pass


class BaseSpawner(ABC):
    """Capability to create worker processes.

    A spawner owns one event stream shared by all handles it creates. For
    each worker it emits, in order: ``worker.forked`` before the process is
    created, ``worker.online`` once the process runs, any number of
    ``worker.listening`` events, and finally exactly one ``worker.exited``.
    """

    @property
    @abstractmethod
    def emitter(self) -> BaseEmitter:
        """Event stream for every handle created by this spawner."""
        pass

    @abstractmethod
    async def spawn(
        self, entrypoint: WorkerEntry, env: t.Mapping[str, str]
    ) -> BaseProcessHandle:
        """Start a worker running ``entrypoint`` with ``env`` applied.

        Returns as soon as process creation has been initiated; it never
        waits for the worker to come online.
        """
        pass

    async def aclose(self) -> None:
        """Release resources held for event delivery. Optional."""
        return None
