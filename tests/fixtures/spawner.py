"""In-memory spawner used to drive the supervisor without real processes."""

import asyncio
import itertools
import typing as t
from dataclasses import dataclass
from types import MappingProxyType

from clusterize.domain.pool_config import WorkerEntry
from clusterize.events import (
    EventEmitter,
    WorkerExitedEvent,
    WorkerForkedEvent,
    WorkerListeningEvent,
    WorkerOnlineEvent,
)
from clusterize.process.base import BaseProcessHandle, BaseSpawner

if t.TYPE_CHECKING:
    import loguru


@dataclass(frozen=True)
class SpawnCall:
    """Arguments of one spawn() call."""

    entrypoint: WorkerEntry
    env: dict[str, str]


class FakeProcessHandle(BaseProcessHandle):
    """Handle whose lifecycle is driven by FakeSpawner helper methods."""

    def __init__(
        self,
        spawner: "FakeSpawner",
        worker_id: int,
        env: t.Mapping[str, str],
    ) -> None:
        self._spawner = spawner
        self._worker_id = worker_id
        self._env = MappingProxyType(dict(env))
        self.alive = True
        self.terminated = False
        self.killed = False

    @property
    def worker_id(self) -> int:
        return self._worker_id

    @property
    def pid(self) -> int | None:
        return 1000 + self._worker_id

    @property
    def env(self) -> t.Mapping[str, str]:
        return self._env

    @property
    def is_alive(self) -> bool:
        return self.alive

    def terminate(self) -> None:
        self.terminated = True
        if self.alive and self._spawner.exit_on_terminate:
            self._spawner.schedule_exit(self._worker_id, signal="SIGTERM")

    def kill(self) -> None:
        self.killed = True
        if self.alive and self._spawner.exit_on_kill:
            self._spawner.schedule_exit(self._worker_id, signal="SIGKILL")


class FakeSpawner(BaseSpawner):
    """Records spawn calls and lets tests emit lifecycle events by hand.

    Args:
        logger: Logger for the spawner's emitter.
        exit_on_terminate: If True, terminate() makes the worker exit with
            SIGTERM. Set False to simulate a worker that ignores SIGTERM.
        exit_on_kill: If True, kill() makes the worker exit with SIGKILL.
            Set False to simulate a process that is never reaped.
    """

    def __init__(
        self,
        logger: "loguru.Logger",
        exit_on_terminate: bool = True,
        exit_on_kill: bool = True,
    ) -> None:
        self._emitter = EventEmitter(logger)
        self._ids = itertools.count(1)
        self._tasks: set[asyncio.Task[None]] = set()
        self.exit_on_terminate = exit_on_terminate
        self.exit_on_kill = exit_on_kill
        self.spawn_calls: list[SpawnCall] = []
        self.handles: dict[int, FakeProcessHandle] = {}
        self.closed = False

    @property
    def emitter(self) -> EventEmitter:
        return self._emitter

    async def spawn(
        self, entrypoint: WorkerEntry, env: t.Mapping[str, str]
    ) -> FakeProcessHandle:
        worker_id = next(self._ids)
        self.spawn_calls.append(SpawnCall(entrypoint, dict(env)))
        handle = FakeProcessHandle(self, worker_id, env)
        self.handles[worker_id] = handle
        await self._emitter.emit(
            "worker.forked", WorkerForkedEvent(worker_id=worker_id)
        )
        return handle

    async def aclose(self) -> None:
        self.closed = True

    async def online(self, worker_id: int) -> None:
        await self._emitter.emit(
            "worker.online",
            WorkerOnlineEvent(worker_id=worker_id, pid=1000 + worker_id),
        )

    async def listening(self, worker_id: int, address: str) -> None:
        await self._emitter.emit(
            "worker.listening",
            WorkerListeningEvent(
                worker_id=worker_id, pid=1000 + worker_id, address=address
            ),
        )

    async def exit(
        self, worker_id: int, exit_code: int | None = 0, signal: str | None = None
    ) -> None:
        self.handles[worker_id].alive = False
        await self._emitter.emit(
            "worker.exited",
            WorkerExitedEvent(
                worker_id=worker_id,
                pid=1000 + worker_id,
                exit_code=None if signal else exit_code,
                signal=signal,
            ),
        )

    def schedule_exit(self, worker_id: int, signal: str) -> None:
        """Emit ``worker.exited`` from a separate task, like a real process."""
        self.handles[worker_id].alive = False
        task = asyncio.get_running_loop().create_task(
            self.exit(worker_id, signal=signal)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
