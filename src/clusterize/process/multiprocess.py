"""Spawner backed by the multiprocessing module."""

import asyncio
import itertools
import multiprocessing
import signal
import typing as t
from multiprocessing.connection import Connection
from types import MappingProxyType

from ..domain.pool_config import WorkerEntry
from ..events import (
    EventEmitter,
    WorkerEvent,
    WorkerExitedEvent,
    WorkerForkedEvent,
    WorkerListeningEvent,
    WorkerOnlineEvent,
)
from ..infrastructure.logging import get_logger
from .base import BaseProcessHandle, BaseSpawner
from .child import MESSAGE_LISTENING, MESSAGE_ONLINE, bootstrap

if t.TYPE_CHECKING:
    import loguru
    from multiprocessing.process import BaseProcess


def describe_exit(exitcode: int | None) -> tuple[int | None, str | None]:
    """Split a multiprocessing exitcode into (exit_code, signal_name).

    multiprocessing reports death by signal N as exitcode -N.
    """
    if exitcode is None or exitcode >= 0:
        return exitcode, None
    try:
        return None, signal.Signals(-exitcode).name
    except ValueError:
        return None, f"SIG{-exitcode}"


class MultiprocessHandle(BaseProcessHandle):
    """Overseer-side handle of a worker started with multiprocessing.

    Watches two file descriptors with the event loop: the read end of the
    worker's message pipe and the process sentinel, which becomes readable
    when the process ends. Events are posted to the spawner in the order
    they are observed.
    """

    def __init__(
        self,
        worker_id: int,
        env: t.Mapping[str, str],
        process: "BaseProcess",
        channel: Connection,
        post: t.Callable[[WorkerEvent], None],
        logger: "loguru.Logger",
    ) -> None:
        self._worker_id = worker_id
        self._env = MappingProxyType(dict(env))
        self._process = process
        self._channel = channel
        self._post = post
        self._logger = logger
        self._loop: asyncio.AbstractEventLoop | None = None
        self._exited = False

    @property
    def worker_id(self) -> int:
        return self._worker_id

    @property
    def pid(self) -> int | None:
        return self._process.pid

    @property
    def env(self) -> t.Mapping[str, str]:
        return self._env

    @property
    def is_alive(self) -> bool:
        return not self._exited and self._process.is_alive()

    def terminate(self) -> None:
        if self.is_alive:
            self._process.terminate()

    def kill(self) -> None:
        if self.is_alive:
            self._process.kill()

    def watch(self, loop: asyncio.AbstractEventLoop) -> None:
        """Start observing the pipe and sentinel on ``loop``."""
        self._loop = loop
        loop.add_reader(self._channel.fileno(), self._read_messages)
        loop.add_reader(self._process.sentinel, self._on_sentinel)

    def unwatch(self) -> None:
        """Stop observing; used when the spawner is closed early."""
        if self._loop is None:
            return
        if not self._channel.closed:
            self._loop.remove_reader(self._channel.fileno())
        self._loop.remove_reader(self._process.sentinel)
        self._loop = None

    def _read_messages(self) -> None:
        try:
            while self._channel.poll():
                self._dispatch(self._channel.recv())
        except (EOFError, OSError):
            # Child closed its end; the sentinel reports the exit.
            if self._loop is not None and not self._channel.closed:
                self._loop.remove_reader(self._channel.fileno())

    def _dispatch(self, message: tuple[t.Any, ...]) -> None:
        kind = message[0]
        if kind == MESSAGE_ONLINE:
            self._post(WorkerOnlineEvent(worker_id=self._worker_id, pid=self.pid))
        elif kind == MESSAGE_LISTENING:
            self._post(
                WorkerListeningEvent(
                    worker_id=self._worker_id, pid=self.pid, address=message[1]
                )
            )
        else:
            self._logger.warning(
                f"Ignoring unknown message {kind!r} from worker {self._worker_id}"
            )

    def _on_sentinel(self) -> None:
        # Deliver anything still buffered so online precedes exited.
        self._read_messages()
        self.unwatch()
        self._process.join()
        self._channel.close()
        self._exited = True

        exit_code, signal_name = describe_exit(self._process.exitcode)
        self._post(
            WorkerExitedEvent(
                worker_id=self._worker_id,
                pid=self.pid,
                exit_code=exit_code,
                signal=signal_name,
            )
        )


class MultiprocessSpawner(BaseSpawner):
    """Creates workers as ``multiprocessing`` processes.

    Events observed from the processes are queued and emitted by a single
    pump task, so handlers run serially and in observation order.

    Usage:
        spawner = MultiprocessSpawner(start_method="spawn")
        spawner.emitter.on("worker.exited", on_exit)
        handle = await spawner.spawn("myapp.server:serve", {"PORT": "8000"})
        ...
        await spawner.aclose()
    """

    def __init__(
        self,
        logger: "loguru.Logger" = get_logger(__name__),
        start_method: str | None = None,
        emitter: EventEmitter | None = None,
    ) -> None:
        """Initialise the spawner.

        Args:
            logger: Logger for spawn activity.
            start_method: multiprocessing start method ("fork", "spawn",
                "forkserver"). None uses the platform default.
            emitter: Event stream to emit on. A new EventEmitter is created
                if None.
        """
        self._logger = logger
        self._context = multiprocessing.get_context(start_method)
        self._emitter = emitter if emitter is not None else EventEmitter(logger)
        self._ids = itertools.count(1)
        self._handles: dict[int, MultiprocessHandle] = {}
        self._events: asyncio.Queue[WorkerEvent] | None = None
        self._pump: asyncio.Task[None] | None = None

    @property
    def emitter(self) -> EventEmitter:
        return self._emitter

    async def spawn(
        self, entrypoint: WorkerEntry, env: t.Mapping[str, str]
    ) -> MultiprocessHandle:
        loop = asyncio.get_running_loop()
        self._ensure_pump()

        worker_id = next(self._ids)
        reader, writer = self._context.Pipe(duplex=False)
        process = self._context.Process(
            target=bootstrap,
            args=(entrypoint, dict(env), worker_id, writer),
            name=f"clusterize-worker-{worker_id}",
        )
        handle = MultiprocessHandle(
            worker_id, env, process, reader, self._post, self._logger
        )

        await self._emitter.emit(
            "worker.forked", WorkerForkedEvent(worker_id=worker_id)
        )

        try:
            process.start()
        except Exception:
            self._logger.exception(f"Could not start process for worker {worker_id}")
            reader.close()
            raise
        finally:
            writer.close()

        handle.watch(loop)
        self._handles[worker_id] = handle
        self._logger.debug(f"Started worker {worker_id} with pid {process.pid}")
        return handle

    async def aclose(self) -> None:
        """Stop watching live processes and cancel the event pump."""
        for handle in self._handles.values():
            handle.unwatch()
        self._handles.clear()

        if self._pump is not None:
            self._pump.cancel()
            # Wait for the pump to process the cancellation before dropping it.
            await asyncio.gather(self._pump, return_exceptions=True)
            self._pump = None
        self._events = None

    def _ensure_pump(self) -> None:
        if self._pump is None:
            self._events = asyncio.Queue()
            self._pump = asyncio.create_task(self._pump_events(self._events))

    def _post(self, event: WorkerEvent) -> None:
        if isinstance(event, WorkerExitedEvent):
            self._handles.pop(event.worker_id, None)
        if self._events is not None:
            self._events.put_nowait(event)

    async def _pump_events(self, events: "asyncio.Queue[WorkerEvent]") -> None:
        while True:
            event = await events.get()
            await self._emitter.emit(event.event_type, event)
