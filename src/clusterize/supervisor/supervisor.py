"""Process pool supervisor.

This module provides the Supervisor class, which sizes the pool, spawns
workers, wires lifecycle events to the tracker and respawns workers that
exit. In a worker process the same ``run`` call only executes the worker
entry point.
"""

import asyncio
import inspect
import signal
import typing as t
from types import MappingProxyType

from ..config.settings import Settings
from ..domain.exceptions import (
    ClusterizeError,
    ConfigError,
    SupervisorAlreadyStartedError,
)
from ..domain.pool_config import PoolConfig
from ..domain.sizing import available_parallelism, resolve_count
from ..domain.workers import Role, WorkerRecord
from ..events import EventHandler, Subscription, WorkerExitedEvent
from ..infrastructure.logging import get_logger
from ..lifecycle.tracker import DEFAULT_STARTUP_TIMEOUT, LifecycleTracker
from ..process.base import BaseProcessHandle, BaseSpawner
from ..process.multiprocess import MultiprocessSpawner
from ..process.role import resolve_role
from ..respawn.base import BaseRespawnPolicy
from ..respawn.policy import RespawnPolicy
from .entrypoints import resolve_entrypoint

if t.TYPE_CHECKING:
    import loguru

RespawnPolicyFactory = t.Callable[[PoolConfig], BaseRespawnPolicy]

DEFAULT_SHUTDOWN_TIMEOUT = 10.0

# Seconds shutdown() waits for killed workers to be reaped.
KILL_TIMEOUT = 5.0


class Supervisor:
    """Overseer of a pool of worker processes.

    Key responsibilities:
    - Resolves the pool size from CPU count, ratio or explicit count
    - Issues the initial spawn requests, then runs the overseer hook
    - Wires spawner events to the lifecycle tracker (startup timeouts)
    - Consults the respawn policy on every exit and spawns replacements
      with the same environment
    - Terminates workers on shutdown

    Implementation decisions:
    - Each supervisor owns its tracker, respawn policy and subscriptions,
      so several pools can coexist in one process
    - The role is a constructor argument (default: detected from the
      environment) so overseer behaviour can be exercised without forking
    - Spawning is fire-and-forget; the overseer hook runs right after the
      spawn requests are issued, not after workers come online

    Usage:
        supervisor = Supervisor()
        await supervisor.run(PoolConfig(worker_entry=serve, ratio=0.5))

    Or drive the lifecycle explicitly:
        await supervisor.start(config)
        ...
        await supervisor.shutdown()
    """

    def __init__(
        self,
        spawner: BaseSpawner | None = None,
        role: Role | None = None,
        startup_timeout: float = DEFAULT_STARTUP_TIMEOUT,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
        parallelism: t.Callable[[], int] = available_parallelism,
        respawn_policy_factory: RespawnPolicyFactory = RespawnPolicy.from_config,
        handle_signals: bool = True,
        logger: "loguru.Logger" = get_logger(__name__),
    ) -> None:
        """Initialise the supervisor.

        Args:
            spawner: Creates worker processes and emits their lifecycle
                events. If None, a MultiprocessSpawner is created on start.
            role: Role of the current process. If None, detected once with
                resolve_role().
            startup_timeout: Seconds a worker may take to come online.
            shutdown_timeout: Seconds shutdown() waits for workers to exit
                before killing them.
            parallelism: Returns the number of CPUs available to the pool.
            respawn_policy_factory: Builds the respawn policy from the
                PoolConfig passed to start().
            handle_signals: If True, run() stops the pool on SIGINT/SIGTERM.
            logger: Logger for pool activity.
        """
        self._spawner = spawner
        self._role = role if role is not None else resolve_role()
        self._shutdown_timeout = shutdown_timeout
        self._parallelism = parallelism
        self._respawn_policy_factory = respawn_policy_factory
        self._handle_signals = handle_signals
        self._logger = logger

        self._workers: dict[int, WorkerRecord] = {}
        self._handles: dict[int, BaseProcessHandle] = {}
        self._tracker = LifecycleTracker(self._workers, startup_timeout, logger)
        self._respawn_policy: BaseRespawnPolicy | None = None
        self._config: PoolConfig | None = None
        self._subscriptions: list[Subscription] = []
        self._installed_signals: list[signal.Signals] = []
        self._stop_requested = asyncio.Event()
        self._all_exited = asyncio.Event()
        self._is_running = False
        self._stopping = False

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: t.Any) -> "Supervisor":
        """Create a supervisor whose timeouts and start method come from settings."""
        logger = kwargs.setdefault("logger", get_logger(__name__))
        kwargs.setdefault(
            "spawner",
            MultiprocessSpawner(logger=logger, start_method=settings.start_method),
        )
        return cls(
            startup_timeout=settings.startup_timeout,
            shutdown_timeout=settings.shutdown_timeout,
            **kwargs,
        )

    @property
    def role(self) -> Role:
        return self._role

    @property
    def is_running(self) -> bool:
        """True between start() and the end of shutdown()."""
        return self._is_running

    @property
    def tracker(self) -> LifecycleTracker:
        return self._tracker

    @property
    def workers(self) -> t.Mapping[int, WorkerRecord]:
        """Read-only view of the records of live workers."""
        return MappingProxyType(self._workers)

    @property
    def handles(self) -> tuple[BaseProcessHandle, ...]:
        """Snapshot of handles of processes that have not exited yet."""
        return tuple(self._handles.values())

    async def run(self, config: PoolConfig) -> None:
        """Run the pool, or the worker entry point in a worker process.

        In the overseer this returns only after request_stop() (or SIGINT /
        SIGTERM when signal handling is enabled) and a completed shutdown.

        Raises:
            ConfigError: If ``config.worker_entry`` is missing.
            InvalidWorkerError: In a worker, if the entry is not invocable.
        """
        self._validate(config)

        if self._role is Role.WORKER:
            result = resolve_entrypoint(config.worker_entry)()
            if inspect.isawaitable(result):
                await result
            return

        await self.start(config)
        self._install_signal_handlers()
        try:
            await self._stop_requested.wait()
        finally:
            self._remove_signal_handlers()
            await self.shutdown()

    def run_worker(self, config: PoolConfig) -> None:
        """Synchronously run the worker entry point.

        Used by process bootstrap code, where no event loop is running yet.
        A coroutine returned by the entry point is run to completion on a
        fresh event loop.
        """
        self._validate(config)
        result = resolve_entrypoint(config.worker_entry)()
        if inspect.iscoroutine(result):
            asyncio.run(result)

    async def start(self, config: PoolConfig) -> None:
        """Spawn the initial workers and run the overseer hook.

        Raises:
            ConfigError: If ``config.worker_entry`` is missing.
            SupervisorAlreadyStartedError: If the supervisor is running.
        """
        self._validate(config)
        if self._role is not Role.OVERSEER:
            raise ClusterizeError("start() is only available in the overseer process")
        if self._is_running:
            raise SupervisorAlreadyStartedError("Supervisor already started")

        self._config = config
        self._respawn_policy = self._respawn_policy_factory(config)
        spawner = self._spawner
        if spawner is None:
            spawner = self._spawner = MultiprocessSpawner(logger=self._logger)

        self._is_running = True
        self._stopping = False
        self._stop_requested.clear()
        self._wire_events(spawner)

        count = resolve_count(self._parallelism(), config.ratio, config.explicit_count)
        self._logger.info(f"Cluster size is {count}")
        for index in range(count):
            self._logger.debug(f"Spawning worker #{index}")
            await self._spawn(spawner, config, config.shared_env)

        if config.overseer_hook is not None:
            result = config.overseer_hook()
            if inspect.isawaitable(result):
                await result

    def request_stop(self) -> None:
        """Make run() shut the pool down and return. Idempotent."""
        self._stop_requested.set()

    async def shutdown(self, timeout: float | None = None) -> None:
        """Stop respawning, terminate workers and wait for them to exit.

        Workers still alive after ``timeout`` seconds are killed and waited
        for up to KILL_TIMEOUT seconds; workers that are still not reaped
        are dropped. No handle or record survives shutdown. Safe to call
        when the supervisor is not running.

        Args:
            timeout: Override for the configured shutdown timeout.
        """
        if not self._is_running:
            return

        self._stopping = True
        timeout = self._shutdown_timeout if timeout is None else timeout

        live = list(self._handles.values())
        self._logger.info(f"Shutting down {len(live)} workers")
        for handle in live:
            handle.terminate()

        if not await self._wait_all_exited(timeout):
            self._logger.warning(
                f"{len(self._handles)} workers still running after "
                f"{timeout:g}s, killing"
            )
            for handle in list(self._handles.values()):
                handle.kill()
            if not await self._wait_all_exited(KILL_TIMEOUT):
                self._logger.error(
                    f"Workers {sorted(self._handles)} not reaped after kill, "
                    "dropping them"
                )

        self._handles.clear()
        self._workers.clear()
        self._tracker.clear_all()
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        if self._spawner is not None:
            await self._spawner.aclose()

        self._is_running = False
        self._stop_requested.set()
        self._logger.info("Supervisor stopped")

    async def _wait_all_exited(self, timeout: float) -> bool:
        """Wait until every handle has exited; False on timeout."""
        if not self._handles:
            return True
        try:
            await asyncio.wait_for(self._all_exited.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def _validate(self, config: PoolConfig) -> None:
        if config.worker_entry is None:
            raise ConfigError("PoolConfig.worker_entry is required")

    def _wire_events(self, spawner: BaseSpawner) -> None:
        wiring: dict[str, EventHandler] = {
            "worker.forked": self._tracker.track_forked,
            "worker.online": self._tracker.track_online,
            "worker.listening": self._tracker.track_listening,
            "worker.exited": self._handle_exit,
        }
        for event_type, handler in wiring.items():
            self._subscriptions.append(spawner.emitter.on(event_type, handler))

    async def _spawn(
        self, spawner: BaseSpawner, config: PoolConfig, env: t.Mapping[str, str]
    ) -> BaseProcessHandle:
        handle = await spawner.spawn(config.worker_entry, env)
        self._handles[handle.worker_id] = handle
        self._all_exited.clear()
        return handle

    async def _handle_exit(self, event: WorkerExitedEvent) -> None:
        handle = self._handles.pop(event.worker_id, None)
        try:
            if not self._tracker.track_exited(event) or self._stopping:
                return

            spawner, config, policy = self._spawner, self._config, self._respawn_policy
            if spawner is None or config is None or policy is None:
                raise ClusterizeError(
                    f"Exit of worker {event.worker_id} seen before start()"
                )
            if policy.should_respawn(event.to_exit_info()):
                self._logger.info(f"Worker {event.worker_id} has died, respawning")
                env = handle.env if handle is not None else config.shared_env
                await self._spawn(spawner, config, env)
            else:
                self._logger.info(f"Worker {event.worker_id} has died, not respawning")
        finally:
            self._workers.pop(event.worker_id, None)
            if not self._handles:
                self._all_exited.set()

    def _install_signal_handlers(self) -> None:
        if not self._handle_signals:
            return
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, self.request_stop)
            except NotImplementedError:
                # Windows event loops have no signal handler support.
                self._logger.debug(f"Cannot handle {signum.name} on this platform")
                continue
            self._installed_signals.append(signum)

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for signum in self._installed_signals:
            loop.remove_signal_handler(signum)
        self._installed_signals.clear()
