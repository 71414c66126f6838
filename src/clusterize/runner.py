"""One-call entry point for scripts."""

import asyncio
import typing as t

from .app import create_app
from .config.settings import Settings
from .domain.pool_config import OverseerHook, PoolConfig, RespawnDecision, WorkerEntry
from .domain.workers import Role
from .infrastructure.logging import get_logger
from .supervisor import Supervisor


def clusterize(
    worker_entry: WorkerEntry | None,
    *,
    overseer_hook: OverseerHook | None = None,
    respawn_on_exit: bool = True,
    ratio: float | None = None,
    explicit_count: int | None = None,
    respawn_decision: RespawnDecision | None = None,
    shared_env: t.Mapping[str, str] | None = None,
    settings: Settings | None = None,
) -> None:
    """Start a pool of worker processes and supervise it until stopped.

    In the overseer this blocks until SIGINT/SIGTERM; in a worker process
    it runs ``worker_entry`` and returns.

    Usage:
        def serve():
            print(os.environ["GREETING"])

        if __name__ == "__main__":
            clusterize(serve, ratio=0.5, shared_env={"GREETING": "hello"})

    On a 4 core host this prints "hello" twice, and again every time a
    worker exits and is replaced.

    Raises:
        ConfigError: If ``worker_entry`` is None.
    """
    app = create_app(settings)
    config = PoolConfig(
        worker_entry=worker_entry,
        overseer_hook=overseer_hook,
        respawn_on_exit=respawn_on_exit,
        ratio=ratio,
        explicit_count=explicit_count,
        respawn_decision=respawn_decision,
        shared_env=dict(shared_env or {}),
    )

    supervisor = Supervisor.from_settings(app.settings, logger=get_logger(__name__))
    if supervisor.role is Role.WORKER:
        supervisor.run_worker(config)
        return
    asyncio.run(supervisor.run(config))
