"""Pool configuration."""

import typing as t
from dataclasses import dataclass, field

from .workers import ExitInfo

# A worker entry point is either a callable or an importable
# "package.module:attribute" reference resolved inside the worker.
WorkerEntry = t.Callable[[], t.Any] | str
OverseerHook = t.Callable[[], t.Any]
RespawnDecision = t.Callable[[ExitInfo], bool]


@dataclass(frozen=True)
class PoolConfig:
    """Everything the supervisor needs to build and maintain a pool.

    Attributes:
        worker_entry: Code run in every worker process. Required; ``run``
            raises ConfigError when it is None.
        overseer_hook: Run once in the overseer right after the initial
            spawn requests are issued. Does not wait for workers to come
            online. May be a coroutine function.
        respawn_on_exit: Spawn a replacement whenever a worker exits.
            Ignored when ``respawn_decision`` is set.
        ratio: Workers per CPU. The product is floored, minimum 1.
        explicit_count: Exact worker count. Overrides ``ratio``, minimum 1.
        respawn_decision: Called with the ExitInfo of every exit; its
            return value alone decides whether to respawn.
        shared_env: Environment variables given to every worker, including
            respawned ones.

    Note:
        With the default policy a worker that crashes on startup is
        respawned immediately and indefinitely. Supply a
        ``respawn_decision`` to bound that churn.
    """

    worker_entry: WorkerEntry | None = None
    overseer_hook: OverseerHook | None = None
    respawn_on_exit: bool = True
    ratio: float | None = None
    explicit_count: int | None = None
    respawn_decision: RespawnDecision | None = None
    shared_env: t.Mapping[str, str] = field(default_factory=dict)
