"""Default respawn policy."""

from ..domain.pool_config import PoolConfig, RespawnDecision
from ..domain.workers import ExitInfo
from .base import BaseRespawnPolicy


def should_respawn(
    exit_info: ExitInfo,
    respawn_on_exit: bool,
    respawn_decision: RespawnDecision | None = None,
) -> bool:
    """Decide whether to replace an exited worker.

    A supplied decision callable is authoritative and ``respawn_on_exit``
    is ignored. Without one the static flag decides, whatever the exit
    code or signal.
    """
    if respawn_decision is not None:
        return bool(respawn_decision(exit_info))
    return respawn_on_exit


def respawn_on_crash(exit_info: ExitInfo) -> bool:
    """Respawn decision that only replaces crashed workers.

    Clean exits (status 0) shrink the pool. Pass as
    ``PoolConfig.respawn_decision`` to opt in.
    """
    return exit_info.crashed


class RespawnPolicy(BaseRespawnPolicy):
    """Respawn policy driven by a blanket flag or a decision callable.

    There is no backoff and no attempt limit: a worker that crashes on
    startup is replaced immediately every time it exits.
    """

    def __init__(
        self,
        respawn_on_exit: bool = True,
        respawn_decision: RespawnDecision | None = None,
    ) -> None:
        self.respawn_on_exit = respawn_on_exit
        self.respawn_decision = respawn_decision

    @classmethod
    def from_config(cls, config: PoolConfig) -> "RespawnPolicy":
        return cls(config.respawn_on_exit, config.respawn_decision)

    def should_respawn(self, exit_info: ExitInfo) -> bool:
        return should_respawn(exit_info, self.respawn_on_exit, self.respawn_decision)
