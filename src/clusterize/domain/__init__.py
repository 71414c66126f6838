"""Domain models - pool configuration, worker state, sizing and exceptions."""

from .exceptions import (
    ClusterizeError,
    ConfigError,
    InvalidWorkerError,
    SpawnTimeoutError,
    SupervisorAlreadyStartedError,
)
from .pool_config import OverseerHook, PoolConfig, RespawnDecision, WorkerEntry
from .sizing import available_parallelism, resolve_count
from .workers import ExitInfo, Role, WorkerRecord, WorkerState

__all__ = [
    # Configuration
    "PoolConfig",
    "WorkerEntry",
    "OverseerHook",
    "RespawnDecision",
    # Workers
    "Role",
    "WorkerState",
    "WorkerRecord",
    "ExitInfo",
    # Sizing
    "available_parallelism",
    "resolve_count",
    # Exceptions
    "ClusterizeError",
    "ConfigError",
    "InvalidWorkerError",
    "SpawnTimeoutError",
    "SupervisorAlreadyStartedError",
]
