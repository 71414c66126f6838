"""clusterize - supervise a pool of worker processes.

Sizes the pool from the CPU count, a ratio or an explicit count, enforces
a startup timeout on every worker and respawns workers that exit.
"""

from .app import App, create_app
from .config import Environment, LogLevel, Settings, build_settings
from .domain import (
    ClusterizeError,
    ConfigError,
    ExitInfo,
    InvalidWorkerError,
    PoolConfig,
    Role,
    SpawnTimeoutError,
    SupervisorAlreadyStartedError,
    WorkerRecord,
    WorkerState,
    resolve_count,
)
from .lifecycle import LifecycleTracker
from .process import (
    BaseProcessHandle,
    BaseSpawner,
    MultiprocessSpawner,
    current_worker_id,
    notify_listening,
    resolve_role,
)
from .respawn import BaseRespawnPolicy, RespawnPolicy, respawn_on_crash
from .runner import clusterize
from .supervisor import Supervisor

__all__ = [
    # Entry points
    "clusterize",
    "Supervisor",
    "PoolConfig",
    # App and settings
    "App",
    "create_app",
    "Settings",
    "Environment",
    "LogLevel",
    "build_settings",
    # Workers
    "ExitInfo",
    "Role",
    "WorkerRecord",
    "WorkerState",
    "resolve_count",
    "LifecycleTracker",
    # Process creation
    "BaseProcessHandle",
    "BaseSpawner",
    "MultiprocessSpawner",
    "current_worker_id",
    "notify_listening",
    "resolve_role",
    # Respawn
    "BaseRespawnPolicy",
    "RespawnPolicy",
    "respawn_on_crash",
    # Exceptions
    "ClusterizeError",
    "ConfigError",
    "InvalidWorkerError",
    "SpawnTimeoutError",
    "SupervisorAlreadyStartedError",
]
