"""Process creation - spawner interface, multiprocessing backend, role detection."""

from .base import BaseProcessHandle, BaseSpawner
from .child import notify_listening
from .multiprocess import MultiprocessHandle, MultiprocessSpawner
from .role import WORKER_ID_ENV, current_worker_id, resolve_role

__all__ = [
    "BaseProcessHandle",
    "BaseSpawner",
    "MultiprocessHandle",
    "MultiprocessSpawner",
    "WORKER_ID_ENV",
    "current_worker_id",
    "notify_listening",
    "resolve_role",
]
