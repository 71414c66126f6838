"""Worker-side half of the multiprocess spawner.

Runs inside the child process: applies the shared environment, reports
that the worker is online, then hands control to a worker-role
Supervisor. Worker code may call ``notify_listening`` to report a bound
socket back to the overseer.
"""

import os
import signal
import typing as t
from multiprocessing.connection import Connection

from ..domain.exceptions import ClusterizeError
from ..domain.pool_config import PoolConfig, WorkerEntry
from ..domain.workers import Role
from .role import WORKER_ID_ENV

MESSAGE_ONLINE = "online"
MESSAGE_LISTENING = "listening"

_channel: Connection | None = None


def format_address(address: t.Any) -> str:
    """Render a socket address as ``host:port``; other values via str()."""
    if isinstance(address, tuple) and len(address) >= 2:
        host, port = address[0], address[1]
        return f"{host}:{port}"
    return str(address)


def notify_listening(address: t.Any) -> None:
    """Tell the overseer this worker has bound a listening resource.

    Args:
        address: Socket address tuple such as ``("127.0.0.1", 8000)`` or
            any descriptor string, e.g. a unix socket path.

    Raises:
        ClusterizeError: If called outside a spawned worker process.
    """
    if _channel is None:
        raise ClusterizeError("notify_listening() called outside a worker process")
    _channel.send((MESSAGE_LISTENING, format_address(address)))


def reset_signal_handlers() -> None:
    """Restore default SIGTERM and SIGINT behaviour in a new worker.

    A forked child inherits the overseer's event loop signal handlers and
    wakeup fd, which would make it ignore terminate() and Ctrl+C.
    """
    signal.set_wakeup_fd(-1)
    signal.signal(signal.SIGTERM, signal.SIG_DFL)
    signal.signal(signal.SIGINT, signal.default_int_handler)


def bootstrap(
    entrypoint: WorkerEntry,
    env: t.Mapping[str, str],
    worker_id: int,
    channel: Connection,
) -> None:
    """Entry point of every spawned worker process."""
    global _channel

    reset_signal_handlers()
    os.environ.update(env)
    os.environ[WORKER_ID_ENV] = str(worker_id)
    _channel = channel
    channel.send((MESSAGE_ONLINE,))

    # Imported here: the supervisor module imports the spawner, which
    # imports this module.
    from ..supervisor import Supervisor

    Supervisor(role=Role.WORKER).run_worker(PoolConfig(worker_entry=entrypoint))
