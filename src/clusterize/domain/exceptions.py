"""Custom exceptions for the process pool supervisor."""


class ClusterizeError(Exception):
    """Base exception for all clusterize errors."""

    pass


class ConfigError(ClusterizeError):
    """Raised when a PoolConfig is missing required fields.

    Raised synchronously from Supervisor.run before any worker is spawned.
    """

    pass


class InvalidWorkerError(ClusterizeError):
    """Raised inside a worker process when the entry point is not invocable.

    Typical causes are a ``"module:attr"`` reference that cannot be
    imported or an attribute that is not callable. Fatal to that worker
    process only; the overseer sees it as a non-zero exit.
    """

    pass


class SpawnTimeoutError(ClusterizeError):
    """A worker did not come online within the startup timeout.

    Never raised across the supervisor boundary: the lifecycle tracker
    builds it to render the "failed to fork" log record.
    """

    def __init__(self, worker_id: int, timeout: float) -> None:
        self.worker_id = worker_id
        self.timeout = timeout
        super().__init__(f"Worker {worker_id} failed to fork within {timeout:g}s")


class SupervisorAlreadyStartedError(ClusterizeError):
    """Raised when start() is called on a supervisor that is already running."""

    pass
