"""Base interface for respawn policies."""

from abc import ABC, abstractmethod

from ..domain.workers import ExitInfo


class BaseRespawnPolicy(ABC):
    """Decides whether an exited worker should be replaced.

    Different implementations can be injected into the supervisor to
    change what happens after a worker exits.
    """

    @abstractmethod
    def should_respawn(self, exit_info: ExitInfo) -> bool:
        """Return True to spawn exactly one replacement for the worker."""
        pass
