"""Supervisor - pool orchestration and worker entry point resolution."""

from .entrypoints import resolve_entrypoint
from .supervisor import DEFAULT_SHUTDOWN_TIMEOUT, Supervisor

__all__ = ["DEFAULT_SHUTDOWN_TIMEOUT", "Supervisor", "resolve_entrypoint"]
