"""Overseer/worker role detection."""

import os
import typing as t

from ..domain.workers import Role

# Set in every worker process before its entry point runs.
WORKER_ID_ENV = "CLUSTERIZE_WORKER_ID"


def resolve_role(environ: t.Mapping[str, str] | None = None) -> Role:
    """Return WORKER when running inside a spawned worker, else OVERSEER."""
    environ = os.environ if environ is None else environ
    return Role.WORKER if WORKER_ID_ENV in environ else Role.OVERSEER


def current_worker_id(environ: t.Mapping[str, str] | None = None) -> int | None:
    """Id of the current worker process, None in the overseer."""
    environ = os.environ if environ is None else environ
    value = environ.get(WORKER_ID_ENV)
    return int(value) if value else None
