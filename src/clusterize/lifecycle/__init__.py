"""Lifecycle tracking - worker state machine and startup timeouts."""

from .tracker import DEFAULT_STARTUP_TIMEOUT, LifecycleTracker

__all__ = ["DEFAULT_STARTUP_TIMEOUT", "LifecycleTracker"]
