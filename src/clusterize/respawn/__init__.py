"""Respawn decisions for exited workers."""

from .base import BaseRespawnPolicy
from .policy import RespawnPolicy, respawn_on_crash, should_respawn

__all__ = [
    "BaseRespawnPolicy",
    "RespawnPolicy",
    "respawn_on_crash",
    "should_respawn",
]
