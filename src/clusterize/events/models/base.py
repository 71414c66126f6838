"""Base event model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BaseEvent(BaseModel):
    """Base class for all events.

    Events are immutable snapshots; handlers must not rely on mutating them.
    """

    model_config = ConfigDict(frozen=True)

    event_type: str = Field(default="base", description="Event type identifier")
    timestamp: datetime = Field(
        default_factory=datetime.now, description="When the event was created"
    )
